"""Zone Presets extension — session state and event handling.

A :class:`ZonePresets` instance is the single owner of the extension's
mutable state:

* the confirmed :class:`~roon_zone_presets.models.GroupingSettings`
  (persisted on every confirmed save),
* a cache of the outputs the core reported, keyed by output id,
* the ``(selected, volume_output_id)`` pair seen on the previous
  settings round trip,
* the id of the live zone currently recognized as a preset.

Whatever speaks the core's protocol feeds events into it:

* :meth:`on_core_found` / :meth:`on_core_lost` — pairing changes,
* :meth:`on_zones`, :meth:`on_zones_removed`, :meth:`on_outputs` —
  topology updates (or the ``*_message`` variants for raw bodies),
* :meth:`get_settings` / :meth:`save_settings` — the settings dialog's
  fetch and submit requests,
* :meth:`on_settings_saved` — the core's confirmation of a save, which
  triggers the grouping and volume commands.

Locking
~~~~~~~

Every state item has its own :class:`asyncio.Lock`.  A lock is held
only around reading or writing that item and is released before any
collaborator call is awaited.  ``_save_lock`` additionally serializes
complete settings submits so that reduce, render and broadcast of one
submit cannot interleave with another.

Usage::

    presets = ZonePresets(state_path="/var/lib/zone-presets/settings.yaml",
                          settings_service=subscribers)

    await presets.on_core_found(core)
    await presets.on_zones_message(body)          # transport updates
    layout = await presets.get_settings()          # dialog opened
    result = await presets.save_settings(values, is_dry_run=True)
    await presets.on_settings_saved(values)        # core committed
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, Optional, Tuple, Union

from roon_zone_presets import __version__
from roon_zone_presets.enums import Action, RequestStatus, VolumeType
from roon_zone_presets.layout import Layout, make_layout
from roon_zone_presets.matcher import extract_preset, match_preset
from roon_zone_presets.models import GroupingSettings, Output, Preset, Zone
from roon_zone_presets.persistence import SettingsStore
from roon_zone_presets.reducer import (
    delete_selected,
    load_preset,
    store_preset,
    store_volume,
)
from roon_zone_presets.services import (
    RoonCore,
    SettingsSubscribers,
    StatusService,
    TransportService,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

#: Extension id registered with the core.
EXTENSION_ID: str = "com.theappgineer.zone_presets"

#: Name shown in the core's extension list.
DISPLAY_NAME: str = "Zone Presets"

#: Status shown while no live zone represents a preset.
STATUS_NO_PRESET: str = "No preset active"

#: Status after a save that triggered no preset action.
STATUS_SETTINGS_SAVED: str = "Settings saved"

#: ``how`` argument for absolute volume changes.
VOLUME_MODE_ABSOLUTE: str = "absolute"

_ZONE_KEYS = ("zones", "zones_added", "zones_changed")
_OUTPUT_KEYS = ("outputs", "outputs_added", "outputs_changed")

Selection = Tuple[Optional[int], Optional[str]]


# ---------------------------------------------------------------------------
# Value types
# ---------------------------------------------------------------------------

@dataclass
class ExtensionInfo:
    """Registration details announced to the core."""

    extension_id: str = EXTENSION_ID
    display_name: str = DISPLAY_NAME
    display_version: str = __version__
    publisher: Optional[str] = None
    email: Optional[str] = None
    website: Optional[str] = None

    def to_dict(self) -> Dict[str, str]:
        """Return the registration fields that are set."""
        return {
            key: value
            for key, value in vars(self).items()
            if value is not None
        }


@dataclass
class SaveResult:
    """Reply to a settings submit."""

    status: RequestStatus
    layout: Layout

    def to_dict(self) -> Dict[str, Any]:
        return {"status": self.status.value, "settings": self.layout.to_dict()}


# ---------------------------------------------------------------------------
# ZonePresets
# ---------------------------------------------------------------------------

class ZonePresets:
    """Session state and event handlers of the Zone Presets extension.

    Parameters
    ----------
    state_path:
        Path to the YAML file holding the confirmed settings.  The
        settings are restored from it on construction (falling back to
        defaults when it is missing or unreadable).  When omitted,
        nothing is persisted.
    settings_service:
        Receives re-rendered layouts for all open settings dialogs.
    info:
        Registration details; defaults to :class:`ExtensionInfo`.
    """

    def __init__(
        self,
        *,
        state_path: Optional[Union[str, Path]] = None,
        settings_service: Optional[SettingsSubscribers] = None,
        info: Optional[ExtensionInfo] = None,
    ) -> None:
        self._store: Optional[SettingsStore] = (
            SettingsStore(state_path) if state_path else None
        )
        self._info = info or ExtensionInfo()
        self._settings_service = settings_service

        # --- confirmed settings ---------------------------------------
        self._settings: GroupingSettings = (
            self._store.load() if self._store else GroupingSettings()
        )
        self._settings_lock = asyncio.Lock()

        # --- topology cache -------------------------------------------
        self._outputs: Dict[str, Output] = {}
        self._outputs_lock = asyncio.Lock()

        # --- settings round-trip tracking -----------------------------
        self._last_selected: Selection = (None, None)
        self._last_selected_lock = asyncio.Lock()
        self._save_lock = asyncio.Lock()

        # --- core session ---------------------------------------------
        self._core: Optional[RoonCore] = None
        self._status: Optional[StatusService] = None
        self._transport: Optional[TransportService] = None
        self._matched_zone_id: Optional[str] = None

        logger.info(
            "%s %s ready with %d preset(s)",
            self._info.display_name,
            self._info.display_version,
            len(self._settings.presets),
        )

    # ---- read-only accessors -----------------------------------------

    @property
    def info(self) -> ExtensionInfo:
        return self._info

    @property
    def store(self) -> Optional[SettingsStore]:
        return self._store

    @property
    def settings(self) -> GroupingSettings:
        """A copy of the confirmed settings."""
        return self._settings.copy()

    @property
    def outputs(self) -> Dict[str, Output]:
        """A copy of the output cache, keyed by output id."""
        return dict(self._outputs)

    @property
    def last_selected(self) -> Selection:
        return self._last_selected

    @property
    def matched_zone_id(self) -> Optional[str]:
        """Id of the live zone recognized as a preset, or ``None``."""
        return self._matched_zone_id

    # ---- core pairing ------------------------------------------------

    async def on_core_found(self, core: RoonCore) -> None:
        """Take the core's services and subscribe to its topology."""
        logger.info(
            "Core found: %s, version %s", core.display_name, core.display_version
        )
        self._core = core
        self._status = core.get_status()
        self._transport = core.get_transport()

        await self._set_status(STATUS_NO_PRESET)

        transport = self._transport
        if transport is not None:
            await transport.subscribe_zones()
            await transport.subscribe_outputs()
        else:
            logger.warning("Core %s offers no transport service", core.display_name)

    async def on_core_lost(self, core: RoonCore) -> None:
        """Drop everything tied to the core's session."""
        logger.info(
            "Core lost: %s, version %s", core.display_name, core.display_version
        )
        self._core = None
        self._status = None
        self._transport = None
        self._matched_zone_id = None

    # ---- topology events ---------------------------------------------

    async def on_zones(self, zones: Iterable[Zone]) -> None:
        """Handle a zone list update.

        Looks for a zone representing a preset (unless one is already
        matched) and refreshes the extracted ad-hoc preset.
        """
        zones = list(zones)

        if self._matched_zone_id is None:
            async with self._settings_lock:
                presets = [_copy_preset(p) for p in self._settings.presets]

            match = match_preset(presets, zones)
            if match is not None:
                preset, zone = match
                self._matched_zone_id = zone.zone_id
                logger.info(
                    "Zone %s matches preset %r", zone.zone_id, preset.name
                )
                await self._set_status(
                    f'Grouped zone "{zone.display_name}" represents the '
                    f'"{preset.name}" preset'
                )

        extracted = extract_preset(zones)
        async with self._settings_lock:
            self._settings.extracted_preset = extracted

    async def on_zones_removed(self, zone_ids: Iterable[str]) -> None:
        """Handle removed zones; clears the match if it disappeared."""
        zone_ids = list(zone_ids)
        if self._matched_zone_id is None or self._matched_zone_id not in zone_ids:
            return

        logger.info("Matched zone %s was removed", self._matched_zone_id)
        self._matched_zone_id = None
        await self._set_status(STATUS_NO_PRESET)

    async def on_outputs(self, outputs: Iterable[Output]) -> None:
        """Upsert reported outputs into the cache."""
        async with self._outputs_lock:
            for output in outputs:
                self._outputs[output.output_id] = output
            count = len(self._outputs)
        logger.debug("Output cache holds %d output(s)", count)

    async def on_zones_message(self, body: Dict[str, Any]) -> None:
        """Handle a raw zones subscription body from the transport.

        ``zones``, ``zones_added`` and ``zones_changed`` are handled as
        a zone list update, ``zones_removed`` as removed zone ids.
        """
        try:
            zones = [
                Zone.from_dict(zone)
                for key in _ZONE_KEYS
                for zone in body.get(key) or []
            ]
            removed = [str(zone_id) for zone_id in body.get("zones_removed") or []]
        except (KeyError, TypeError, ValueError) as exc:
            logger.warning("Ignoring malformed zones message: %s", exc)
            return

        if zones:
            await self.on_zones(zones)
        if removed:
            await self.on_zones_removed(removed)

    async def on_outputs_message(self, body: Dict[str, Any]) -> None:
        """Handle a raw outputs subscription body from the transport."""
        try:
            outputs = [
                Output.from_dict(output)
                for key in _OUTPUT_KEYS
                for output in body.get(key) or []
            ]
        except (KeyError, TypeError, ValueError) as exc:
            logger.warning("Ignoring malformed outputs message: %s", exc)
            return

        if outputs:
            await self.on_outputs(outputs)

    # ---- settings service --------------------------------------------

    async def get_settings(self) -> Layout:
        """Render the confirmed settings for a settings dialog."""
        snapshot = await self._snapshot()
        async with self._last_selected_lock:
            self._last_selected = snapshot.selection
        async with self._outputs_lock:
            outputs = dict(self._outputs)
        return make_layout(snapshot, outputs)

    async def save_settings(
        self,
        values: Dict[str, Any],
        is_dry_run: bool,
    ) -> SaveResult:
        """Apply a submitted form and render the reply.

        When the selection changed since the previous round trip the
        selected preset is loaded into the editor; otherwise the edit is
        stored into the form's presets.  Nothing is persisted here;
        that happens in :meth:`on_settings_saved`.
        """
        async with self._save_lock:
            async with self._outputs_lock:
                outputs = dict(self._outputs)

            try:
                settings = GroupingSettings.from_dict(values)
            except (KeyError, TypeError, ValueError) as exc:
                logger.warning("Ignoring undecodable settings: %s", exc)
                layout = make_layout(await self._snapshot(), outputs)
                return SaveResult(RequestStatus.SUCCESS, layout)

            async with self._settings_lock:
                settings.extracted_preset = _copy_preset(
                    self._settings.extracted_preset
                )

            if delete_selected(settings):
                logger.debug("Preset deleted in the form")

            selection = settings.selection
            async with self._last_selected_lock:
                switched = selection != self._last_selected
                if switched:
                    self._last_selected = selection

            if switched:
                logger.debug("Selection changed to %s — loading preset", selection)
                load_preset(settings, outputs)
            else:
                store_preset(settings)
                store_volume(settings, outputs)

            layout = make_layout(settings, outputs)

            if not is_dry_run and not layout.has_error:
                if self._settings_service is not None:
                    await self._settings_service.update_settings(layout.to_dict())

            return SaveResult(RequestStatus.SUCCESS, layout)

    async def on_settings_saved(self, values: Dict[str, Any]) -> None:
        """Carry out the confirmed action and persist the settings.

        The confirmed settings are adopted and persisted even when a
        collaborator call raises; the error is then re-raised.
        """
        try:
            settings = GroupingSettings.from_dict(values)
        except (KeyError, TypeError, ValueError) as exc:
            logger.warning("Could not decode saved settings: %s", exc)
            self._persist(values)
            return

        async with self._settings_lock:
            previous_name = self._settings.name
            extracted = _copy_preset(self._settings.extracted_preset)

        try:
            await self._apply_action(settings, extracted)
        finally:
            # A failing collaborator must not lose the confirmed state.
            async with self._settings_lock:
                if previous_name != settings.name:
                    self._matched_zone_id = None
                settings.extracted_preset = self._settings.extracted_preset
                self._settings = settings

            self._persist(settings)

    # ---- actions -----------------------------------------------------

    async def _apply_action(
        self,
        settings: GroupingSettings,
        extracted: Optional[Preset],
    ) -> None:
        """Issue the transport commands and status for a confirmed save.

        The LastUsed capture of a deactivation is written into
        *settings* before the outputs are ungrouped.
        """
        status_msg = STATUS_SETTINGS_SAVED
        transport = self._transport
        preset = settings.selected_preset

        if (
            preset is not None
            and settings.primary_output_id is not None
            and transport is not None
        ):
            if settings.action == Action.ACTIVATE:
                await self._activate(transport, preset, extracted)
                status_msg = f'Preset "{preset.name}" activated'
            elif settings.action == Action.DEACTIVATE:
                await self._deactivate(transport, preset)
                status_msg = f'Preset "{preset.name}" deactivated'
            elif settings.action == Action.EDIT:
                await transport.get_zones()

        if settings.action == Action.DELETE:
            self._matched_zone_id = None
            status_msg = f'Preset "{settings.name}" deleted'
            logger.info("Deleted preset %r", settings.name)

        await self._set_status(status_msg)

    async def _activate(
        self,
        transport: TransportService,
        preset: Preset,
        extracted: Optional[Preset],
    ) -> None:
        """Ungroup any ad-hoc grouping, apply volumes, then group."""
        if extracted is not None:
            logger.debug("Ungrouping ad-hoc group %r first", extracted.name)
            await transport.ungroup_outputs(list(extracted.output_ids))

        if preset.volume_type != VolumeType.UNTOUCHED:
            for output_id, level in list(preset.volumes.items()):
                await transport.change_volume(output_id, VOLUME_MODE_ABSOLUTE, level)

        await transport.group_outputs(list(preset.output_ids))
        logger.info("Activated preset %r", preset.name)

    async def _deactivate(
        self,
        transport: TransportService,
        preset: Preset,
    ) -> None:
        """Capture last-used volumes when asked to, then ungroup."""
        if preset.volume_type == VolumeType.LAST_USED:
            async with self._outputs_lock:
                for output_id in preset.output_ids:
                    output = self._outputs.get(output_id)
                    if output is not None and output.volume is not None:
                        preset.volumes[output_id] = output.volume.value

        await transport.ungroup_outputs(list(preset.output_ids))
        logger.info("Deactivated preset %r", preset.name)

    # ---- helpers -----------------------------------------------------

    async def _snapshot(self) -> GroupingSettings:
        async with self._settings_lock:
            return self._settings.copy()

    async def _set_status(self, message: str, is_error: bool = False) -> None:
        status = self._status
        if status is None:
            logger.debug("No status service — dropping status %r", message)
            return
        await status.set_status(message, is_error)

    def _persist(self, settings: Union[GroupingSettings, Dict[str, Any]]) -> None:
        if self._store is None:
            logger.debug("No state_path configured — skipping save.")
            return
        try:
            self._store.save(settings)
        except OSError:
            logger.exception("Failed to persist settings to %s", self._store.path)

    def __repr__(self) -> str:
        return (
            f"ZonePresets(presets={len(self._settings.presets)}, "
            f"matched_zone={self._matched_zone_id!r})"
        )


def _copy_preset(preset: Optional[Preset]) -> Optional[Preset]:
    if preset is None:
        return None
    return Preset(
        name=preset.name,
        output_ids=list(preset.output_ids),
        volume_type=preset.volume_type,
        volumes=dict(preset.volumes),
    )
