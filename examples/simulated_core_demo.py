#!/usr/bin/env python3
"""Simulated-core demo for roon_zone_presets.

This script drives a :class:`ZonePresets` instance against an
in-process stand-in for a Roon core, walking through a full preset
lifecycle:

  **Phase 1 — Create and activate**

  1. Pair with the simulated core and receive its outputs.
  2. Open the settings dialog and choose *New Preset*.
  3. Name the preset, pick a primary output and group another one.
  4. Switch the volume policy to *Preset* and enter a level.
  5. Confirm the save with action *Activate*; the simulated core
     applies the volumes and groups the outputs into one zone.

  **Phase 2 — Restart from persistence**

  1. Spin up a new ZonePresets from the persisted YAML.
  2. Confirm the preset survived and matches the live zone.
  3. Deactivate, then delete the preset.
  4. Delete the persistence files.

Run from the project root::

    python examples/simulated_core_demo.py
"""

from __future__ import annotations

import asyncio
import logging
import sys
from pathlib import Path
from typing import Dict, List, Sequence

# ---------------------------------------------------------------------------
# Ensure the package is importable when running from the repo root.
# ---------------------------------------------------------------------------
_project_root = Path(__file__).resolve().parent.parent
if str(_project_root) not in sys.path:
    sys.path.insert(0, str(_project_root))

from roon_zone_presets import Action, VolumeType, ZonePresets  # noqa: E402

# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

#: Persistence file, lives in /tmp so it's cleaned up automatically.
STATE_FILE = Path("/tmp/roon_zone_presets_demo.yaml")

#: Outputs the simulated core reports: id -> (display name, volume).
OUTPUTS = {
    "out-kitchen": ("Kitchen", 35),
    "out-dining": ("Dining Room", 20),
    "out-patio": ("Patio", 50),
}

# ---------------------------------------------------------------------------
# Logging — colourful, timestamped, to stdout
# ---------------------------------------------------------------------------

BOLD = "\033[1m"
GREEN = "\033[32m"
CYAN = "\033[36m"
YELLOW = "\033[33m"
RED = "\033[31m"
RESET = "\033[0m"


class ColourFormatter(logging.Formatter):
    LEVEL_COLOURS = {
        logging.DEBUG: CYAN,
        logging.INFO: GREEN,
        logging.WARNING: YELLOW,
        logging.ERROR: RED,
        logging.CRITICAL: RED + BOLD,
    }

    def format(self, record: logging.LogRecord) -> str:
        colour = self.LEVEL_COLOURS.get(record.levelno, "")
        ts = self.formatTime(record, "%H:%M:%S")
        return (
            f"{BOLD}{ts}{RESET} "
            f"{colour}{record.levelname:<8s}{RESET} "
            f"{record.name}: {record.getMessage()}"
        )


def setup_logging() -> None:
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(ColourFormatter())
    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    root.handlers.clear()
    root.addHandler(handler)


# ---------------------------------------------------------------------------
# Simulated core
# ---------------------------------------------------------------------------

class SimulatedCore:
    """Just enough of a core to exercise the extension.

    Grouping commands rebuild the zone list and feed it back to the
    extension the way a transport subscription would.
    """

    display_name = "Simulated Core"
    display_version = "2.0 (demo)"

    def __init__(self) -> None:
        self.extension: ZonePresets = None  # type: ignore[assignment]
        self.volumes: Dict[str, int] = {k: v for k, (_, v) in OUTPUTS.items()}
        self.groups: List[List[str]] = [[k] for k in OUTPUTS]
        self._log = logging.getLogger("demo.core")

    # -- services -------------------------------------------------------

    def get_status(self) -> "SimulatedCore":
        return self

    def get_transport(self) -> "SimulatedCore":
        return self

    async def set_status(self, message: str, is_error: bool) -> None:
        self._log.info("Status: %s%s", message, " (error)" if is_error else "")

    async def subscribe_zones(self) -> None:
        await self._push_zones()

    async def subscribe_outputs(self) -> None:
        await self.extension.on_outputs_message(
            {"outputs": [self._output(k) for k in OUTPUTS]}
        )

    async def get_zones(self) -> None:
        await self._push_zones()

    async def group_outputs(self, output_ids: Sequence[str]) -> None:
        self._log.info("group_outputs(%s)", list(output_ids))
        members = set(output_ids)
        self.groups = [g for g in self.groups if not members & set(g)]
        self.groups.insert(0, list(output_ids))
        await self._push_zones()

    async def ungroup_outputs(self, output_ids: Sequence[str]) -> None:
        self._log.info("ungroup_outputs(%s)", list(output_ids))
        members = set(output_ids)
        self.groups = [g for g in self.groups if not members & set(g)]
        self.groups.extend([o] for o in output_ids)
        await self._push_zones()

    async def change_volume(self, output_id: str, how: str, value: int) -> None:
        self._log.info("change_volume(%s, %s, %d)", output_id, how, value)
        self.volumes[output_id] = value
        await self.extension.on_outputs_message(
            {"outputs_changed": [self._output(output_id)]}
        )

    # -- helpers --------------------------------------------------------

    def _output(self, output_id: str) -> dict:
        return {
            "output_id": output_id,
            "display_name": OUTPUTS[output_id][0],
            "can_group_with_output_ids": list(OUTPUTS),
            "volume": {
                "type": "number",
                "min": 0,
                "max": 100,
                "value": self.volumes[output_id],
            },
        }

    async def _push_zones(self) -> None:
        zones = []
        for group in self.groups:
            name = OUTPUTS[group[0]][0]
            if len(group) > 1:
                name += f" + {len(group) - 1}"
            zones.append({
                "zone_id": "zone-" + "-".join(group),
                "display_name": name,
                "outputs": [self._output(o) for o in group],
            })
        await self.extension.on_zones_message({"zones": zones})


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

async def submit(presets: ZonePresets, values: dict, **changes) -> dict:
    """Submit *values* with *changes* applied, as an open dialog would."""
    values = {**values, **changes}
    result = await presets.save_settings(values, is_dry_run=True)
    if result.layout.has_error:
        raise ValueError(f"Form has errors: {result.to_dict()}")
    return result.layout.values.to_dict()


async def confirm(presets: ZonePresets, values: dict) -> None:
    """Commit *values* the way the core does after the user hits Save."""
    result = await presets.save_settings(values, is_dry_run=False)
    await presets.on_settings_saved(result.layout.values.to_dict())


def banner(text: str) -> None:
    """Print a prominent banner to the console."""
    width = 60
    print()
    print(f"{BOLD}{CYAN}{'=' * width}{RESET}")
    print(f"{BOLD}{CYAN} {text.center(width - 2)} {RESET}")
    print(f"{BOLD}{CYAN}{'=' * width}{RESET}")
    print()


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

async def main() -> None:
    setup_logging()
    logger = logging.getLogger("demo")

    # ==================================================================
    # PHASE 1 — Create and activate
    # ==================================================================
    banner("PHASE 1: Create and activate")

    core = SimulatedCore()
    presets = ZonePresets(state_path=STATE_FILE)
    core.extension = presets
    await presets.on_core_found(core)

    # The dialog is opened once; every submit starts from the previous
    # reply. Choosing "New Preset" loads a blank editor.
    values = (await presets.get_settings()).values.to_dict()
    values = await submit(presets, values, selected=len(values["presets"]))
    values = await submit(presets, values, name="Dinner")
    values = await submit(presets, values, primary_output_id="out-kitchen")
    values = await submit(presets, values, add="out-dining")
    values = await submit(presets, values, volume_type=int(VolumeType.PRESET))
    # Picking the volume output reloads the preset with its live level.
    values = await submit(presets, values, volume_output_id="out-dining")
    values = await submit(presets, values, volume_level="15")

    logger.info("Preset in form: %s", values["presets"][-1])

    await confirm(presets, {**values, "action": int(Action.ACTIVATE)})
    logger.info("Volumes on core: %s", core.volumes)
    logger.info("Zones on core:   %s", core.groups)

    # ==================================================================
    # PHASE 2 — Restart from persistence
    # ==================================================================
    banner("PHASE 2: Restart from persistence")

    restored = ZonePresets(state_path=STATE_FILE)
    core.extension = restored
    await restored.on_core_found(core)

    names = [p.name for p in restored.settings.presets]
    assert "Dinner" in names, f"Preset lost on restart: {names}"
    assert restored.matched_zone_id is not None, "Live zone not recognized"
    logger.info("Preset restored and matched to zone %s", restored.matched_zone_id)

    values = (await restored.get_settings()).values.to_dict()
    await confirm(restored, {**values, "action": int(Action.DEACTIVATE)})
    logger.info("Zones on core:   %s", core.groups)

    values = (await restored.get_settings()).values.to_dict()
    await confirm(restored, {**values, "action": int(Action.DELETE)})
    logger.info("Presets left: %d", len(restored.settings.presets))

    # Delete persistence files.
    if restored.store is not None:
        restored.store.delete()
        logger.info("Persistence files deleted: %s", STATE_FILE)

    assert not STATE_FILE.exists(), f"{STATE_FILE} still exists!"
    logger.info("Cleanup verified — no leftover files.")

    banner("DEMO COMPLETE")


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print(f"\n{YELLOW}Interrupted by user.{RESET}")
