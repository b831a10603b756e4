"""YAML persistence of the confirmed zone presets settings.

The file holds one mapping with a single ``settings`` key whose value
is :meth:`GroupingSettings.to_persisted_dict`::

    settings:
      selected: 0
      action: 1
      ...
      presets:
      - name: Kitchen
        output_ids: [out-a, out-b]
        volume_type: 2
        volumes: {out-a: 40, out-b: 60}
      extracted_preset: null

``extracted_preset`` describes whatever ad-hoc group is live right now,
so it is always written as ``null``.

Saving keeps the previous file as ``<file>.bak`` and writes through a
``<file>.tmp`` that is moved into place, so a crash mid-write leaves
either the old or the new settings on disk.  Loading falls back to the
backup (and restores the primary from it) when the primary is missing
or unparsable, and to default settings when neither can be decoded.

Usage example::

    from roon_zone_presets.persistence import SettingsStore

    store = SettingsStore("/var/lib/zone-presets/settings.yaml")
    store.save(settings)
    settings = store.load()   # defaults when nothing usable is stored
"""

from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import yaml

from roon_zone_presets.models import GroupingSettings

logger = logging.getLogger(__name__)

#: Top-level key the settings blob is stored under.
SETTINGS_KEY = "settings"

_BACKUP_SUFFIX = ".bak"
_TMP_SUFFIX = ".tmp"


class SettingsStore:
    """Confirmed settings kept in a YAML file with a backup copy.

    Parameters
    ----------
    path:
        Location of the settings file.  Missing parent directories are
        created by the first :meth:`save`.
    """

    def __init__(self, path: Union[str, Path]) -> None:
        self._path = Path(path)
        self._backup_path = self._sibling(_BACKUP_SUFFIX)
        self._tmp_path = self._sibling(_TMP_SUFFIX)

    def _sibling(self, suffix: str) -> Path:
        return self._path.with_suffix(self._path.suffix + suffix)

    @property
    def path(self) -> Path:
        return self._path

    @property
    def backup_path(self) -> Path:
        """``<path>.bak``, the settings as of the previous save."""
        return self._backup_path

    # ---- save ---------------------------------------------------------

    def save(
        self,
        settings: Union[GroupingSettings, Mapping[str, Any]],
    ) -> None:
        """Persist *settings*, keeping the previous file as backup.

        *settings* is normally a :class:`GroupingSettings`.  A plain
        mapping is stored as given (after copying), which keeps a
        confirmed blob that could not be decoded.  In both cases
        ``extracted_preset`` is written as ``null``.

        Raises
        ------
        OSError
            If the new file cannot be written or moved into place.
        """
        if isinstance(settings, GroupingSettings):
            blob = settings.to_persisted_dict()
        else:
            blob = dict(settings)
            blob["extracted_preset"] = None

        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._keep_backup()

        try:
            with open(self._tmp_path, "w", encoding="utf-8") as fh:
                yaml.safe_dump(
                    {SETTINGS_KEY: blob},
                    fh,
                    default_flow_style=False,
                    allow_unicode=True,
                    sort_keys=False,
                )
            os.replace(str(self._tmp_path), str(self._path))
        except OSError:
            logger.error("Could not write settings to %s", self._path)
            raise

        logger.info(
            "Saved %d preset(s) to %s",
            len(blob.get("presets") or []),
            self._path,
        )

    def _keep_backup(self) -> None:
        if not self._path.is_file():
            return
        try:
            shutil.copy2(str(self._path), str(self._backup_path))
        except OSError:
            logger.warning("No backup kept: copying to %s failed", self._backup_path)

    # ---- load ---------------------------------------------------------

    def load(self) -> GroupingSettings:
        """Return the stored settings, or defaults.

        A blob that does not decode (unknown enum codes, wrong types)
        is logged and replaced by an all-default
        :class:`GroupingSettings`; startup never fails on a bad file.
        """
        blob = self.load_blob()
        if blob is None:
            return GroupingSettings()
        try:
            settings = GroupingSettings.from_dict(blob)
        except (KeyError, TypeError, ValueError) as exc:
            logger.warning(
                "Stored settings in %s do not decode (%s); using defaults",
                self._path,
                exc,
            )
            return GroupingSettings()
        settings.extracted_preset = None
        logger.debug("Loaded %d preset(s) from %s", len(settings.presets), self._path)
        return settings

    def load_blob(self) -> Optional[Dict[str, Any]]:
        """Return the raw ``settings`` mapping without decoding it.

        The primary file is tried first, then the backup; a usable
        backup is copied over the primary.  ``None`` when neither file
        holds a ``settings`` mapping.
        """
        blob = self._read_blob(self._path)
        if blob is not None:
            return blob

        blob = self._read_blob(self._backup_path)
        if blob is None:
            logger.info("No stored settings at %s", self._path)
            return None

        logger.warning("Settings file %s unusable; recovered from backup", self._path)
        try:
            shutil.copy2(str(self._backup_path), str(self._path))
        except OSError:
            logger.warning("Could not restore %s from its backup", self._path)
        return blob

    @staticmethod
    def _read_blob(path: Path) -> Optional[Dict[str, Any]]:
        if not path.is_file():
            return None
        try:
            with open(path, "r", encoding="utf-8") as fh:
                document = yaml.safe_load(fh)
        except (OSError, yaml.YAMLError) as exc:
            logger.warning("Cannot read %s: %s", path, exc)
            return None

        blob = document.get(SETTINGS_KEY) if isinstance(document, dict) else None
        if not isinstance(blob, dict):
            logger.warning("%s holds no %r mapping", path, SETTINGS_KEY)
            return None
        return blob

    # ---- delete -------------------------------------------------------

    def delete(self) -> None:
        """Remove the settings file, its backup and any temporary file."""
        for p in (self._path, self._backup_path, self._tmp_path):
            try:
                p.unlink(missing_ok=True)
            except OSError:
                logger.warning("Could not remove %s", p)

    def __repr__(self) -> str:
        return f"SettingsStore(path={str(self._path)!r})"
