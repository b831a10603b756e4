"""Data model for zone presets.

Two groups of types live here:

* **Topology snapshots** reported by the core — :class:`Volume`,
  :class:`Output` and :class:`Zone`.  They are read-only and built from
  the core's JSON dictionaries via ``from_dict``.
* **Persisted state** — :class:`Preset` and the form singleton
  :class:`GroupingSettings`, which is round-tripped through the settings
  UI on every interaction and persisted on every confirmed save.

Persisted document shape (field names are shared with the settings UI)::

    selected: 0
    action: 0
    add: "1701a3..."
    primary_output_id: "1701b2..."
    volume_output_id: null
    volume_level: ""
    name: "Kitchen"
    output_ids: ["1701b2...", "1701a3..."]
    volume_type: 0
    presets:
      - name: "Kitchen"
        output_ids: ["1701b2...", "1701a3..."]
        volume_type: 2
        volumes: {"1701b2...": 40}
    extracted_preset: null
"""

from __future__ import annotations

import copy as _copy
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from roon_zone_presets.enums import Action, VolumeType

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _to_int(value: Any) -> int:
    """Coerce a numeric value reported by the core to ``int``."""
    # bool must be rejected before int (bool is a subclass of int).
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"Expected a number, got {value!r}")
    return int(round(value))


def _optional_str(data: Dict[str, Any], key: str) -> Optional[str]:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValueError(f"Field {key!r} must be a string, got {value!r}")
    return value


def _str_list(data: Dict[str, Any], key: str) -> List[str]:
    value = data.get(key) or []
    if not isinstance(value, list) or not all(
        isinstance(item, str) for item in value
    ):
        raise ValueError(f"Field {key!r} must be a list of strings")
    return list(value)


# ---------------------------------------------------------------------------
# Topology snapshots
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Volume:
    """Volume control of an output.

    Attributes
    ----------
    type:
        Volume scale reported by the core (``"number"``, ``"db"``, …).
    min / max:
        Range of :attr:`value`.
    value:
        Current level.
    step:
        Smallest level increment.
    is_muted:
        Whether the output is muted.
    """

    min: int
    max: int
    value: int
    type: str = "number"
    step: int = 1
    is_muted: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Volume:
        """Create a :class:`Volume` from the core's ``volume`` object."""
        return cls(
            min=_to_int(data["min"]),
            max=_to_int(data["max"]),
            value=_to_int(data.get("value", data["min"])),
            type=str(data.get("type", "number")),
            step=_to_int(data.get("step", 1)) or 1,
            is_muted=bool(data.get("is_muted", False)),
        )


@dataclass(frozen=True)
class Output:
    """An addressable audio endpoint as reported by the core."""

    output_id: str
    display_name: str
    zone_id: Optional[str] = None
    can_group_with_output_ids: List[str] = field(default_factory=list)
    volume: Optional[Volume] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Output:
        """Create an :class:`Output` from the core's output object.

        Outputs with a fixed volume carry no ``volume`` object, and
        incremental controls report no ``min``/``max`` range; for both
        :attr:`volume` is ``None``.
        """
        volume = data.get("volume")
        if volume and not ("min" in volume and "max" in volume):
            volume = None
        return cls(
            output_id=str(data["output_id"]),
            display_name=str(data.get("display_name", data["output_id"])),
            zone_id=_optional_str(data, "zone_id"),
            can_group_with_output_ids=_str_list(
                data, "can_group_with_output_ids"
            ),
            volume=Volume.from_dict(volume) if volume else None,
        )


@dataclass(frozen=True)
class Zone:
    """A live, possibly grouped, playback zone."""

    zone_id: str
    display_name: str
    outputs: List[Output] = field(default_factory=list)

    @property
    def output_ids(self) -> List[str]:
        """Member output ids in the order the core reports them."""
        return [output.output_id for output in self.outputs]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Zone:
        """Create a :class:`Zone` from the core's zone object."""
        return cls(
            zone_id=str(data["zone_id"]),
            display_name=str(data.get("display_name", data["zone_id"])),
            outputs=[Output.from_dict(o) for o in data.get("outputs", [])],
        )


# ---------------------------------------------------------------------------
# Persisted state
# ---------------------------------------------------------------------------

@dataclass
class Preset:
    """A named recipe for grouping an ordered set of outputs.

    The first entry of :attr:`output_ids` is the primary output.
    :attr:`volumes` only holds levels for member outputs.
    """

    name: str = ""
    output_ids: List[str] = field(default_factory=list)
    volume_type: VolumeType = VolumeType.UNTOUCHED
    volumes: Dict[str, int] = field(default_factory=dict)

    @property
    def primary_output_id(self) -> Optional[str]:
        return self.output_ids[0] if self.output_ids else None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "output_ids": list(self.output_ids),
            "volume_type": int(self.volume_type),
            "volumes": dict(self.volumes),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Preset:
        """Create a :class:`Preset` from a persisted dictionary.

        Raises
        ------
        ValueError
            If the dictionary is malformed.
        """
        if not isinstance(data, dict):
            raise ValueError(f"Preset must be a mapping, got {data!r}")
        volumes = data.get("volumes") or {}
        if not isinstance(volumes, dict):
            raise ValueError("Field 'volumes' must be a mapping")
        return cls(
            name=str(data.get("name") or ""),
            output_ids=_str_list(data, "output_ids"),
            volume_type=VolumeType(data.get("volume_type", 0)),
            volumes={
                str(output_id): _to_int(level)
                for output_id, level in volumes.items()
            },
        )


@dataclass
class GroupingSettings:
    """The settings form state: working copy, selection and all presets.

    Attributes
    ----------
    selected:
        Index into :attr:`presets`, ``len(presets)`` for a new preset,
        or ``None`` when nothing is selected.
    action:
        What to do with the selected preset on save.
    add:
        Output id chosen in the *Group With* dropdown.
    primary_output_id / volume_output_id:
        Working dropdown selections.
    volume_level:
        Raw text of the *Volume Level* field, kept as typed so invalid
        input can be shown back with an error.
    name / output_ids / volume_type:
        Working copy of the preset being edited.
    presets:
        All stored presets.
    extracted_preset:
        Preset skeleton derived from the current ad-hoc grouping.  Never
        persisted.
    """

    selected: Optional[int] = None
    action: Action = Action.EDIT
    add: Optional[str] = None
    primary_output_id: Optional[str] = None
    volume_output_id: Optional[str] = None
    volume_level: str = ""
    name: str = ""
    output_ids: List[str] = field(default_factory=list)
    volume_type: VolumeType = VolumeType.UNTOUCHED
    presets: List[Preset] = field(default_factory=list)
    extracted_preset: Optional[Preset] = None

    # ---- selection helpers -------------------------------------------

    @property
    def is_new_preset(self) -> bool:
        """``True`` when the *New Preset* entry is selected."""
        return self.selected is not None and self.selected == len(self.presets)

    @property
    def selected_preset(self) -> Optional[Preset]:
        """The selected stored preset, or ``None``."""
        if self.selected is not None and 0 <= self.selected < len(self.presets):
            return self.presets[self.selected]
        return None

    @property
    def selection(self):
        """The ``(selected, volume_output_id)`` pair used to detect a
        context switch between UI round trips."""
        return (self.selected, self.volume_output_id)

    def copy(self) -> GroupingSettings:
        """Return a deep copy."""
        return _copy.deepcopy(self)

    # ---- serialization -----------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        return {
            "selected": self.selected,
            "action": int(self.action),
            "add": self.add,
            "primary_output_id": self.primary_output_id,
            "volume_output_id": self.volume_output_id,
            "volume_level": self.volume_level,
            "name": self.name,
            "output_ids": list(self.output_ids),
            "volume_type": int(self.volume_type),
            "presets": [preset.to_dict() for preset in self.presets],
            "extracted_preset": (
                self.extracted_preset.to_dict()
                if self.extracted_preset is not None else None
            ),
        }

    def to_persisted_dict(self) -> Dict[str, Any]:
        """Return :meth:`to_dict` with ``extracted_preset`` nulled."""
        data = self.to_dict()
        data["extracted_preset"] = None
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> GroupingSettings:
        """Create :class:`GroupingSettings` from a settings document.

        Missing fields take their defaults.

        Raises
        ------
        ValueError
            If the document is malformed (wrong types, unknown enum
            codes).
        """
        if not isinstance(data, dict):
            raise ValueError(
                f"Settings must be a mapping, got {type(data).__name__}"
            )

        selected = data.get("selected")
        if selected is not None:
            if isinstance(selected, bool) or not isinstance(selected, int):
                raise ValueError(f"Field 'selected' must be an index, got {selected!r}")
            if selected < 0:
                raise ValueError(f"Field 'selected' must not be negative, got {selected}")

        presets = data.get("presets") or []
        if not isinstance(presets, list):
            raise ValueError("Field 'presets' must be a list")

        extracted = data.get("extracted_preset")
        volume_level = data.get("volume_level")

        return cls(
            selected=selected,
            action=Action(
                data["action"] if data.get("action") is not None else Action.EDIT
            ),
            add=_optional_str(data, "add"),
            primary_output_id=_optional_str(data, "primary_output_id"),
            volume_output_id=_optional_str(data, "volume_output_id"),
            volume_level="" if volume_level is None else str(volume_level),
            name=str(data.get("name") or ""),
            output_ids=_str_list(data, "output_ids"),
            volume_type=VolumeType(
                data["volume_type"]
                if data.get("volume_type") is not None
                else VolumeType.UNTOUCHED
            ),
            presets=[Preset.from_dict(p) for p in presets],
            extracted_preset=(
                Preset.from_dict(extracted) if extracted is not None else None
            ),
        )
