"""Preset matcher — relate live zones to stored presets."""

from __future__ import annotations

from typing import Iterable, Optional, Sequence, Tuple

from roon_zone_presets.models import Preset, Zone


def match_preset(
    presets: Sequence[Preset],
    zones: Iterable[Zone],
) -> Optional[Tuple[Preset, Zone]]:
    """Return the first ``(preset, zone)`` pair whose outputs coincide.

    Output order matters: a zone matches only when its members are
    reported in exactly the order they were stored in the preset.
    Presets are tried in stored order; the first hit wins.
    """
    zones = list(zones)
    for preset in presets:
        for zone in zones:
            if zone.output_ids == preset.output_ids:
                return preset, zone
    return None


def extract_preset(zones: Iterable[Zone]) -> Optional[Preset]:
    """Derive a preset skeleton from the first grouped zone, if any."""
    for zone in zones:
        if len(zone.outputs) > 1:
            return Preset(name=zone.display_name, output_ids=zone.output_ids)
    return None
