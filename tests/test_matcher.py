"""Tests for matching live zones against presets."""

from roon_zone_presets.matcher import extract_preset, match_preset
from roon_zone_presets.models import Output, Preset, Zone


def _zone(zone_id, *output_ids, name=None):
    return Zone(
        zone_id=zone_id,
        display_name=name or zone_id,
        outputs=[Output(output_id=o, display_name=o) for o in output_ids],
    )


# ---------------------------------------------------------------------------
# match_preset
# ---------------------------------------------------------------------------

class TestMatchPreset:

    def test_exact_match(self):
        preset = Preset("K", ["A", "B"])
        zone = _zone("z1", "A", "B")
        assert match_preset([preset], [zone]) == (preset, zone)

    def test_order_matters(self):
        preset = Preset("K", ["A", "B"])
        assert match_preset([preset], [_zone("z1", "B", "A")]) is None

    def test_length_must_match(self):
        preset = Preset("K", ["A", "B"])
        zones = [_zone("z1", "A", "B", "C"), _zone("z2", "A")]
        assert match_preset([preset], zones) is None

    def test_single_output_preset_matches_single_zone(self):
        preset = Preset("Solo", ["A"])
        zone = _zone("z1", "A")
        assert match_preset([preset], [zone]) == (preset, zone)

    def test_first_preset_wins(self):
        first = Preset("First", ["A", "B"])
        second = Preset("Second", ["A", "B"])
        zone = _zone("z1", "A", "B")
        preset, matched_zone = match_preset([first, second], [zone])
        assert preset is first
        assert matched_zone is zone

    def test_presets_searched_before_zones(self):
        p1 = Preset("P1", ["C", "D"])
        p2 = Preset("P2", ["A", "B"])
        z1 = _zone("z1", "A", "B")
        z2 = _zone("z2", "C", "D")
        assert match_preset([p1, p2], [z1, z2]) == (p1, z2)

    def test_no_presets_or_zones(self):
        assert match_preset([], [_zone("z1", "A")]) is None
        assert match_preset([Preset("K", ["A"])], []) is None

    def test_accepts_iterator_of_zones(self):
        p1 = Preset("P1", ["C"])
        p2 = Preset("P2", ["A"])
        zones = iter([_zone("z1", "A")])
        assert match_preset([p1, p2], zones)[0] is p2


# ---------------------------------------------------------------------------
# extract_preset
# ---------------------------------------------------------------------------

class TestExtractPreset:

    def test_first_grouped_zone(self):
        zones = [
            _zone("z1", "A"),
            _zone("z2", "B", "C", name="Kitchen + 1"),
            _zone("z3", "D", "E"),
        ]
        assert extract_preset(zones) == Preset("Kitchen + 1", ["B", "C"])

    def test_no_grouped_zone(self):
        assert extract_preset([_zone("z1", "A"), _zone("z2", "B")]) is None

    def test_no_zones(self):
        assert extract_preset([]) is None
