"""Tests for the settings reducer (store / load / delete)."""

import pytest

from roon_zone_presets.enums import Action, VolumeType
from roon_zone_presets.models import GroupingSettings, Output, Preset, Volume
from roon_zone_presets.reducer import (
    delete_selected,
    load_preset,
    store_preset,
    store_volume,
)


def _output(output_id, value=50, min=0, max=100):
    return Output(
        output_id=output_id,
        display_name=output_id.upper(),
        volume=Volume(min=min, max=max, value=value),
    )


@pytest.fixture
def outputs():
    return {
        "A": _output("A", value=30),
        "B": _output("B", value=70),
        "C": _output("C", value=10),
        "F": Output(output_id="F", display_name="Fixed"),
    }


# ---------------------------------------------------------------------------
# store_preset
# ---------------------------------------------------------------------------

class TestStorePreset:

    def test_create_preset(self):
        settings = GroupingSettings(
            add="B", primary_output_id="A", name="Kitchen", selected=0
        )
        assert store_preset(settings) is True
        assert settings.presets[0] == Preset(
            name="Kitchen",
            output_ids=["A", "B"],
            volume_type=VolumeType.UNTOUCHED,
            volumes={},
        )
        assert settings.selected == 0

    def test_create_appends_after_existing(self):
        settings = GroupingSettings(
            add="C", primary_output_id="A", name="New",
            presets=[Preset("Old", ["X", "Y"])], selected=1,
        )
        store_preset(settings)
        assert [p.name for p in settings.presets] == ["Old", "New"]
        assert settings.selected == 1

    def test_idempotent(self):
        settings = GroupingSettings(
            add="B", primary_output_id="A", name="Kitchen", selected=0
        )
        store_preset(settings)
        store_preset(settings)
        assert settings.output_ids == ["A", "B"]
        assert settings.presets == [Preset("Kitchen", ["A", "B"])]

    def test_add_appended_once(self):
        settings = GroupingSettings(
            add="B", primary_output_id="A", name="K", selected=0,
            output_ids=["A", "C"],
        )
        store_preset(settings)
        assert settings.output_ids == ["A", "C", "B"]

    def test_add_equal_to_primary_not_duplicated(self):
        settings = GroupingSettings(
            add="A", primary_output_id="A", name="K", selected=0
        )
        store_preset(settings)
        assert settings.output_ids == ["A"]

    def test_existing_members_kept_when_primary_changes(self):
        settings = GroupingSettings(
            add="A", primary_output_id="C", name="K", selected=0,
            output_ids=["A", "B"],
            presets=[Preset("K", ["A", "B"])],
        )
        store_preset(settings)
        assert settings.output_ids == ["A", "B"]
        assert settings.presets[0].output_ids == ["A", "B"]

    def test_edit_in_place_keeps_volume_policy(self):
        settings = GroupingSettings(
            add="C", primary_output_id="A", name="Renamed", selected=0,
            output_ids=["A", "B"],
            presets=[
                Preset("K", ["A", "B"], VolumeType.PRESET, {"A": 1, "B": 2})
            ],
        )
        store_preset(settings)
        assert settings.presets[0] == Preset(
            "Renamed", ["A", "B", "C"], VolumeType.PRESET, {"A": 1, "B": 2}
        )
        assert settings.selected == 0

    def test_edit_in_place_drops_volumes_of_removed_outputs(self):
        settings = GroupingSettings(
            add="C", primary_output_id="A", name="K", selected=0,
            output_ids=["A"],
            presets=[
                Preset("K", ["A", "B"], VolumeType.PRESET, {"A": 1, "B": 2})
            ],
        )
        store_preset(settings)
        assert settings.presets[0].output_ids == ["A", "C"]
        assert settings.presets[0].volumes == {"A": 1}

    @pytest.mark.parametrize("missing", ["add", "primary_output_id"])
    def test_missing_required_field_is_noop(self, missing):
        settings = GroupingSettings(
            add="B", primary_output_id="A", name="K", selected=0
        )
        setattr(settings, missing, None)
        assert store_preset(settings) is False
        assert settings.output_ids == []
        assert settings.presets == []

    def test_empty_name_not_stored(self):
        settings = GroupingSettings(add="B", primary_output_id="A", selected=0)
        assert store_preset(settings) is False
        assert settings.presets == []
        # The working copy is still normalized.
        assert settings.output_ids == ["A", "B"]

    def test_no_selection_not_stored(self):
        settings = GroupingSettings(add="B", primary_output_id="A", name="K")
        assert store_preset(settings) is False
        assert settings.presets == []


# ---------------------------------------------------------------------------
# store_volume
# ---------------------------------------------------------------------------

class TestStoreVolume:

    def _settings(self, **kwargs):
        values = dict(
            selected=0,
            volume_type=VolumeType.PRESET,
            volume_output_id="A",
            presets=[Preset("K", ["A", "B"])],
        )
        values.update(kwargs)
        return GroupingSettings(**values)

    def test_seeds_level_from_live_volume(self, outputs):
        settings = self._settings(volume_level="")
        assert store_volume(settings, outputs) is True
        assert settings.volume_level == "30"
        assert settings.presets[0].volumes == {"A": 30}

    def test_stores_entered_level(self, outputs):
        settings = self._settings(volume_level="45")
        settings.presets[0].volumes["A"] = 30
        store_volume(settings, outputs)
        assert settings.presets[0].volumes == {"A": 45}

    def test_unparsable_level_leaves_state(self, outputs):
        settings = self._settings(volume_level="loud")
        settings.presets[0].volumes["A"] = 30
        assert store_volume(settings, outputs) is False
        assert settings.presets[0].volumes == {"A": 30}
        assert settings.volume_level == "loud"

    def test_out_of_range_level_is_still_stored(self, outputs):
        settings = self._settings(volume_level="150")
        settings.presets[0].volumes["A"] = 30
        store_volume(settings, outputs)
        assert settings.presets[0].volumes["A"] == 150

    def test_volume_type_written_through(self, outputs):
        settings = self._settings(volume_type=VolumeType.LAST_USED)
        assert store_volume(settings, outputs) is False
        assert settings.presets[0].volume_type == VolumeType.LAST_USED
        assert settings.presets[0].volumes == {}

    def test_new_preset_sentinel_is_noop(self, outputs):
        settings = self._settings(selected=1)
        assert store_volume(settings, outputs) is False
        assert settings.presets[0].volume_type == VolumeType.UNTOUCHED

    def test_without_volume_output(self, outputs):
        settings = self._settings(volume_output_id=None)
        assert store_volume(settings, outputs) is False
        assert settings.presets[0].volume_type == VolumeType.PRESET

    def test_output_without_volume_control(self, outputs):
        settings = self._settings(volume_output_id="F")
        assert store_volume(settings, outputs) is False
        assert settings.presets[0].volumes == {}


# ---------------------------------------------------------------------------
# load_preset
# ---------------------------------------------------------------------------

class TestLoadPreset:

    def test_loads_selected_preset(self, outputs):
        settings = GroupingSettings(
            selected=1,
            action=Action.ACTIVATE,
            name="stale",
            presets=[
                Preset("First", ["C"]),
                Preset("Second", ["A", "B"], VolumeType.LAST_USED),
            ],
        )
        load_preset(settings, outputs)
        assert settings.name == "Second"
        assert settings.primary_output_id == "A"
        assert settings.output_ids == ["A", "B"]
        assert settings.volume_type == VolumeType.LAST_USED
        assert settings.action == Action.EDIT
        assert settings.add == "A"

    def test_shows_captured_volume(self, outputs):
        settings = GroupingSettings(
            selected=0, volume_output_id="B",
            presets=[Preset("K", ["A", "B"], VolumeType.PRESET, {"B": 12})],
        )
        load_preset(settings, outputs)
        assert settings.volume_level == "12"

    def test_captures_live_volume(self, outputs):
        settings = GroupingSettings(
            selected=0, volume_output_id="B",
            presets=[Preset("K", ["A", "B"], VolumeType.PRESET)],
        )
        load_preset(settings, outputs)
        assert settings.volume_level == "70"
        assert settings.presets[0].volumes == {"B": 70}

    def test_does_not_capture_non_member(self, outputs):
        settings = GroupingSettings(
            selected=0, volume_output_id="C",
            presets=[Preset("K", ["A", "B"], VolumeType.PRESET)],
        )
        load_preset(settings, outputs)
        assert settings.presets[0].volumes == {}

    def test_new_preset_offers_extracted_preset(self, outputs):
        settings = GroupingSettings(
            selected=1,
            action=Action.ACTIVATE,
            presets=[Preset("K", ["A", "B"])],
            extracted_preset=Preset("Den", ["C", "A"]),
        )
        load_preset(settings, outputs)
        assert settings.name == "Den"
        assert settings.primary_output_id == "C"
        assert settings.output_ids == ["C", "A"]
        assert settings.add == "C"
        assert settings.action == Action.EDIT

    def test_existing_preset_wins_over_extracted(self, outputs):
        settings = GroupingSettings(
            selected=0,
            presets=[Preset("K", ["A", "B"])],
            extracted_preset=Preset("Den", ["C", "A"]),
        )
        load_preset(settings, outputs)
        assert settings.name == "K"

    def test_new_preset_blanks_editor(self, outputs):
        settings = GroupingSettings(
            selected=0,
            name="stale",
            primary_output_id="A",
            output_ids=["A", "B"],
            add="B",
            volume_type=VolumeType.PRESET,
        )
        load_preset(settings, outputs)
        assert settings.name == ""
        assert settings.primary_output_id is None
        assert settings.output_ids == []
        assert settings.add is None
        assert settings.volume_type == VolumeType.UNTOUCHED

    def test_no_selection_is_noop(self, outputs):
        settings = GroupingSettings(name="keep", action=Action.DELETE)
        load_preset(settings, outputs)
        assert settings.name == "keep"
        assert settings.action == Action.DELETE


# ---------------------------------------------------------------------------
# delete_selected
# ---------------------------------------------------------------------------

class TestDeleteSelected:

    def test_removes_selected_and_clears_selection(self):
        settings = GroupingSettings(
            selected=1,
            action=Action.DELETE,
            presets=[Preset("P0", ["A"]), Preset("P1", ["B"]), Preset("P2", ["C"])],
        )
        assert delete_selected(settings) is True
        assert [p.name for p in settings.presets] == ["P0", "P2"]
        assert settings.selected is None

    def test_other_action_keeps_preset(self):
        settings = GroupingSettings(
            selected=0, action=Action.EDIT, presets=[Preset("P0", ["A"])]
        )
        assert delete_selected(settings) is False
        assert len(settings.presets) == 1

    def test_new_preset_sentinel_not_deleted(self):
        settings = GroupingSettings(
            selected=1, action=Action.DELETE, presets=[Preset("P0", ["A"])]
        )
        assert delete_selected(settings) is False
        assert settings.selected == 1
