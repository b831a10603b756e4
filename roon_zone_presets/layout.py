"""Layout builder — render the settings form for the settings UI.

:func:`make_layout` turns the current :class:`GroupingSettings` and the
known outputs into a :class:`Layout`.  Widgets appear progressively:

* ``Preset`` dropdown — always.
* ``Action`` dropdown — when a stored preset is selected.
* ``Preset Editor`` group — when the action is *Edit*; its fields
  unfold one after another as name, primary output and volume control
  are filled in.
* Summary label — when a preset is selected and has a primary output.

Emission order is the on-screen order.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping

from roon_zone_presets.enums import VOLUME_TYPE_TITLES, Action, VolumeType
from roon_zone_presets.models import GroupingSettings, Output
from roon_zone_presets.widgets import (
    Dropdown,
    Group,
    Integer,
    Label,
    Textbox,
    Widget,
    choice,
    has_error,
    to_dict,
)

logger = logging.getLogger(__name__)

#: Error text for a volume level outside the output's range.
VOLUME_ERROR_FMT = "Volume level should be between {min} and {max}"

_ACTION_TITLES = (
    (Action.ACTIVATE, "Activate"),
    (Action.DEACTIVATE, "Deactivate"),
    (Action.EDIT, "Edit"),
    (Action.DELETE, "Delete"),
)


@dataclass
class Layout:
    """A rendered settings form.

    Attributes
    ----------
    values:
        The settings the form was rendered from.
    widgets:
        Top-level widgets in display order.
    has_error:
        ``True`` when any field carries a validation error.
    """

    values: GroupingSettings
    widgets: List[Widget] = field(default_factory=list)
    has_error: bool = False

    def to_dict(self) -> Dict[str, Any]:
        """Return the wire form ``{"values", "layout", "has_error"}``."""
        return {
            "values": self.values.to_dict(),
            "layout": [to_dict(widget) for widget in self.widgets],
            "has_error": self.has_error,
        }


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _output_title(outputs: Mapping[str, Output], output_id: str) -> str:
    output = outputs.get(output_id)
    return output.display_name if output is not None else output_id


def _preset_dropdown(settings: GroupingSettings) -> Dropdown:
    values = [choice("(select preset)")]
    for index, preset in enumerate(settings.presets):
        if preset.name:
            values.append(choice(preset.name, index))
    values.append(choice("New Preset", len(settings.presets)))
    return Dropdown(title="Preset", setting="selected", values=values)


def _action_dropdown() -> Dropdown:
    values = [choice("(select action)")]
    values.extend(choice(title, int(action)) for action, title in _ACTION_TITLES)
    return Dropdown(title="Action", setting="action", values=values)


def _volume_widgets(
    settings: GroupingSettings,
    outputs: Mapping[str, Output],
) -> List[Widget]:
    """The *Output* dropdown and, once chosen, the *Volume Level* field."""
    values = [choice("(select output)")]
    values.extend(
        choice(_output_title(outputs, output_id), output_id)
        for output_id in settings.output_ids
    )
    widgets: List[Widget] = [
        Dropdown(title="Output", setting="volume_output_id", values=values)
    ]

    if settings.volume_output_id is None:
        return widgets

    output = outputs.get(settings.volume_output_id)
    if output is None or output.volume is None:
        logger.debug(
            "No volume control known for output %s", settings.volume_output_id
        )
        return widgets

    level = Integer(
        title="Volume Level",
        setting="volume_level",
        min=output.volume.min,
        max=output.volume.max,
    )
    if level.out_of_range(settings.volume_level):
        level.error = VOLUME_ERROR_FMT.format(min=level.min, max=level.max)
    widgets.append(level)
    return widgets


def _editor_group(
    settings: GroupingSettings,
    outputs: Mapping[str, Output],
) -> Group:
    group = Group(
        title="Preset Editor",
        collapsable=True,
        items=[Textbox(title="Name", setting="name")],
    )
    if not settings.name:
        return group

    values = [choice("(select output)")]
    for output in sorted(outputs.values(), key=lambda o: o.display_name):
        values.append(choice(output.display_name, output.output_id))
    group.items.append(
        Dropdown(title="Primary Output", setting="primary_output_id", values=values)
    )

    primary_output_id = settings.primary_output_id
    primary = outputs.get(primary_output_id) if primary_output_id else None
    if primary is None:
        return group

    values = [choice("(select output)")]
    for output_id in primary.can_group_with_output_ids:
        if output_id != primary_output_id:
            values.append(choice(_output_title(outputs, output_id), output_id))
    group.items.append(Dropdown(title="Group With", setting="add", values=values))

    values = [choice("(select volume control)")]
    values.extend(
        choice(title, int(volume_type))
        for volume_type, title in VOLUME_TYPE_TITLES.items()
    )
    group.items.append(
        Dropdown(title="Volume Control", setting="volume_type", values=values)
    )

    if settings.volume_type == VolumeType.PRESET:
        group.items.extend(_volume_widgets(settings, outputs))

    return group


def _summary_label(
    settings: GroupingSettings,
    outputs: Mapping[str, Output],
) -> Label:
    primary_output_id = settings.primary_output_id
    lines = ["Grouped with:"]
    for output_id in settings.output_ids:
        if output_id == primary_output_id:
            continue
        output = outputs.get(output_id)
        if output is not None:
            lines.append(output.display_name)
    return Label(
        title=_output_title(outputs, primary_output_id),
        subtitle="\n".join(lines),
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def make_layout(
    settings: GroupingSettings,
    outputs: Mapping[str, Output],
) -> Layout:
    """Render *settings* into a :class:`Layout`.

    *outputs* maps output ids to the latest known :class:`Output`
    snapshots.  Neither argument is modified.
    """
    widgets: List[Widget] = [_preset_dropdown(settings)]

    if settings.selected is not None:
        if not settings.is_new_preset:
            widgets.append(_action_dropdown())

        if settings.action == Action.EDIT:
            widgets.append(_editor_group(settings, outputs))

        if settings.primary_output_id is not None:
            widgets.append(_summary_label(settings, outputs))

    return Layout(values=settings, widgets=widgets, has_error=has_error(widgets))
