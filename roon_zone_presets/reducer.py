"""Settings reducer — apply a submitted settings form to preset state.

Every function takes the decoded form (:class:`GroupingSettings`) and
mutates it in place.  The return value tells whether the function
applied: ``False`` means the form is not yet actionable (a required
field is missing or malformed) and the state was left as it was.
Field-level error text is not produced here; the layout builder derives
it independently when it renders the reply.
"""

from __future__ import annotations

import logging
from typing import Mapping

from roon_zone_presets.enums import Action, VolumeType
from roon_zone_presets.models import GroupingSettings, Output, Preset

logger = logging.getLogger(__name__)


def _live_volume(outputs: Mapping[str, Output], output_id: str):
    """Return the live volume level of *output_id*, or ``None``."""
    output = outputs.get(output_id)
    if output is None or output.volume is None:
        return None
    return output.volume.value


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------

def store_preset(settings: GroupingSettings) -> bool:
    """Write the working copy into the selected preset.

    Requires ``add`` and ``primary_output_id``.  An empty working
    ``output_ids`` is seeded with the primary output; ``add`` is
    appended when it is not yet a member, so repeated calls with the
    same input do not grow the list.

    An existing preset keeps its volume policy; captured levels of
    outputs that are no longer members are dropped.  Selecting the
    *New Preset* entry appends a preset and moves the selection onto
    it.
    """
    add = settings.add
    primary_output_id = settings.primary_output_id
    if add is None or primary_output_id is None:
        return False

    if not settings.output_ids:
        settings.output_ids = [primary_output_id]
    if add not in settings.output_ids:
        settings.output_ids.append(add)

    if not settings.name or settings.selected is None:
        return False

    output_ids = list(settings.output_ids)
    selected = settings.selected
    preset_count = len(settings.presets)

    if selected < preset_count:
        current = settings.presets[selected]
        settings.presets[selected] = Preset(
            name=settings.name,
            output_ids=output_ids,
            volume_type=current.volume_type,
            volumes={
                output_id: level
                for output_id, level in current.volumes.items()
                if output_id in output_ids
            },
        )
        logger.debug("Updated preset %d (%r)", selected, settings.name)
    else:
        settings.presets.append(Preset(name=settings.name, output_ids=output_ids))
        settings.selected = preset_count
        logger.debug("Created preset %d (%r)", preset_count, settings.name)

    return True


def store_volume(
    settings: GroupingSettings,
    outputs: Mapping[str, Output],
) -> bool:
    """Write the volume settings into the selected preset.

    The working ``volume_type`` is always copied to the preset.  Under
    :attr:`VolumeType.PRESET` the entered level is stored for
    ``volume_output_id``; an output without a captured level first gets
    its live level as the entered value.
    """
    preset = settings.selected_preset
    if preset is None:
        return False

    preset.volume_type = settings.volume_type

    if settings.volume_type != VolumeType.PRESET:
        return False

    volume_output_id = settings.volume_output_id
    if volume_output_id is None:
        return False

    if volume_output_id not in preset.volumes:
        live = _live_volume(outputs, volume_output_id)
        if live is None:
            logger.warning("No live volume known for output %s", volume_output_id)
            return False
        settings.volume_level = str(live)

    try:
        level = int(settings.volume_level.strip())
    except ValueError:
        return False

    preset.volumes[volume_output_id] = level
    return True


# ---------------------------------------------------------------------------
# Load
# ---------------------------------------------------------------------------

def load_preset(
    settings: GroupingSettings,
    outputs: Mapping[str, Output],
) -> None:
    """Replace the working copy after the user switched context.

    Loads the selected stored preset when there is one.  For the *New
    Preset* entry the current ad-hoc grouping (``extracted_preset``) is
    offered when it exists; otherwise the editor is blanked.
    """
    if settings.selected is None:
        return

    preset = settings.selected_preset
    if preset is not None:
        source = preset
    elif settings.extracted_preset is not None:
        source = settings.extracted_preset
    else:
        source = Preset()

    settings.name = source.name
    settings.output_ids = list(source.output_ids)
    settings.primary_output_id = source.primary_output_id
    settings.add = source.primary_output_id
    settings.volume_type = source.volume_type
    settings.action = Action.EDIT

    if preset is None:
        return

    volume_output_id = settings.volume_output_id
    if volume_output_id is None:
        return

    if volume_output_id in preset.volumes:
        settings.volume_level = str(preset.volumes[volume_output_id])
    else:
        live = _live_volume(outputs, volume_output_id)
        if live is not None and volume_output_id in preset.output_ids:
            preset.volumes[volume_output_id] = live
            settings.volume_level = str(live)


def delete_selected(settings: GroupingSettings) -> bool:
    """Remove the selected preset when the chosen action is Delete.

    The selection is cleared so that it cannot point at a shifted
    index.
    """
    if settings.action != Action.DELETE or settings.selected_preset is None:
        return False
    removed = settings.presets.pop(settings.selected)
    settings.selected = None
    logger.debug("Removed preset %r from the form", removed.name)
    return True
