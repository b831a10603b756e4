"""Zone Presets enumerations.

The numeric values are wire codes: they are what the settings UI sends
back in dropdown values and what ends up in the persisted settings
document.  Never renumber them.
"""

from enum import Enum, IntEnum, unique


# ---------------------------------------------------------------------------
#  Form enums
# ---------------------------------------------------------------------------


@unique
class Action(IntEnum):
    """Action to carry out on the selected preset when settings are saved."""

    EDIT = 0
    ACTIVATE = 1
    DEACTIVATE = 2
    DELETE = 3


@unique
class VolumeType(IntEnum):
    """Volume policy applied when a preset is activated."""

    UNTOUCHED = 0    # leave output volumes as they are
    LAST_USED = 1    # restore levels captured at the last deactivation
    PRESET = 2       # apply the fixed levels stored in the preset


#: Dropdown titles for :class:`VolumeType`, in display order.
VOLUME_TYPE_TITLES = {
    VolumeType.UNTOUCHED: "Untouched",
    VolumeType.LAST_USED: "Last Used",
    VolumeType.PRESET: "Preset",
}


# ---------------------------------------------------------------------------
#  Settings service
# ---------------------------------------------------------------------------


@unique
class RequestStatus(str, Enum):
    """Status name of a settings-service reply."""

    SUCCESS = "Success"
    INVALID_REQUEST = "InvalidRequest"
