"""roon_zone_presets - group Roon outputs into zones from saved presets."""

__version__ = "0.1.0"

from roon_zone_presets.enums import (  # noqa: F401 – re-export for convenience
    Action,
    RequestStatus,
    VolumeType,
)

from roon_zone_presets.models import (  # noqa: F401
    GroupingSettings,
    Output,
    Preset,
    Volume,
    Zone,
)

from roon_zone_presets.persistence import SettingsStore  # noqa: F401

from roon_zone_presets.reducer import (  # noqa: F401
    delete_selected,
    load_preset,
    store_preset,
    store_volume,
)

from roon_zone_presets.matcher import extract_preset, match_preset  # noqa: F401

from roon_zone_presets.layout import Layout, make_layout  # noqa: F401

from roon_zone_presets.services import (  # noqa: F401
    RoonCore,
    SettingsSubscribers,
    StatusService,
    TransportService,
)

from roon_zone_presets.extension import (  # noqa: F401
    EXTENSION_ID,
    STATUS_NO_PRESET,
    ExtensionInfo,
    SaveResult,
    ZonePresets,
)
