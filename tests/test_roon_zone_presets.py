"""Basic tests for roon_zone_presets."""

from importlib.metadata import version

import roon_zone_presets


def test_version():
    """Test that the package version matches the installed metadata."""
    assert isinstance(roon_zone_presets.__version__, str)
    assert roon_zone_presets.__version__ == version("roon_zone_presets")
