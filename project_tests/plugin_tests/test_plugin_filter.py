"""
Plugin Filter Tests

Tests the include and exclude filters and how they are built from configuration.
"""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent.parent))
sys.path.insert(0, str(Path(__file__).parent))

from plugin_manager.config import PluginManagerConfig
from plugin_manager.plugin_filter import (
    ExcludingPluginFilter,
    IdentityPluginFilter,
    IncludingPluginFilter,
    plugin_filter_from_config,
)
from sample_plugins import make_plugin, names


def candidates():
    return [
        make_plugin("core"),
        make_plugin("i18n"),
        make_plugin("data", dependencies={"core": "*"}),
        make_plugin("app", dependencies={"data": "*"}),
        make_plugin("extra"),
    ]


def test_identity_filter():
    plugins = candidates()
    assert IdentityPluginFilter().filter_plugin_list(plugins) == plugins
    print("✅ Identity filter keeps every plugin")


def test_including_filter_keeps_dependencies():
    result = IncludingPluginFilter(["app", "i18n"]).filter_plugin_list(candidates())
    assert names(result) == ["core", "i18n", "data", "app"]

    result = IncludingPluginFilter(["nothing_here"]).filter_plugin_list(candidates())
    assert result == []
    print("✅ Include filter keeps transitive dependencies in input order")


def test_excluding_filter_drops_dependents():
    result = ExcludingPluginFilter(["core"]).filter_plugin_list(candidates())
    assert names(result) == ["i18n", "extra"]

    result = ExcludingPluginFilter(["app"]).filter_plugin_list(candidates())
    assert names(result) == ["core", "i18n", "data", "extra"]
    print("✅ Exclude filter drops transitive dependents")


def test_filter_from_config():
    including = plugin_filter_from_config(PluginManagerConfig(includes="app, i18n", excludes="core"))
    assert isinstance(including, IncludingPluginFilter)
    assert including.names == {"app", "i18n"}

    excluding = plugin_filter_from_config(PluginManagerConfig(excludes="core,,extra "))
    assert isinstance(excluding, ExcludingPluginFilter)
    assert excluding.names == {"core", "extra"}

    identity = plugin_filter_from_config(PluginManagerConfig(includes="", excludes=None))
    assert isinstance(identity, IdentityPluginFilter)
    print("✅ Filters built from configuration")


def main():
    """Run all plugin filter tests."""
    print("🧪 PLUGIN FILTER TESTS")
    print("=" * 70)

    try:
        test_identity_filter()
        test_including_filter_keeps_dependencies()
        test_excluding_filter_drops_dependents()
        test_filter_from_config()
        print("\n🎉 ALL FILTER TESTS PASSED!")
        return True
    except Exception as e:
        print(f"\n❌ Test failed: {e}")
        import traceback
        traceback.print_exc()
        return False


if __name__ == "__main__":
    sys.exit(0 if main() else 1)
