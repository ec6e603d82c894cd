"""
Soft Load Order Tests

Tests the single pass that moves registered plugins to honour their
load-before and load-after hints.
"""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent.parent))
sys.path.insert(0, str(Path(__file__).parent))

from plugin_manager.environment import Environment
from plugin_manager.plugin_registry import PluginRegistry
from plugin_manager.plugin_sorter import sort_plugins
from sample_plugins import make_plugin, names


def registered(*definitions):
    registry = PluginRegistry()
    for definition in definitions:
        registry.register(definition, Environment.DEVELOPMENT)
    return registry


def test_load_before_moves_plugin_forward():
    registry = registered(
        make_plugin("a"),
        make_plugin("b"),
        make_plugin("c", load_before=["a"]),
    )
    assert names(sort_plugins(registry.plugins, registry)) == ["c", "a", "b"]
    print("✅ Load-before hint moved plugin forward")


def test_load_after_moves_plugin_back():
    registry = registered(
        make_plugin("a", load_after=["c"]),
        make_plugin("b"),
        make_plugin("c"),
    )
    assert names(sort_plugins(registry.plugins, registry)) == ["b", "c", "a"]
    print("✅ Load-after hint moved plugin back")


def test_already_ordered_plugins_stay():
    registry = registered(
        make_plugin("a", load_before=["b"]),
        make_plugin("b", load_after=["a"]),
    )
    original = list(registry.plugins)
    result = sort_plugins(original, registry)
    assert result == original
    assert result is not original
    print("✅ Satisfied hints leave the order unchanged")


def test_lands_before_earliest_target():
    registry = registered(
        make_plugin("a"),
        make_plugin("b"),
        make_plugin("x", load_before=["b", "a"]),
    )
    assert names(sort_plugins(registry.plugins, registry)) == ["x", "a", "b"]
    print("✅ Plugin placed before every load-before target")


def test_unknown_names_ignored():
    registry = registered(
        make_plugin("a", load_before=["ghost"], load_after=["phantom"]),
        make_plugin("b"),
    )
    assert names(sort_plugins(registry.plugins, registry)) == ["a", "b"]
    print("✅ Hints naming unregistered plugins ignored")


def test_conflicting_hints_keep_every_plugin():
    registry = registered(
        make_plugin("a", load_after=["b"]),
        make_plugin("b", load_after=["a"]),
        make_plugin("c"),
    )
    result = sort_plugins(registry.plugins, registry)
    assert sorted(names(result)) == ["a", "b", "c"]
    print("✅ Conflicting hints still produce a permutation")


def main():
    """Run all soft load order tests."""
    print("🧪 SOFT LOAD ORDER TESTS")
    print("=" * 70)

    try:
        test_load_before_moves_plugin_forward()
        test_load_after_moves_plugin_back()
        test_already_ordered_plugins_stay()
        test_lands_before_earliest_target()
        test_unknown_names_ignored()
        test_conflicting_hints_keep_every_plugin()
        print("\n🎉 ALL SOFT ORDER TESTS PASSED!")
        return True
    except Exception as e:
        print(f"\n❌ Test failed: {e}")
        import traceback
        traceback.print_exc()
        return False


if __name__ == "__main__":
    sys.exit(0 if main() else 1)
