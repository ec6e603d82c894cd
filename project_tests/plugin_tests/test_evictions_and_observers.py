"""
Eviction and Observer Tests

This module tests:
- Deferred evictions applied after scheduling
- Self-eviction and evictors that were evicted themselves
- Observer subscriptions, wildcards and self-exclusion
"""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent.parent))
sys.path.insert(0, str(Path(__file__).parent))

from plugin_manager.eviction import evict_plugin, process_delayed_evictions
from plugin_manager.observers import ObserverTable
from plugin_manager.plugin_definition import PluginStatus
from sample_plugins import make_plugin, names, schedule


def test_eviction_leaves_evictor():
    registry, _ = schedule([
        make_plugin("old"),
        make_plugin("new", evicts=["old"]),
    ])

    assert process_delayed_evictions(registry) == [("new", "old")]
    assert names(registry.plugins) == ["new"]
    assert registry.get_plugin("old") is None
    assert registry.get_status("old") is PluginStatus.EVICTED
    print("✅ Evicted plugin removed, evictor kept")


def test_dependents_of_victim_stay_registered():
    registry, _ = schedule([
        make_plugin("old"),
        make_plugin("user_of_old", dependencies={"old": "*"}),
        make_plugin("new", evicts=["old"]),
    ])

    process_delayed_evictions(registry)
    assert names(registry.plugins) == ["user_of_old", "new"]
    print("✅ Dependents of an evicted plugin are not re-validated")


def test_missing_victims_and_self_eviction():
    registry, _ = schedule([
        make_plugin("solo", evicts=["solo", "ghost"]),
    ])

    assert process_delayed_evictions(registry) == []
    assert names(registry.plugins) == ["solo"]
    assert evict_plugin(registry, registry.get_plugin("solo"), "solo") is None
    print("✅ Self-eviction and unknown victims ignored")


def test_every_directive_applies():
    registry, _ = schedule([
        make_plugin("a", evicts=["b"]),
        make_plugin("b", evicts=["a"]),
    ])

    assert process_delayed_evictions(registry) == [("a", "b"), ("b", "a")]
    assert registry.plugins == ()

    registry, _ = schedule([
        make_plugin("a", evicts=["b"]),
        make_plugin("b", evicts=["c"]),
        make_plugin("c"),
    ])

    assert process_delayed_evictions(registry) == [("a", "b"), ("b", "c")]
    assert names(registry.plugins) == ["a"]
    assert registry.evicted == {"b": "a", "c": "b"}
    print("✅ Directives of evicted plugins still applied")


def test_observers_by_name_and_wildcard():
    table = ObserverTable()
    core = make_plugin("core")
    auditor = make_plugin("auditor", observe=["core"])
    logger_plugin = make_plugin("logger", observe=["*"])
    for definition in (core, auditor, logger_plugin):
        table.subscribe(definition)

    assert table.observers_of(core) == {auditor, logger_plugin}
    assert table.observers_of(auditor) == {logger_plugin}
    assert table.observers_of(logger_plugin) == set()
    assert table.observed_names() == {"core": {"auditor"}, "*": {"logger"}}
    print("✅ Observers found by name and wildcard")


def test_observer_sets_are_copies():
    table = ObserverTable()
    core = make_plugin("core")
    watcher = make_plugin("watcher", observe=["core", "core"])
    table.subscribe(watcher)

    observers = table.observers_of(core)
    observers.clear()
    assert table.observers_of(core) == {watcher}

    table.remove(watcher)
    assert table.observers_of(core) == set()
    assert table.observed_names() == {}
    print("✅ Observer queries do not mutate the table")


def test_self_observation_excluded():
    table = ObserverTable()
    narcissist = make_plugin("narcissist", observe=["narcissist"])
    table.subscribe(narcissist)

    assert table.observers_of(narcissist) == set()
    print("✅ A plugin never observes itself")


def main():
    """Run all eviction and observer tests."""
    print("🧪 EVICTION AND OBSERVER TESTS")
    print("=" * 70)

    try:
        test_eviction_leaves_evictor()
        test_dependents_of_victim_stay_registered()
        test_missing_victims_and_self_eviction()
        test_every_directive_applies()
        test_observers_by_name_and_wildcard()
        test_observer_sets_are_copies()
        test_self_observation_excluded()
        print("\n🎉 ALL EVICTION AND OBSERVER TESTS PASSED!")
        return True
    except Exception as e:
        print(f"\n❌ Test failed: {e}")
        import traceback
        traceback.print_exc()
        return False


if __name__ == "__main__":
    sys.exit(0 if main() else 1)
