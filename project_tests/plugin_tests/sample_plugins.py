"""
Sample plugins shared by the plugin manager tests.
"""

import sys
import xml.etree.ElementTree as ET
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from plugin_manager.config import PluginManagerConfig
from plugin_manager.environment import Environment
from plugin_manager.load_scheduler import LoadScheduler
from plugin_manager.plugin_definition import Plugin, PluginCapability, PluginConfig, PluginDefinition
from plugin_manager.plugin_manager import PluginManager
from plugin_manager.plugin_registry import PluginRegistry


class SamplePlugin(Plugin):
    """Configurable plugin that records every hook call."""

    def __init__(self, name, version="1.0", dependencies=None, load_before=(), load_after=(),
                 evicts=(), observe=(), enabled=True, environments=(), excluded_environments=(),
                 capabilities=None):
        super().__init__()
        self._name = name
        self._version = version
        self._config = PluginConfig(
            enabled=enabled,
            dependencies=dict(dependencies or {}),
            load_before=list(load_before),
            load_after=list(load_after),
            evicts=list(evicts),
            observe=list(observe),
            environments=list(environments),
            excluded_environments=list(excluded_environments),
        )
        if capabilities is not None:
            self.capabilities = frozenset(capabilities)
        self.events = []
        self.calls = []

    @property
    def plugin_name(self):
        return self._name

    @property
    def plugin_version(self):
        return self._version

    def get_config(self):
        return self._config

    def do_with_dynamic_methods(self, context):
        self.calls.append(("dynamic_methods", context))

    def do_with_web_descriptor(self, root):
        ET.SubElement(root, "filter", {"name": self.plugin_name})
        self.calls.append(("web_descriptor", root.tag))

    def on_event(self, event):
        self.events.append(event)

    def refresh(self):
        self.calls.append(("refresh", None))


class FailingPlugin(SamplePlugin):
    """Plugin whose hooks all raise."""

    def do_with_dynamic_methods(self, context):
        raise RuntimeError(f"{self.plugin_name} cannot configure dynamic methods")

    def do_with_web_descriptor(self, root):
        raise RuntimeError(f"{self.plugin_name} cannot edit the descriptor")

    def on_event(self, event):
        raise RuntimeError(f"{self.plugin_name} cannot handle events")

    def refresh(self):
        raise RuntimeError(f"{self.plugin_name} cannot refresh")


class CorePlugin(Plugin):
    """Plugin with a no-argument constructor, usable as a class candidate."""

    @property
    def plugin_name(self):
        return "core"

    @property
    def plugin_version(self):
        return "2.1.0"

    def get_config(self):
        return PluginConfig()


class BrokenConstructorPlugin(Plugin):
    def __init__(self):
        super().__init__()
        raise RuntimeError("missing resource")

    @property
    def plugin_name(self):
        return "broken"

    @property
    def plugin_version(self):
        return "1.0"

    def get_config(self):
        return PluginConfig()


HOOKS = frozenset({
    PluginCapability.CONTEXT_AWARE,
    PluginCapability.PARENT_CONTEXT_AWARE,
    PluginCapability.WEB_DESCRIPTOR,
    PluginCapability.DYNAMIC_METHODS,
})


def make_plugin(name, plugin_class=SamplePlugin, **kwargs) -> PluginDefinition:
    """Build a definition for a sample plugin."""
    return PluginDefinition.from_plugin(plugin_class(name, **kwargs))


def schedule(definitions, environment=Environment.DEVELOPMENT):
    """Run the scheduler over definitions and return the registry and result."""
    registry = PluginRegistry()
    result = LoadScheduler(registry, environment).schedule(definitions)
    return registry, result


def names(plugins):
    return [plugin.name for plugin in plugins]


def make_manager(**config) -> PluginManager:
    config.setdefault("environment", "development")
    return PluginManager(config=PluginManagerConfig(**config))
