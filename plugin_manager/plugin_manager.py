"""
Plugin Manager

Main orchestrator for loading plugins: builds definitions from discovered
candidates, schedules their registration, applies evictions and load-order
hints, and drives the post-load hooks.
"""

import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, Set

from .config import PluginManagerConfig, get_plugin_config
from .eviction import evict_plugin, process_delayed_evictions
from .exceptions import DescriptorError, PluginManagerStateError
from .load_scheduler import LoadScheduler, SchedulerResult
from .plugin_definition import PluginCapability, PluginDefinition, PluginStatus
from .plugin_filter import PluginFilter, plugin_filter_from_config
from .plugin_loader import PluginCandidate, build_plugins
from .plugin_registry import PluginRegistry
from .plugin_sorter import sort_plugins

logger = logging.getLogger(__name__)


@dataclass
class HookResult:
    """Outcome of calling one hook on one plugin."""
    plugin_name: str
    hook: str
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class PluginManager:
    """
    Main manager for plugins.

    Handles discovery-order loading, dependency and version resolution,
    evictions, observers and the hooks plugins contribute once loaded.
    """

    def __init__(self,
                 config: Optional[PluginManagerConfig] = None,
                 plugin_filter: Optional[PluginFilter] = None,
                 environment=None,
                 application_context: Any = None):
        self.config = config or get_plugin_config()
        self.plugin_filter = plugin_filter or plugin_filter_from_config(self.config)
        self.environment = environment if environment is not None else self.config.environment
        self.application_context = application_context
        self.parent_context: Any = None
        self.registry = PluginRegistry(manager=self)

        self._user_plugin_definitions: Set[PluginDefinition] = set()
        self._initialised = False
        self.last_result: Optional[SchedulerResult] = None

    @property
    def initialised(self) -> bool:
        return self._initialised

    def load_plugins(self,
                     core: Iterable[PluginCandidate] = (),
                     user: Iterable[PluginCandidate] = ()) -> List[PluginDefinition]:
        """
        Load every candidate plugin.

        Calling this again after a successful load does nothing and returns the
        current order.

        Args:
            core: Core plugin candidates, attempted first
            user: User plugin candidates

        Returns:
            Registered plugins in their final order

        Raises:
            PluginConstructionError: If any candidate cannot be built
        """
        if self._initialised:
            logger.debug("Plugins already loaded, skipping")
            return self.all_plugins

        logger.info(f"Loading plugins for environment '{self.environment}'...")

        core_definitions = []
        if self.config.load_core_plugins:
            core_definitions = build_plugins(core)
        else:
            logger.info("Core plugins disabled by configuration")
        user_definitions = build_plugins(user)
        self._user_plugin_definitions = set(user_definitions)

        candidates = self.plugin_filter.filter_plugin_list(core_definitions + user_definitions)
        # Core plugins are attempted before user plugins regardless of the filter
        candidates = ([d for d in candidates if d not in self._user_plugin_definitions]
                      + [d for d in candidates if d in self._user_plugin_definitions])

        scheduler = LoadScheduler(
            self.registry,
            self.environment,
            parent_context=self.parent_context,
            max_retry_factor=self.config.max_retry_factor,
        )
        self.last_result = scheduler.schedule(candidates)

        process_delayed_evictions(self.registry)
        self.registry.reorder(sort_plugins(self.registry.plugins, self.registry))
        self._initialise_plugins()
        self._initialised = True

        failed = self.registry.failed_plugins
        logger.info(f"Loaded {len(self.registry.plugins)} plugins"
                    + (f", {len(failed)} failed: {sorted(failed)}" if failed else ""))
        return self.all_plugins

    def _initialise_plugins(self) -> None:
        """Hand the application context to plugins that ask for it."""
        for plugin in self.registry.plugins:
            if plugin.has_capability(PluginCapability.CONTEXT_AWARE):
                self._invoke_hook(plugin, "set_application_context",
                                  lambda p=plugin: p.plugin.set_application_context(self.application_context))

    # Queries

    @property
    def all_plugins(self) -> List[PluginDefinition]:
        """Registered plugins in load order."""
        return list(self.registry.plugins)

    @property
    def user_plugins(self) -> List[PluginDefinition]:
        """Registered plugins that came from user candidates, in load order."""
        return [p for p in self.registry.plugins if p in self._user_plugin_definitions]

    @property
    def failed_plugins(self) -> Dict[str, PluginDefinition]:
        return self.registry.failed_plugins

    def get_plugin(self, name: str, version: Optional[str] = None) -> Optional[PluginDefinition]:
        return self.registry.get_plugin(name, version)

    def has_plugin(self, name: str, version: Optional[str] = None) -> bool:
        return self.registry.has_plugin(name, version)

    def get_plugin_for_class(self, plugin_class: type) -> Optional[PluginDefinition]:
        return self.registry.get_plugin_for_class(plugin_class)

    def get_plugin_observers(self, plugin: PluginDefinition) -> Set[PluginDefinition]:
        """Get the plugins observing the given plugin, never including itself."""
        return self.registry.observers.observers_of(plugin)

    def get_status(self, name: str) -> Optional[PluginStatus]:
        return self.registry.get_status(name)

    def get_plugin_info(self, name: str) -> Optional[Dict]:
        """Get comprehensive information about a plugin."""
        info = self.registry.get_plugin_info(name)
        if info is not None:
            plugin = self.registry.get_plugin(name)
            info['observers'] = sorted(o.name for o in self.get_plugin_observers(plugin)) if plugin else []
            info['user_plugin'] = any(p.name == name for p in self._user_plugin_definitions)
        return info

    # Events and runtime operations

    def inform_observers(self, plugin_name: str, event: Dict[str, Any]) -> List[HookResult]:
        """
        Deliver an event raised by a plugin to everything observing it.

        Unknown plugin names are ignored.
        """
        plugin = self.registry.get_plugin(plugin_name)
        if plugin is None:
            return []

        results = []
        for observer in sorted(self.get_plugin_observers(plugin), key=lambda o: self.registry.index_of(o.name)):
            results.append(self._invoke_hook(observer, "on_event", lambda o=observer: o.notify(event)))
        return results

    def refresh_plugin(self, name: str) -> Optional[HookResult]:
        """Ask a registered plugin to reload its state."""
        plugin = self.registry.get_plugin(name)
        if plugin is None:
            logger.warning(f"Cannot refresh plugin '{name}': not registered")
            return None
        return self._invoke_hook(plugin, "refresh", plugin.plugin.refresh)

    def evict_plugin(self, evictor_name: str, name: str) -> Optional[PluginDefinition]:
        """Evict a registered plugin on behalf of another registered plugin."""
        evictor = self.registry.get_plugin(evictor_name)
        if evictor is None:
            logger.warning(f"Cannot evict '{name}': evicting plugin '{evictor_name}' is not registered")
            return None
        return evict_plugin(self.registry, evictor, name)

    def set_application_context(self, context: Any) -> None:
        self.application_context = context

    def set_parent_context(self, context: Any) -> None:
        self.parent_context = context

    def do_dynamic_methods(self, context: Any = None) -> List[HookResult]:
        """
        Let every DYNAMIC_METHODS plugin configure the application context.

        A failing plugin is logged and the remaining plugins still run.

        Raises:
            PluginManagerStateError: If plugins have not been loaded yet
        """
        self._check_initialised()
        context = context if context is not None else self.application_context

        results = []
        for plugin in self._hook_plugins(PluginCapability.DYNAMIC_METHODS):
            results.append(self._invoke_hook(plugin, "do_with_dynamic_methods",
                                             lambda p=plugin: p.plugin.do_with_dynamic_methods(context)))
        return results

    def do_web_descriptor(self, source, target) -> List[HookResult]:
        """
        Run the web descriptor through every WEB_DESCRIPTOR plugin in load order.

        Args:
            source: Path, readable file object or XML text
            target: Path or writable text stream

        Returns:
            One result per plugin hook called

        Raises:
            PluginManagerStateError: If plugins have not been loaded yet
            DescriptorError: If the source cannot be read or parsed, or the target written
        """
        self._check_initialised()
        root = _parse_descriptor(source)

        results = []
        for plugin in self._hook_plugins(PluginCapability.WEB_DESCRIPTOR):
            results.append(self._invoke_hook(plugin, "do_with_web_descriptor",
                                             lambda p=plugin: p.plugin.do_with_web_descriptor(root)))

        _write_descriptor(root, target)
        return results

    # Private methods

    def _check_initialised(self) -> None:
        if not self._initialised:
            raise PluginManagerStateError("Plugins have not been loaded, call load_plugins() first")

    def _hook_plugins(self, capability: PluginCapability) -> List[PluginDefinition]:
        return [
            plugin for plugin in self.registry.plugins
            if plugin.supports_environment(self.environment) and plugin.has_capability(capability)
        ]

    def _invoke_hook(self, plugin: PluginDefinition, hook: str, call: Callable[[], Any]) -> HookResult:
        try:
            call()
        except Exception as e:
            logger.error(f"Error in {hook} of plugin '{plugin.name}': {e}", exc_info=True)
            return HookResult(plugin.name, hook, e)
        return HookResult(plugin.name, hook)


def _parse_descriptor(source) -> ET.Element:
    try:
        if hasattr(source, "read"):
            return ET.parse(source).getroot()
        if isinstance(source, str) and source.lstrip().startswith("<"):
            return ET.fromstring(source)
        return ET.parse(str(Path(source))).getroot()
    except ET.ParseError as e:
        raise DescriptorError(f"Invalid web descriptor: {e}") from e
    except OSError as e:
        raise DescriptorError(f"Cannot read web descriptor: {e}") from e


def _write_descriptor(root: ET.Element, target) -> None:
    try:
        if hasattr(target, "write"):
            target.write(ET.tostring(root, encoding="unicode"))
        else:
            ET.ElementTree(root).write(str(Path(target)), encoding="utf-8", xml_declaration=True)
    except OSError as e:
        raise DescriptorError(f"Cannot write web descriptor: {e}") from e
