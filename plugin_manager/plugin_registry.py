"""
Plugin Registry

Holds registered plugins by name and by originating class, keeps the
registration order, and records failed, disabled and evicted plugins.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, TYPE_CHECKING

from .observers import ObserverTable
from .plugin_definition import PluginCapability, PluginDefinition, PluginStatus
from .versions import is_valid_version

if TYPE_CHECKING:
    from .plugin_manager import PluginManager

logger = logging.getLogger(__name__)


class LookupOutcome(Enum):
    FOUND = "found"
    NOT_FOUND = "not_found"
    VERSION_MISMATCH = "version_mismatch"


@dataclass(frozen=True)
class LookupResult:
    """Result of a version-aware lookup that tells missing from mismatched."""
    outcome: LookupOutcome
    plugin: Optional[PluginDefinition] = None
    found_version: Optional[str] = None

    @property
    def found(self) -> bool:
        return self.outcome is LookupOutcome.FOUND


@dataclass(frozen=True)
class UnresolvedDependency:
    """A dependency that kept a plugin from registering."""
    name: str
    constraint: str
    outcome: LookupOutcome
    found_version: Optional[str] = None

    def __str__(self) -> str:
        if self.outcome is LookupOutcome.VERSION_MISMATCH:
            return f"{self.name} {self.constraint} (found {self.found_version})"
        return f"{self.name} {self.constraint} (missing)"


class PluginRegistry:
    """
    Registry of loaded plugins.

    Owned by a PluginManager and passed explicitly to the scheduler and the
    eviction processor; there is no global instance.
    """

    def __init__(self, manager: Optional['PluginManager'] = None):
        self.manager = manager
        self.observers = ObserverTable()
        self._plugins: Dict[str, PluginDefinition] = {}
        self._plugin_list: List[PluginDefinition] = []
        self._class_name_to_plugin: Dict[str, PluginDefinition] = {}
        self._failed: Dict[str, PluginDefinition] = {}
        self._failure_reasons: Dict[str, List[UnresolvedDependency]] = {}
        self._deferred_evictions: Dict[PluginDefinition, Tuple[str, ...]] = {}
        self._evicted: Dict[str, str] = {}
        self._statuses: Dict[str, PluginStatus] = {}

    # Registration

    def can_register(self, definition: PluginDefinition, environment) -> bool:
        """Check whether a plugin is enabled for the current environment."""
        return definition.enabled and definition.supports_environment(environment)

    def register(self, definition: PluginDefinition, environment, parent_context: Any = None) -> bool:
        """
        Register a plugin whose dependencies are resolved.

        Disabled plugins, plugins that do not support the environment, evicted
        names and names already registered or failed are skipped without raising.

        Args:
            definition: The plugin to register
            environment: The current runtime environment
            parent_context: Handed to PARENT_CONTEXT_AWARE plugins

        Returns:
            True if the plugin was registered
        """
        name = definition.name

        if not self.can_register(definition, environment):
            logger.info(f"Plugin {definition} is disabled and was not loaded")
            self._statuses[name] = PluginStatus.DISABLED
            return False

        if name in self._evicted:
            logger.info(f"Plugin {definition} was evicted by '{self._evicted[name]}' and was not loaded again")
            return False

        if name in self._plugins:
            logger.warning(f"Plugin '{name}' is already registered, skipping duplicate {definition}")
            return False

        if name in self._failed:
            logger.warning(f"Plugin '{name}' already failed to load, skipping duplicate {definition}")
            return False

        if definition.has_capability(PluginCapability.PARENT_CONTEXT_AWARE):
            definition.plugin.set_parent_context(parent_context)
        if self.manager is not None:
            definition.plugin.set_manager(self.manager)

        if definition.eviction_names:
            self._deferred_evictions[definition] = definition.eviction_names

        self.observers.subscribe(definition)
        self._plugin_list.append(definition)
        self._plugins[name] = definition
        self._class_name_to_plugin[definition.plugin_class_name] = definition
        self._statuses[name] = PluginStatus.REGISTERED

        logger.info(f"Plugin [{name}] with version [{definition.version}] loaded successfully")
        return True

    def mark_pending(self, definition: PluginDefinition) -> None:
        self._statuses.setdefault(definition.name, PluginStatus.PENDING)

    def mark_failed(self, definition: PluginDefinition, unresolved: List[UnresolvedDependency]) -> None:
        """Record a plugin whose dependencies never resolved."""
        name = definition.name
        if name in self._plugins:
            logger.warning(f"Plugin {definition} could not be loaded, a plugin named '{name}' is already registered")
            return
        self._failed[name] = definition
        self._failure_reasons[name] = list(unresolved)
        self._statuses[name] = PluginStatus.FAILED

    # Eviction

    @property
    def deferred_evictions(self) -> Dict[PluginDefinition, Tuple[str, ...]]:
        """Evictor -> victim names, in registration order."""
        return dict(self._deferred_evictions)

    def evict(self, evictor: PluginDefinition, name: str) -> Optional[PluginDefinition]:
        """
        Remove a registered plugin by directive of another plugin.

        Plugins depending on the victim are not re-validated.

        Returns:
            The evicted plugin, or None if no plugin with that name is registered
        """
        victim = self._plugins.pop(name, None)
        if victim is None:
            return None

        self._plugin_list.remove(victim)
        if self._class_name_to_plugin.get(victim.plugin_class_name) is victim:
            del self._class_name_to_plugin[victim.plugin_class_name]
        self._deferred_evictions.pop(victim, None)
        self.observers.remove(victim)
        self._evicted[name] = evictor.name
        self._statuses[name] = PluginStatus.EVICTED

        logger.info(f"Plugin {victim} was evicted by {evictor}")
        return victim

    @property
    def evicted(self) -> Dict[str, str]:
        """Victim name -> evictor name."""
        return dict(self._evicted)

    # Lookup

    def get_plugin(self, name: str, version: Optional[str] = None) -> Optional[PluginDefinition]:
        """
        Get a registered plugin by name, optionally matching a version constraint.

        A missing plugin and a version mismatch both return None; use resolve()
        to tell them apart.
        """
        if version is None:
            return self._plugins.get(name)
        return self.lookup_with_version(name, version)

    def lookup_with_version(self, name: str, constraint: str) -> Optional[PluginDefinition]:
        plugin = self._plugins.get(name)
        if plugin is not None and is_valid_version(plugin.version, constraint):
            return plugin
        return None

    def resolve(self, name: str, constraint: str) -> LookupResult:
        """Version-aware lookup that reports why nothing was found."""
        plugin = self._plugins.get(name)
        if plugin is None:
            return LookupResult(LookupOutcome.NOT_FOUND)
        if not is_valid_version(plugin.version, constraint):
            return LookupResult(LookupOutcome.VERSION_MISMATCH, found_version=plugin.version)
        return LookupResult(LookupOutcome.FOUND, plugin=plugin, found_version=plugin.version)

    def has_plugin(self, name: str, version: Optional[str] = None) -> bool:
        return self.get_plugin(name, version) is not None

    def get_plugin_for_class(self, plugin_class: type) -> Optional[PluginDefinition]:
        """Get the registered plugin created from the given class."""
        key = f"{plugin_class.__module__}.{plugin_class.__qualname__}"
        return self._class_name_to_plugin.get(key)

    @property
    def plugins(self) -> Tuple[PluginDefinition, ...]:
        """Registered plugins in their current order."""
        return tuple(self._plugin_list)

    def index_of(self, name: str) -> int:
        plugin = self._plugins.get(name)
        if plugin is None:
            return -1
        return self._plugin_list.index(plugin)

    def reorder(self, ordered: List[PluginDefinition]) -> None:
        """Replace the registration order with a permutation of it."""
        if set(ordered) != set(self._plugin_list) or len(ordered) != len(self._plugin_list):
            raise ValueError("New order must contain exactly the registered plugins")
        self._plugin_list = list(ordered)

    @property
    def failed_plugins(self) -> Dict[str, PluginDefinition]:
        return dict(self._failed)

    def get_failure_reasons(self, name: str) -> List[UnresolvedDependency]:
        return list(self._failure_reasons.get(name, []))

    def get_status(self, name: str) -> Optional[PluginStatus]:
        return self._statuses.get(name)

    def get_dependents(self, name: str) -> List[str]:
        """Get registered plugins that depend on the given plugin name."""
        return [
            plugin.name for plugin in self._plugin_list
            if name in plugin.dependency_names
        ]

    def get_plugin_info(self, name: str) -> Optional[Dict]:
        """Get comprehensive information about a plugin."""
        plugin = self._plugins.get(name) or self._failed.get(name)
        if not plugin:
            return None

        status = self._statuses.get(name)
        return {
            'name': plugin.name,
            'version': plugin.version,
            'status': status.value if status else None,
            'class': plugin.plugin_class_name,
            'dependencies': {dep: plugin.dependency_version(dep) for dep in plugin.dependency_names},
            'dependents': self.get_dependents(name),
            'load_before': list(plugin.load_before_names),
            'load_after': list(plugin.load_after_names),
            'evicts': list(plugin.eviction_names),
            'observes': list(plugin.observed_plugin_names),
            'unresolved': [str(dep) for dep in self._failure_reasons.get(name, [])],
        }

    def clear(self) -> None:
        """Forget every plugin (for testing)."""
        self.observers.clear()
        self._plugins.clear()
        self._plugin_list.clear()
        self._class_name_to_plugin.clear()
        self._failed.clear()
        self._failure_reasons.clear()
        self._deferred_evictions.clear()
        self._evicted.clear()
        self._statuses.clear()
