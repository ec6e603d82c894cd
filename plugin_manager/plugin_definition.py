"""
Plugin Definition System

Defines the core structures and protocols for plugins managed by the
plugin manager.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Optional, Tuple, TYPE_CHECKING

from .environment import environment_key
from .versions import ANY_VERSION, validate_constraint

if TYPE_CHECKING:
    from .plugin_manager import PluginManager


WILDCARD = "*"


class PluginStatus(Enum):
    """Outcome of a load attempt for a plugin."""
    PENDING = "pending"
    REGISTERED = "registered"
    DISABLED = "disabled"
    FAILED = "failed"
    EVICTED = "evicted"


class PluginCapability(Enum):
    """Optional hooks a plugin implements and the manager should call."""
    CONTEXT_AWARE = "context_aware"
    """Receives the application context once loading finishes."""
    PARENT_CONTEXT_AWARE = "parent_context_aware"
    """Receives the parent context when it registers."""
    WEB_DESCRIPTOR = "web_descriptor"
    """Contributes to the web descriptor document."""
    DYNAMIC_METHODS = "dynamic_methods"
    """Configures dynamic methods once the application context exists."""


@dataclass
class PluginConfig:
    """Declarations a plugin makes about itself."""
    enabled: bool = True
    dependencies: Dict[str, str] = field(default_factory=dict)
    load_before: List[str] = field(default_factory=list)
    load_after: List[str] = field(default_factory=list)
    evicts: List[str] = field(default_factory=list)
    observe: List[str] = field(default_factory=list)
    environments: List[str] = field(default_factory=list)
    excluded_environments: List[str] = field(default_factory=list)


class Plugin(ABC):
    """
    Abstract base class for plugins.

    All plugins must inherit from this class and implement the required
    properties and get_config(). Every hook has a no-op default; a plugin that
    overrides one must also list the matching capability in `capabilities`.
    """

    capabilities: FrozenSet[PluginCapability] = frozenset()

    def __init__(self):
        self.manager: Optional['PluginManager'] = None
        self.application_context: Any = None
        self.parent_context: Any = None

    @property
    @abstractmethod
    def plugin_name(self) -> str:
        """Return the unique name of this plugin."""
        pass

    @property
    @abstractmethod
    def plugin_version(self) -> str:
        """Return the version of this plugin."""
        pass

    @abstractmethod
    def get_config(self) -> PluginConfig:
        """Return the declarations for this plugin."""
        pass

    # Optional hooks
    def set_manager(self, manager: 'PluginManager') -> None:
        """Called when the plugin registers with a manager."""
        self.manager = manager

    def set_application_context(self, context: Any) -> None:
        """Called after loading for CONTEXT_AWARE plugins."""
        self.application_context = context

    def set_parent_context(self, context: Any) -> None:
        """Called at registration for PARENT_CONTEXT_AWARE plugins."""
        self.parent_context = context

    def do_with_web_descriptor(self, root: Any) -> None:
        """Mutate the web descriptor document root in place."""
        pass

    def do_with_dynamic_methods(self, context: Any) -> None:
        """Configure dynamic methods for the given application context."""
        pass

    def on_event(self, event: Dict[str, Any]) -> None:
        """Called when an observed plugin raises an event."""
        pass

    def refresh(self) -> None:
        """Called when the plugin is asked to reload its own state."""
        pass

    def __str__(self) -> str:
        return f"{self.plugin_name} ({self.plugin_version})"


@dataclass(eq=False)
class PluginDefinition:
    """
    Immutable snapshot of a plugin's identity and declarations.

    Equality is object identity, so two definitions sharing a name are still
    different plugins.
    """
    plugin: Plugin
    name: str
    version: str
    dependencies: Tuple[Tuple[str, str], ...]
    load_before_names: Tuple[str, ...]
    load_after_names: Tuple[str, ...]
    eviction_names: Tuple[str, ...]
    observed_plugin_names: Tuple[str, ...]
    enabled: bool
    environments: FrozenSet[str]
    excluded_environments: FrozenSet[str]

    @property
    def dependency_names(self) -> Tuple[str, ...]:
        """Names of the hard dependencies, in declaration order."""
        return tuple(name for name, _ in self.dependencies)

    def dependency_version(self, name: str) -> str:
        """Get the version constraint declared for a dependency."""
        for dep_name, constraint in self.dependencies:
            if dep_name == name:
                return constraint
        return ANY_VERSION

    def supports_environment(self, environment) -> bool:
        """Check whether the plugin may run in the given environment."""
        key = environment_key(environment)
        if key in self.excluded_environments:
            return False
        return not self.environments or key in self.environments

    def has_capability(self, capability: PluginCapability) -> bool:
        """Check whether the plugin implements an optional hook."""
        return capability in self.plugin.capabilities

    @property
    def plugin_class(self) -> type:
        return type(self.plugin)

    @property
    def plugin_class_name(self) -> str:
        cls = self.plugin_class
        return f"{cls.__module__}.{cls.__qualname__}"

    def notify(self, event: Dict[str, Any]) -> None:
        """Deliver an event to the underlying plugin."""
        self.plugin.on_event(event)

    def __str__(self) -> str:
        return f"{self.name} ({self.version})"

    def __repr__(self) -> str:
        return f"PluginDefinition(name={self.name!r}, version={self.version!r})"

    @classmethod
    def from_plugin(cls, plugin: Plugin) -> 'PluginDefinition':
        """
        Create a PluginDefinition from a Plugin instance.

        Raises:
            VersionConstraintError: If a dependency constraint is malformed
        """
        config = plugin.get_config()
        dependencies = []
        for dep_name, constraint in config.dependencies.items():
            constraint = constraint or ANY_VERSION
            validate_constraint(constraint)
            dependencies.append((dep_name, constraint))

        return cls(
            plugin=plugin,
            name=plugin.plugin_name,
            version=str(plugin.plugin_version),
            dependencies=tuple(dependencies),
            load_before_names=tuple(config.load_before),
            load_after_names=tuple(config.load_after),
            eviction_names=tuple(config.evicts),
            observed_plugin_names=tuple(config.observe),
            enabled=config.enabled,
            environments=frozenset(environment_key(env) for env in config.environments),
            excluded_environments=frozenset(environment_key(env) for env in config.excluded_environments),
        )
