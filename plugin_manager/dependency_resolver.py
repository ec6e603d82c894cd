"""
Dependency Resolver

Answers whether a plugin's hard dependencies are available in the registry.
All checks are pure functions of the current registry state.
"""

from typing import Iterable, List

from .plugin_definition import PluginDefinition
from .plugin_registry import PluginRegistry, UnresolvedDependency
from .versions import is_valid_version


class DependencyResolver:
    """Checks plugin dependencies against a registry."""

    def __init__(self, registry: PluginRegistry):
        self.registry = registry

    def dependencies_satisfied(self, definition: PluginDefinition) -> bool:
        """
        Check that every dependency is registered with an acceptable version.

        Args:
            definition: The plugin to check

        Returns:
            True if all dependencies resolve
        """
        for name in definition.dependency_names:
            if not self.registry.has_plugin(name, definition.dependency_version(name)):
                return False
        return True

    def unresolved_dependencies(self, definition: PluginDefinition) -> List[UnresolvedDependency]:
        """List the dependencies that do not resolve, with the reason for each."""
        unresolved = []
        for name in definition.dependency_names:
            constraint = definition.dependency_version(name)
            result = self.registry.resolve(name, constraint)
            if not result.found:
                unresolved.append(UnresolvedDependency(
                    name=name,
                    constraint=constraint,
                    outcome=result.outcome,
                    found_version=result.found_version,
                ))
        return unresolved

    @staticmethod
    def is_dependent_on(plugin: PluginDefinition, dependency: PluginDefinition) -> bool:
        """
        Check whether the first plugin depends on the second one.

        The dependency's version must satisfy the constraint the first plugin
        declares for it.
        """
        for name in plugin.dependency_names:
            if name == dependency.name and is_valid_version(dependency.version, plugin.dependency_version(name)):
                return True
        return False

    @staticmethod
    def has_delayed_dependencies(plugin: PluginDefinition, pending: Iterable[PluginDefinition]) -> bool:
        """Check whether any dependency of the plugin is itself still pending."""
        pending_names = {other.name for other in pending}
        return any(name in pending_names for name in plugin.dependency_names)
