"""
Load Scheduler

Registers plugins in two phases: an initial pass over every candidate in
discovery order, then a delayed retry loop over the plugins the initial pass
could not register yet.
"""

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Deque, Iterable, List, Tuple

from .dependency_resolver import DependencyResolver
from .plugin_definition import PluginDefinition
from .plugin_registry import PluginRegistry

logger = logging.getLogger(__name__)


@dataclass
class SchedulerResult:
    """Outcome of a scheduling run."""
    registered: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)
    stall_breaks: int = 0
    iterations: int = 0


class LoadScheduler:
    """
    Decides when each candidate plugin registers.

    The scheduler owns the pending queue and mutates the registry it is given.
    """

    def __init__(self,
                 registry: PluginRegistry,
                 environment,
                 parent_context: Any = None,
                 max_retry_factor: int = 4):
        self.registry = registry
        self.environment = environment
        self.parent_context = parent_context
        self.max_retry_factor = max(1, max_retry_factor)
        self.resolver = DependencyResolver(registry)
        self._pending: Deque[PluginDefinition] = deque()
        self._result = SchedulerResult()

    @property
    def pending(self) -> Tuple[PluginDefinition, ...]:
        return tuple(self._pending)

    def schedule(self, candidates: Iterable[PluginDefinition]) -> SchedulerResult:
        """
        Register every candidate that can be registered.

        Args:
            candidates: Plugin definitions in discovery order (core first)

        Returns:
            What was registered, skipped and failed
        """
        self._result = SchedulerResult()

        for definition in candidates:
            self.attempt_plugin_load(definition)

        if self._pending:
            self.load_delayed_plugins()

        return self._result

    def attempt_plugin_load(self, definition: PluginDefinition) -> None:
        """Register a plugin now, or queue it for the delayed pass."""
        if self.resolver.dependencies_satisfied(definition) and self.none_to_load_before(definition):
            self._register(definition)
        else:
            logger.debug(f"Delaying load of plugin '{definition.name}'")
            self.registry.mark_pending(definition)
            self._pending.append(definition)

    def none_to_load_before(self, definition: PluginDefinition) -> bool:
        """Check that every plugin this one should load after is already registered."""
        for name in definition.load_after_names:
            if self.registry.get_plugin(name) is None:
                return False
        return True

    def has_valid_plugins_to_load_before(self, definition: PluginDefinition) -> bool:
        """
        Check whether a pending plugin this one loads after is worth waiting for.

        The first pending plugin named in the load-after hints decides: it is
        worth waiting for if its own dependencies already resolve or are still
        pending themselves.
        """
        for other in self._pending:
            for name in definition.load_after_names:
                if other.name == name:
                    return (self.resolver.has_delayed_dependencies(other, self._pending)
                            or self.resolver.dependencies_satisfied(other))
        return False

    def load_delayed_plugins(self) -> None:
        """
        Retry the plugins that were not registered in the initial pass.

        A full turn of the queue without any plugin registering or failing is
        a stall; it is broken by registering the first plugin whose hard
        dependencies resolve, or by failing every remaining plugin when none do.
        """
        total = len(self._pending)
        max_iterations = self.max_retry_factor * total * total + total
        stalled = 0

        while self._pending:
            self._result.iterations += 1
            if self._result.iterations > max_iterations:
                logger.warning(f"Giving up on {len(self._pending)} delayed plugins after "
                               f"{max_iterations} attempts")
                self._fail_remaining()
                break

            plugin = self._pending.popleft()
            if self._try_delayed(plugin):
                stalled = 0
                continue

            self._pending.append(plugin)
            stalled += 1
            if stalled >= len(self._pending):
                self._break_stall()
                stalled = 0

    def _try_delayed(self, plugin: PluginDefinition) -> bool:
        """Process one delayed plugin. Returns False if it has to wait again."""
        if self.resolver.dependencies_satisfied(plugin):
            if self.has_valid_plugins_to_load_before(plugin):
                logger.debug(f"Plugin '{plugin.name}' waits for {list(plugin.load_after_names)}")
                return False
            self._register(plugin)
            return True

        # Still unresolved. Keep waiting only if a dependency is itself pending.
        for remaining in self._pending:
            if self.resolver.is_dependent_on(plugin, remaining):
                return False

        self._fail(plugin)
        return True

    def _break_stall(self) -> None:
        for plugin in self._pending:
            if self.resolver.dependencies_satisfied(plugin):
                self._pending.remove(plugin)
                logger.warning(f"Load order hints of plugin '{plugin.name}' cannot be honoured "
                               f"(waiting on {list(plugin.load_after_names)}), loading it anyway")
                self._result.stall_breaks += 1
                self._register(plugin)
                return

        logger.warning(f"Plugins {[plugin.name for plugin in self._pending]} depend on each other "
                       f"and cannot be resolved")
        self._fail_remaining()

    def _fail_remaining(self) -> None:
        while self._pending:
            self._fail(self._pending.popleft())

    def _register(self, definition: PluginDefinition) -> None:
        if self.registry.register(definition, self.environment, self.parent_context):
            self._result.registered.append(definition.name)
        else:
            self._result.skipped.append(definition.name)

    def _fail(self, definition: PluginDefinition) -> None:
        unresolved = self.resolver.unresolved_dependencies(definition)
        self.registry.mark_failed(definition, unresolved)
        self._result.failed.append(definition.name)
        logger.warning(f"Plugin [{definition.name}] cannot be loaded because its dependencies "
                       f"[{', '.join(str(dep) for dep in unresolved)}] cannot be resolved")
