"""
Plugin Filters

Select which discovered plugins are actually attempted. The same filter is
applied to core and user plugins together.
"""

import logging
from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, Optional, Set, TYPE_CHECKING

from .plugin_definition import PluginDefinition

if TYPE_CHECKING:
    from .config import PluginManagerConfig

logger = logging.getLogger(__name__)


class PluginFilter(ABC):
    """Reduces or reorders the candidate plugin list."""

    @abstractmethod
    def filter_plugin_list(self, plugins: List[PluginDefinition]) -> List[PluginDefinition]:
        pass


class IdentityPluginFilter(PluginFilter):
    """Keeps every plugin."""

    def filter_plugin_list(self, plugins: List[PluginDefinition]) -> List[PluginDefinition]:
        return list(plugins)


class IncludingPluginFilter(PluginFilter):
    """
    Keeps the named plugins and everything they transitively depend on.

    Input order is preserved.
    """

    def __init__(self, names: Iterable[str]):
        self.names: Set[str] = set(names)

    def filter_plugin_list(self, plugins: List[PluginDefinition]) -> List[PluginDefinition]:
        by_name = _index_by_name(plugins)
        keep: Set[str] = set()
        stack = [name for name in self.names if name in by_name]

        for name in self.names - set(by_name):
            logger.warning(f"Included plugin '{name}' was not found among the candidates")

        while stack:
            name = stack.pop()
            if name in keep:
                continue
            keep.add(name)
            for dep in by_name[name].dependency_names:
                if dep in by_name and dep not in keep:
                    stack.append(dep)

        return [plugin for plugin in plugins if plugin.name in keep]


class ExcludingPluginFilter(PluginFilter):
    """
    Drops the named plugins and every plugin that transitively depends on them.
    """

    def __init__(self, names: Iterable[str]):
        self.names: Set[str] = set(names)

    def filter_plugin_list(self, plugins: List[PluginDefinition]) -> List[PluginDefinition]:
        excluded = set(self.names)
        changed = True
        while changed:
            changed = False
            for plugin in plugins:
                if plugin.name in excluded:
                    continue
                if any(dep in excluded for dep in plugin.dependency_names):
                    logger.info(f"Excluding plugin '{plugin.name}' because a dependency is excluded")
                    excluded.add(plugin.name)
                    changed = True

        return [plugin for plugin in plugins if plugin.name not in excluded]


def _index_by_name(plugins: List[PluginDefinition]) -> Dict[str, PluginDefinition]:
    by_name: Dict[str, PluginDefinition] = {}
    for plugin in plugins:
        by_name.setdefault(plugin.name, plugin)
    return by_name


def _split_names(value: Optional[str]) -> List[str]:
    if not value:
        return []
    return [name.strip() for name in value.split(",") if name.strip()]


def plugin_filter_from_config(config: 'PluginManagerConfig') -> PluginFilter:
    """
    Build the filter described by the configuration.

    Includes take precedence over excludes; with neither set every plugin is kept.
    """
    includes = _split_names(config.includes)
    if includes:
        return IncludingPluginFilter(includes)

    excludes = _split_names(config.excludes)
    if excludes:
        return ExcludingPluginFilter(excludes)

    return IdentityPluginFilter()
