"""
Soft-order adjustment of the final plugin list.
"""

import logging
from typing import List, Sequence

from .plugin_definition import PluginDefinition
from .plugin_registry import PluginRegistry

logger = logging.getLogger(__name__)


def _index_of(plugins: List[PluginDefinition], registry: PluginRegistry, name: str) -> int:
    target = registry.get_plugin(name)
    if target is None:
        return -1
    try:
        return plugins.index(target)
    except ValueError:
        return -1


def sort_plugins(to_sort: Sequence[PluginDefinition], registry: PluginRegistry) -> List[PluginDefinition]:
    """
    Move plugins to honour their load-before and load-after hints.

    Each plugin is visited once, in the original order. A plugin sitting after
    one of its load-before targets is moved right in front of it; a plugin
    sitting before one of its load-after targets is moved right behind it.
    Hints naming unregistered plugins are ignored. Conflicting hints are not
    detected, the last move wins.

    Args:
        to_sort: Plugins in registration order
        registry: Registry used to resolve hint names

    Returns:
        A new list in adjusted order
    """
    new_list = list(to_sort)

    for plugin in to_sort:
        for load_before in plugin.load_before_names:
            i = new_list.index(plugin)
            j = _index_of(new_list, registry, load_before)
            if j > -1 and i > j:
                new_list.remove(plugin)
                new_list.insert(j, plugin)
                logger.debug(f"Moved plugin '{plugin.name}' before '{load_before}'")

        for load_after in plugin.load_after_names:
            i = new_list.index(plugin)
            j = _index_of(new_list, registry, load_after)
            if j > -1 and i < j:
                new_list.remove(plugin)
                new_list.insert(j, plugin)
                logger.debug(f"Moved plugin '{plugin.name}' after '{load_after}'")

    return new_list
