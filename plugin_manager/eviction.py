"""
Deferred eviction of superseded plugins.
"""

import logging
from typing import List, Tuple

from .plugin_definition import PluginDefinition
from .plugin_registry import PluginRegistry

logger = logging.getLogger(__name__)


def process_delayed_evictions(registry: PluginRegistry) -> List[Tuple[str, str]]:
    """
    Apply every eviction directive collected while plugins registered.

    Runs once after the retry loop over the directives in registration order.
    Directives of a plugin evicted earlier in the pass still apply. Plugins
    that depended on a victim stay registered.

    Args:
        registry: The registry holding the deferred evictions

    Returns:
        (evictor, victim) name pairs for each plugin actually removed
    """
    evicted = []
    for evictor, victim_names in registry.deferred_evictions.items():
        for victim_name in victim_names:
            if evict_plugin(registry, evictor, victim_name) is not None:
                evicted.append((evictor.name, victim_name))
    return evicted


def evict_plugin(registry: PluginRegistry, evictor: PluginDefinition, name: str):
    """Evict a single plugin by name. Returns the victim or None."""
    if name == evictor.name:
        logger.warning(f"Plugin {evictor} lists itself for eviction, ignoring")
        return None
    return registry.evict(evictor, name)
