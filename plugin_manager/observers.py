"""
Observer Table

Maps observed plugin names to the plugins that want to hear about them.
"""

import logging
from typing import Dict, Set

from .plugin_definition import PluginDefinition, WILDCARD

logger = logging.getLogger(__name__)


class ObserverTable:
    """Name -> observer set index, including wildcard subscriptions."""

    def __init__(self):
        self._observers: Dict[str, Set[PluginDefinition]] = {}

    def subscribe(self, definition: PluginDefinition) -> None:
        """Record every name the plugin observes."""
        for observed in definition.observed_plugin_names:
            self._observers.setdefault(observed, set()).add(definition)
        if definition.observed_plugin_names:
            logger.debug(f"Plugin '{definition.name}' observes {list(definition.observed_plugin_names)}")

    def remove(self, definition: PluginDefinition) -> None:
        """Drop a plugin from every subscription set."""
        for observers in self._observers.values():
            observers.discard(definition)

    def observers_of(self, definition: PluginDefinition) -> Set[PluginDefinition]:
        """
        Get the plugins observing the given plugin.

        Args:
            definition: The observed plugin

        Returns:
            A new set of observers, never containing the plugin itself
        """
        result = set(self._observers.get(definition.name, ()))
        result.update(self._observers.get(WILDCARD, ()))
        result.discard(definition)
        return result

    def observed_names(self) -> Dict[str, Set[str]]:
        """Get observed name -> observer names, for diagnostics."""
        return {
            name: {observer.name for observer in observers}
            for name, observers in self._observers.items()
            if observers
        }

    def clear(self) -> None:
        self._observers.clear()
