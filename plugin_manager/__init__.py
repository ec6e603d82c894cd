"""
Plugin Manager System

This package loads plugins in an order that honours their hard dependencies,
version constraints and load-order hints, and lets plugins evict and observe
one another.
"""

from .config import PluginManagerConfig, get_plugin_config
from .environment import Environment
from .exceptions import (
    DescriptorError,
    PluginConstructionError,
    PluginError,
    PluginManagerStateError,
    VersionConstraintError,
)
from .plugin_definition import Plugin, PluginCapability, PluginConfig, PluginDefinition, PluginStatus
from .plugin_manager import HookResult, PluginManager
from .plugin_registry import PluginRegistry

__all__ = [
    'DescriptorError',
    'Environment',
    'HookResult',
    'Plugin',
    'PluginCapability',
    'PluginConfig',
    'PluginConstructionError',
    'PluginDefinition',
    'PluginError',
    'PluginManager',
    'PluginManagerConfig',
    'PluginManagerStateError',
    'PluginRegistry',
    'PluginStatus',
    'VersionConstraintError',
    'get_plugin_config',
]
