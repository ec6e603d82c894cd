"""
Plugin Manager Exceptions

Errors raised by the plugin manager. Per-plugin outcomes (disabled, failed,
evicted) are recorded in the registry instead of being raised.
"""


class PluginError(Exception):
    """Base exception for plugin manager errors"""
    pass


class PluginConstructionError(PluginError):
    """Raised when a candidate cannot be turned into a plugin definition.

    This aborts the whole load.
    """
    pass


class VersionConstraintError(PluginError, ValueError):
    """Raised when a version constraint cannot be parsed"""
    pass


class PluginManagerStateError(PluginError):
    """Raised when an operation needs plugins that have not been loaded yet"""
    pass


class DescriptorError(PluginError):
    """Raised when a web descriptor cannot be read, parsed or written"""
    pass
