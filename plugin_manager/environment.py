"""
Runtime environments a plugin can be restricted to.
"""

from enum import Enum


class Environment(str, Enum):
    """Runtime environment the plugins are loaded for."""
    DEVELOPMENT = "development"
    TEST = "test"
    PRODUCTION = "production"
    CUSTOM = "custom"

    @classmethod
    def from_name(cls, name: str) -> "Environment":
        """
        Resolve an environment from its name or a short alias.

        Unknown names map to CUSTOM.

        Args:
            name: Environment name such as "production", "prod" or "dev"

        Returns:
            The matching Environment
        """
        key = (name or "").strip().lower()
        key = _ALIASES.get(key, key)
        for env in cls:
            if env.value == key:
                return env
        return cls.CUSTOM


_ALIASES = {
    "dev": "development",
    "prod": "production",
    "testing": "test",
}


def environment_key(environment) -> str:
    """
    Canonical lookup key for an environment or environment name.

    Custom environments keep their own name, so "staging" and "qa" stay apart.
    """
    if isinstance(environment, Environment):
        return environment.value
    key = str(environment or "").strip().lower()
    return _ALIASES.get(key, key)
