"""
Plugin Loader

Turns discovered candidates into plugin definitions. A candidate is a Plugin
subclass, a Plugin instance, or the path of a JSON manifest describing a
declarative plugin. Any construction failure aborts the whole load.
"""

import json
import logging
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .exceptions import PluginConstructionError, VersionConstraintError
from .plugin_definition import Plugin, PluginConfig, PluginDefinition

logger = logging.getLogger(__name__)

PluginCandidate = Union[type, Plugin, Path, str]

MANIFEST_SUFFIX = ".json"


class PluginManifest(BaseModel):
    """Declarative plugin description read from a JSON file."""

    name: str = Field(description="Unique plugin name")
    version: str = Field(description="Plugin version")
    enabled: bool = True
    dependencies: Dict[str, str] = Field(default_factory=dict)
    load_before: List[str] = Field(default_factory=list)
    load_after: List[str] = Field(default_factory=list)
    evicts: List[str] = Field(default_factory=list)
    observe: List[str] = Field(default_factory=list)
    environments: List[str] = Field(default_factory=list)
    excluded_environments: List[str] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")

    @field_validator('name', 'version')
    @classmethod
    def _not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be empty")
        return v.strip()


class ManifestPlugin(Plugin):
    """Plugin built from a PluginManifest. It has no hooks of its own."""

    def __init__(self, manifest: PluginManifest, source: Optional[Path] = None):
        super().__init__()
        self.manifest = manifest
        self.source = source
        self.events: List[Dict] = []

    @property
    def plugin_name(self) -> str:
        return self.manifest.name

    @property
    def plugin_version(self) -> str:
        return self.manifest.version

    def get_config(self) -> PluginConfig:
        return PluginConfig(
            enabled=self.manifest.enabled,
            dependencies=dict(self.manifest.dependencies),
            load_before=list(self.manifest.load_before),
            load_after=list(self.manifest.load_after),
            evicts=list(self.manifest.evicts),
            observe=list(self.manifest.observe),
            environments=list(self.manifest.environments),
            excluded_environments=list(self.manifest.excluded_environments),
        )

    def on_event(self, event: Dict) -> None:
        self.events.append(event)


def load_manifest(path: Union[Path, str]) -> ManifestPlugin:
    """
    Read a JSON manifest into a ManifestPlugin.

    Raises:
        PluginConstructionError: If the file cannot be read or is not a valid manifest
    """
    path = Path(path)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError) as e:
        raise PluginConstructionError(f"Error reading plugin [{path.name}]: {e}") from e
    except json.JSONDecodeError as e:
        raise PluginConstructionError(f"Error parsing plugin [{path.name}]: {e}") from e

    if not isinstance(data, dict):
        raise PluginConstructionError(f"Error parsing plugin [{path.name}]: manifest must be a JSON object")

    try:
        manifest = PluginManifest(**data)
    except ValidationError as e:
        raise PluginConstructionError(f"Invalid plugin manifest [{path.name}]: {e}") from e
    return ManifestPlugin(manifest, source=path)


def build_plugin(candidate: PluginCandidate) -> PluginDefinition:
    """
    Build a plugin definition from a discovered candidate.

    Args:
        candidate: Plugin subclass, Plugin instance, or manifest path

    Returns:
        The plugin definition

    Raises:
        PluginConstructionError: If the candidate cannot be turned into a plugin
    """
    if isinstance(candidate, (str, Path)):
        plugin = load_manifest(candidate)
    elif isinstance(candidate, Plugin):
        plugin = candidate
    elif isinstance(candidate, type) and issubclass(candidate, Plugin):
        try:
            plugin = candidate()
        except Exception as e:
            raise PluginConstructionError(f"Error creating plugin [{candidate.__name__}]: {e}") from e
    else:
        raise PluginConstructionError(f"Cannot create a plugin from {candidate!r}")

    try:
        return PluginDefinition.from_plugin(plugin)
    except VersionConstraintError as e:
        raise PluginConstructionError(f"Invalid dependency declaration in plugin [{plugin.plugin_name}]: {e}") from e


def build_plugins(candidates: Iterable[PluginCandidate]) -> List[PluginDefinition]:
    """Build definitions for every candidate, stopping at the first failure."""
    return [build_plugin(candidate) for candidate in candidates]


def discover_manifests(search_paths: Iterable[Union[Path, str]]) -> List[Path]:
    """
    Discover plugin manifests in specified paths.

    Args:
        search_paths: Directories (searched recursively) or single manifest files

    Returns:
        Manifest paths, sorted within each search path and de-duplicated
    """
    paths: List[Path] = []
    for search_path in search_paths:
        root = Path(search_path)
        if not root.exists():
            logger.warning(f"Plugin search path does not exist: {root}")
            continue
        if root.is_file():
            paths.append(root)
        else:
            paths.extend(sorted(root.rglob(f"*{MANIFEST_SUFFIX}")))

    seen = set()
    unique: List[Path] = []
    for path in paths:
        key = str(path.resolve())
        if key in seen:
            continue
        seen.add(key)
        unique.append(path)

    logger.info(f"Discovered {len(unique)} plugin manifests")
    return unique
