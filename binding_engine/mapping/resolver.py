"""
Application resource mapping.

Decides which tree paths of an application resource hold its container lists
and its volume list. A cluster-scoped ClusterApplicationResourceMapping named
"<plural>.<group>" can override the pod-template convention per API version.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from ..core.errors import MappingRuleError, TreeError
from ..core.tree import Path, format_path, parse_path

CONTAINERS_PATH: Path = ("spec", "template", "spec", "containers")
INIT_CONTAINERS_PATH: Path = ("spec", "template", "spec", "initContainers")
VOLUMES_PATH: Path = ("spec", "template", "spec", "volumes")
ENV_PATH: Path = ("env",)
VOLUME_MOUNTS_PATH: Path = ("volumeMounts",)

WILDCARD_VERSION = "*"


@dataclass(frozen=True)
class ResourceMapping:
    """
    Resolved paths for one application kind/version.

    container_paths[0] is the primary path: it must exist on every
    application. Later paths (initContainers) are optional.
    env_path and volume_mounts_path are relative to each container.
    """
    container_paths: Tuple[Path, ...] = (CONTAINERS_PATH, INIT_CONTAINERS_PATH)
    volumes_path: Path = VOLUMES_PATH
    env_path: Path = ENV_PATH
    volume_mounts_path: Path = VOLUME_MOUNTS_PATH
    source: str = "default"

    def describe(self) -> Dict[str, Any]:
        return {
            "source": self.source,
            "containers": [format_path(p) for p in self.container_paths],
            "volumes": format_path(self.volumes_path),
            "env": format_path(self.env_path),
            "volumeMounts": format_path(self.volume_mounts_path),
        }


DEFAULT_MAPPING = ResourceMapping()


def mapping_rule_name(plural: str, group: str) -> str:
    """Name of the mapping rule for a resource, e.g. "deployments.apps"."""
    return f"{plural}.{group}" if group else plural


def select_version_entry(rule: Dict[str, Any], version: str) -> Optional[Dict[str, Any]]:
    """Exact version match wins over a "*" entry."""
    versions = (rule.get("spec") or {}).get("versions") or []
    wildcard = None
    for entry in versions:
        entry_version = (entry or {}).get("version")
        if entry_version == version:
            return entry
        if entry_version == WILDCARD_VERSION and wildcard is None:
            wildcard = entry
    return wildcard


def _container_path(item: Any) -> str:
    if isinstance(item, dict):
        return item.get("path") or ""
    return item if isinstance(item, str) else ""


def mapping_from_entry(entry: Dict[str, Any], source: str) -> ResourceMapping:
    """
    Build a ResourceMapping from one version entry of a mapping rule.

    Raises:
        MappingRuleError: containers declared together with env/volumeMounts
            override paths, or an unparsable path
    """
    containers = entry.get("containers") or []
    env = entry.get("env")
    volume_mounts = entry.get("volumeMounts")

    if containers and (env or volume_mounts):
        raise MappingRuleError(
            f"{source}: version {entry.get('version')!r} declares containers "
            "together with env/volumeMounts overrides"
        )

    try:
        container_paths = tuple(parse_path(_container_path(c)) for c in containers)
        volumes_path = parse_path(entry["volumes"]) if entry.get("volumes") else VOLUMES_PATH
        env_path = parse_path(env) if env else ENV_PATH
        volume_mounts_path = parse_path(volume_mounts) if volume_mounts else VOLUME_MOUNTS_PATH
    except TreeError as e:
        raise MappingRuleError(f"{source}: {e}") from e

    return ResourceMapping(
        container_paths=container_paths or DEFAULT_MAPPING.container_paths,
        volumes_path=volumes_path,
        env_path=env_path,
        volume_mounts_path=volume_mounts_path,
        source=source,
    )


def mapping_from_rule(rule: Optional[Dict[str, Any]], version: str) -> ResourceMapping:
    """
    Resolve the mapping for an API version.

    No rule, or no matching version entry, falls back to the pod-template
    convention.
    """
    if not rule:
        return DEFAULT_MAPPING
    entry = select_version_entry(rule, version)
    if entry is None:
        return DEFAULT_MAPPING
    name = (rule.get("metadata") or {}).get("name", "mapping")
    return mapping_from_entry(entry, source=name)
