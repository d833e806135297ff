"""
Application resource mapping: where containers and volumes live in a resource.
"""

from .resolver import (
    CONTAINERS_PATH,
    DEFAULT_MAPPING,
    INIT_CONTAINERS_PATH,
    VOLUMES_PATH,
    ResourceMapping,
    mapping_from_entry,
    mapping_from_rule,
    mapping_rule_name,
    select_version_entry,
)

__all__ = [
    "CONTAINERS_PATH",
    "DEFAULT_MAPPING",
    "INIT_CONTAINERS_PATH",
    "VOLUMES_PATH",
    "ResourceMapping",
    "mapping_from_entry",
    "mapping_from_rule",
    "mapping_rule_name",
    "select_version_entry",
]
