"""
Binding injection: projected volume construction and application mutation.
"""

from .containers import MATCH_LEGACY, MATCH_SET, MATCHING_MODES, ContainerView, container_selected
from .mutator import bind_application, unbind_application
from .projection import (
    DEFAULT_BINDING_ROOT,
    SERVICE_BINDING_ROOT,
    Projection,
    build_config_map,
    build_projection,
    owned_entry,
    owned_volume_name,
    secret_value,
    volume_name_prefix,
)

__all__ = [
    "MATCH_LEGACY",
    "MATCH_SET",
    "MATCHING_MODES",
    "ContainerView",
    "container_selected",
    "bind_application",
    "unbind_application",
    "DEFAULT_BINDING_ROOT",
    "SERVICE_BINDING_ROOT",
    "Projection",
    "build_config_map",
    "build_projection",
    "owned_entry",
    "owned_volume_name",
    "secret_value",
    "volume_name_prefix",
]
