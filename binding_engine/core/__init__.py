"""
Core primitives shared by the engine:
- Tree: nested field access on schema-unknown resources
- Models: decoded ServiceBinding and duck types
- Canonical: deterministic serialization for no-op detection
- Clock: condition timestamps
- Errors: failure taxonomy mapped onto Ready conditions
"""

from .canonical import canonicalize, canonical_json_bytes, canonical_json_str, clone_tree, same_tree, tree_hash
from .clock import FixedClock, SystemClock, format_timestamp
from .errors import (
    AppNameSelectorConflictError,
    ApplicationNotFoundError,
    ApplicationUpdateError,
    BackingServiceNotFoundError,
    BindingError,
    ConfigMapError,
    MappingRuleError,
    MissingApplicationReferenceError,
    MissingContainersError,
    NotAvailableError,
    ProvisionedServiceNotReadyError,
    SecretNotFoundError,
    TreeError,
    ValidationError,
)
from .models import (
    BINDING_API_VERSION,
    BINDING_FINALIZER,
    BINDING_GROUP,
    BINDING_KIND,
    BINDING_PLURAL,
    BINDING_VERSION,
    ApplicationReference,
    EnvMapping,
    GroupVersionKind,
    LabelSelector,
    ObjectReference,
    ProvisionedService,
    ServiceBinding,
)
from .tree import get_nested, get_nested_list, parse_path, set_nested

__all__ = [
    "canonicalize",
    "canonical_json_bytes",
    "canonical_json_str",
    "clone_tree",
    "same_tree",
    "tree_hash",
    "FixedClock",
    "SystemClock",
    "format_timestamp",
    "AppNameSelectorConflictError",
    "ApplicationNotFoundError",
    "ApplicationUpdateError",
    "BackingServiceNotFoundError",
    "BindingError",
    "ConfigMapError",
    "MappingRuleError",
    "MissingApplicationReferenceError",
    "MissingContainersError",
    "NotAvailableError",
    "ProvisionedServiceNotReadyError",
    "SecretNotFoundError",
    "TreeError",
    "ValidationError",
    "BINDING_API_VERSION",
    "BINDING_FINALIZER",
    "BINDING_GROUP",
    "BINDING_KIND",
    "BINDING_PLURAL",
    "BINDING_VERSION",
    "ApplicationReference",
    "EnvMapping",
    "GroupVersionKind",
    "LabelSelector",
    "ObjectReference",
    "ProvisionedService",
    "ServiceBinding",
    "get_nested",
    "get_nested_list",
    "parse_path",
    "set_nested",
]
