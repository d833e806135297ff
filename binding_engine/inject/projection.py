"""
Projection builder.

Computes everything a reconciliation pass derives from (binding, secret):
the projected volume, its deterministic name, the mount directory and the
resolved environment values. The result is an immutable Projection that is
passed down the call chain; nothing is kept on long-lived objects.
"""

import base64
import binascii
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from ..core.models import BINDING_API_VERSION, BINDING_KIND, ServiceBinding

SERVICE_BINDING_ROOT = "SERVICE_BINDING_ROOT"
DEFAULT_BINDING_ROOT = "/bindings"
VOLUME_NAME_PREFIX_MAX = 56


def volume_name_prefix(binding_name: str) -> str:
    return binding_name[:VOLUME_NAME_PREFIX_MAX]


def volume_name(prefix: str, secret_resource_version: str) -> str:
    """
    Volume name changes whenever the secret changes, which forces a remount.
    """
    return f"{prefix}-{secret_resource_version}"


def owned_volume_name(name: Any, prefix: str) -> bool:
    """
    True when `name` is "<prefix>-<resourceVersion>".

    The whole part before the last "-" must equal the prefix, so binding
    "db" does not claim the "db-replica-5" entries of another binding.
    """
    if not isinstance(name, str) or "-" not in name:
        return False
    head, version = name.rsplit("-", 1)
    return head == prefix and version.isdigit()


def owned_entry(entry: Any, prefix: str) -> bool:
    """Volume or volume mount entry generated for the binding with this prefix."""
    return isinstance(entry, dict) and owned_volume_name(entry.get("name"), prefix)


def secret_value(secret: Dict[str, Any], key: str) -> str:
    """
    Decoded value of a secret data key; missing keys yield "".

    `data` is base64 encoded as served by the API server. `stringData` is
    honoured for manifests that were never round-tripped through a cluster.
    """
    data = secret.get("data") or {}
    if key in data and data[key] is not None:
        raw = data[key]
        try:
            return base64.b64decode(raw, validate=True).decode("utf-8", errors="replace")
        except (binascii.Error, ValueError):
            return str(raw)
    string_data = secret.get("stringData") or {}
    value = string_data.get(key)
    return "" if value is None else str(value)


def owner_reference(binding: ServiceBinding) -> Dict[str, Any]:
    raw = binding.raw or {}
    return {
        "apiVersion": raw.get("apiVersion") or BINDING_API_VERSION,
        "kind": raw.get("kind") or BINDING_KIND,
        "name": binding.name,
        "uid": binding.uid,
        "controller": True,
        "blockOwnerDeletion": True,
    }


def config_map_name(binding: ServiceBinding) -> str:
    return binding.name


def build_config_map(binding: ServiceBinding) -> Dict[str, Any]:
    """
    Generated ConfigMap carrying the type/provider overrides.

    Owned by the binding so that it is garbage collected with it.
    """
    data: Dict[str, str] = {}
    if binding.type:
        data["type"] = binding.type
    if binding.provider:
        data["provider"] = binding.provider

    metadata: Dict[str, Any] = {
        "name": config_map_name(binding),
        "namespace": binding.namespace,
        "ownerReferences": [owner_reference(binding)],
    }
    if binding.labels:
        metadata["labels"] = dict(binding.labels)

    return {
        "apiVersion": "v1",
        "kind": "ConfigMap",
        "metadata": metadata,
        "data": data,
    }


def build_projected_volume(name: str, secret_name: str, cm_name: str) -> Dict[str, Any]:
    """Secret projection first, then the generated ConfigMap."""
    return {
        "name": name,
        "projected": {
            "sources": [
                {"secret": {"name": secret_name}},
                {"configMap": {"name": cm_name}},
            ],
        },
    }


@dataclass(frozen=True)
class Projection:
    """
    Per-reconciliation values threaded through the mutator.

    Fields:
        volume_name: "<prefix>-<secret resourceVersion>"
        volume_name_prefix: binding name truncated to 56 chars
        mount_path_dir: directory below the binding root
        secret_name: resolved secret
        volume: projected volume tree inserted into the application
        env: (variable name, decoded secret value) pairs
    """
    volume_name: str
    volume_name_prefix: str
    mount_path_dir: str
    secret_name: str
    volume: Dict[str, Any]
    env: Tuple[Tuple[str, str], ...] = ()

    def volume_mount(self, mount_path: str) -> Dict[str, Any]:
        return {"name": self.volume_name, "mountPath": mount_path, "readOnly": True}


def build_projection(
    binding: ServiceBinding,
    secret: Dict[str, Any],
    cm_name: Optional[str] = None,
) -> Projection:
    meta = secret.get("metadata") or {}
    secret_name = meta.get("name", "")
    prefix = volume_name_prefix(binding.name)
    name = volume_name(prefix, meta.get("resourceVersion") or "0")
    return Projection(
        volume_name=name,
        volume_name_prefix=prefix,
        mount_path_dir=binding.mount_path_dir,
        secret_name=secret_name,
        volume=build_projected_volume(name, secret_name, cm_name or config_map_name(binding)),
        env=tuple((e.name, secret_value(secret, e.key)) for e in binding.env if e.name),
    )
