"""
Executor: the operator's write path.

Every cluster mutation performed on behalf of a binding goes through here:
- Upsert the generated ConfigMap
- Persist mutated applications (skipped when nothing changed)
- Add / remove the binding finalizer

Writes are compared by canonical hash first so that repeated passes do not
produce spurious updates (and application rollouts).
"""

import logging
from typing import Any, Dict, Optional

from binding_engine.core import (
    BINDING_API_VERSION,
    BINDING_FINALIZER,
    BINDING_KIND,
    ConfigMapError,
    ServiceBinding,
    same_tree,
    tree_hash,
)
from binding_engine.inject import build_config_map

from .cluster import AlreadyExistsError, ClusterClient, ClusterError


def _resource_ref(obj: Dict[str, Any]) -> str:
    meta = obj.get("metadata") or {}
    return f"{obj.get('kind', 'Unknown')}/{meta.get('namespace', '')}/{meta.get('name', '')}"


def _config_map_fields(cm: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "data": cm.get("data") or {},
        "labels": (cm.get("metadata") or {}).get("labels") or {},
    }


class Executor:
    def __init__(self, cluster: ClusterClient, logger: Optional[logging.LoggerAdapter] = None):
        self.cluster = cluster
        self.logger = logger or logging.getLogger(__name__)

    def ensure_config_map(self, binding: ServiceBinding) -> Dict[str, Any]:
        """
        Create or update the binding's ConfigMap.

        Raises:
            ConfigMapError: Any failure other than "already exists"
        """
        desired = build_config_map(binding)
        resource_ref = _resource_ref(desired)
        desired_hash = tree_hash(_config_map_fields(desired))

        try:
            self.cluster.create(desired)
            self.logger.info(f"Created ConfigMap {resource_ref}")
            return {
                "resource_ref": resource_ref,
                "operation": "create",
                "noop": False,
                "desired_hash": desired_hash,
                "observed_hash": desired_hash,
            }
        except AlreadyExistsError:
            pass
        except ClusterError as e:
            raise ConfigMapError(f"{resource_ref}: {e}") from e

        meta = desired["metadata"]
        try:
            existing = self.cluster.get("v1", "ConfigMap", meta["name"], meta["namespace"])
            observed_hash = tree_hash(_config_map_fields(existing))
            if observed_hash == desired_hash:
                self.logger.debug(f"ConfigMap {resource_ref} already matches (noop)")
                return {
                    "resource_ref": resource_ref,
                    "operation": "noop",
                    "noop": True,
                    "desired_hash": desired_hash,
                    "observed_hash": observed_hash,
                }
            updated = dict(existing)
            updated["data"] = desired["data"]
            updated["metadata"] = dict(existing.get("metadata") or {})
            updated["metadata"]["labels"] = meta.get("labels") or {}
            self.cluster.replace(updated)
        except ClusterError as e:
            raise ConfigMapError(f"{resource_ref}: {e}") from e

        self.logger.info(f"Updated ConfigMap {resource_ref}")
        return {
            "resource_ref": resource_ref,
            "operation": "replace",
            "noop": False,
            "desired_hash": desired_hash,
            "observed_hash": observed_hash,
        }

    def update_application(self, original: Dict[str, Any], mutated: Dict[str, Any]) -> Dict[str, Any]:
        """
        Persist a mutated application with a single update call.

        The update carries the resourceVersion that was read, so a concurrent
        edit fails with ConflictError instead of being overwritten.

        Raises:
            ClusterError: The update was rejected
        """
        resource_ref = _resource_ref(original)
        if same_tree(original, mutated):
            self.logger.debug(f"Application {resource_ref} unchanged (noop)")
            return {"resource_ref": resource_ref, "operation": "noop", "noop": True}

        self.cluster.replace(mutated)
        self.logger.info(f"Updated application {resource_ref}")
        return {"resource_ref": resource_ref, "operation": "replace", "noop": False}

    def add_finalizer(self, binding: ServiceBinding) -> None:
        if binding.has_finalizer():
            return
        self._patch_finalizers(binding, list(binding.finalizers) + [BINDING_FINALIZER])
        self.logger.info(f"Added finalizer to {binding.key}")

    def remove_finalizer(self, binding: ServiceBinding) -> None:
        if not binding.has_finalizer():
            return
        self._patch_finalizers(binding, [f for f in binding.finalizers if f != BINDING_FINALIZER])
        self.logger.info(f"Removed finalizer from {binding.key}")

    def _patch_finalizers(self, binding: ServiceBinding, finalizers) -> None:
        """Merge patch guarded by resourceVersion (fails with ConflictError when stale)."""
        metadata: Dict[str, Any] = {"finalizers": finalizers}
        resource_version = (binding.raw.get("metadata") or {}).get("resourceVersion")
        if resource_version:
            metadata["resourceVersion"] = resource_version
        self.cluster.patch_metadata(
            binding.raw.get("apiVersion") or BINDING_API_VERSION,
            binding.raw.get("kind") or BINDING_KIND,
            binding.name,
            binding.namespace,
            metadata,
        )
