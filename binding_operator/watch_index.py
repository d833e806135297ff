"""
Reverse-watch index: secret change -> bindings to reconcile.

Backing-service operators rotate secrets without touching the binding. A
changed secret re-triggers every binding in its namespace that is bound to
it (status.binding.name) or that references it directly (spec.service),
which also covers bindings created before their secret existed.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

from binding_engine.core import BINDING_API_VERSION, BINDING_GROUP, BINDING_KIND
from binding_engine.core.tree import get_string

from .cluster import ClusterClient, ClusterError, NotFoundError
from .services import is_secret_reference

SECRET_VERSION_ANNOTATION = f"{BINDING_GROUP}/secret-resource-version"


@dataclass(frozen=True)
class ReconcileRequest:
    namespace: str
    name: str

    @property
    def key(self) -> str:
        return f"{self.namespace}/{self.name}"


def _references_secret(binding: Dict[str, Any], secret_name: str) -> bool:
    if get_string(binding, ("status", "binding", "name")) == secret_name:
        return True
    service = (binding.get("spec") or {}).get("service") or {}
    return (
        is_secret_reference(service.get("apiVersion", ""), service.get("kind", ""))
        and service.get("name") == secret_name
    )


def requests_for_secret(bindings: Iterable[Dict[str, Any]], secret: Dict[str, Any]) -> List[ReconcileRequest]:
    """Reconcile requests for every binding backed by `secret`, in list order."""
    meta = secret.get("metadata") or {}
    secret_name = meta.get("name")
    namespace = meta.get("namespace")
    if not secret_name:
        return []

    requests = []
    for binding in bindings:
        bmeta = binding.get("metadata") or {}
        if bmeta.get("namespace") != namespace:
            continue
        if _references_secret(binding, secret_name):
            requests.append(ReconcileRequest(namespace=namespace, name=bmeta.get("name", "")))
    return requests


class SecretWatchIndex:
    """
    Turns secret events into binding updates.

    The trigger is an annotation carrying the secret's resourceVersion, so the
    binding goes through the regular update handler (and its per-object
    serialisation) instead of being reconciled from the secret watcher.
    """

    def __init__(self, cluster: ClusterClient, logger: Optional[logging.LoggerAdapter] = None):
        self.cluster = cluster
        self.logger = logger or logging.getLogger(__name__)

    def notify(self, secret: Dict[str, Any]) -> List[ReconcileRequest]:
        """
        Returns the requests that were triggered (already current ones are skipped).

        Raises:
            ClusterError: Listing bindings failed
        """
        meta = secret.get("metadata") or {}
        namespace = meta.get("namespace")
        version = meta.get("resourceVersion") or ""

        bindings = self.cluster.list(BINDING_API_VERSION, BINDING_KIND, namespace=namespace)
        by_key = {f"{namespace}/{(b.get('metadata') or {}).get('name')}": b for b in bindings}

        triggered = []
        for request in requests_for_secret(bindings, secret):
            annotations = (by_key[request.key].get("metadata") or {}).get("annotations") or {}
            if annotations.get(SECRET_VERSION_ANNOTATION) == version:
                continue
            try:
                self.cluster.patch_metadata(
                    BINDING_API_VERSION,
                    BINDING_KIND,
                    request.name,
                    request.namespace,
                    {"annotations": {SECRET_VERSION_ANNOTATION: version}},
                )
            except NotFoundError:
                continue
            except ClusterError as e:
                self.logger.error(f"Failed to trigger binding {request.key}: {e}")
                continue
            triggered.append(request)
            self.logger.info(
                f"Secret {namespace}/{meta.get('name')} changed, triggered binding {request.key}",
                extra={"secret_resource_version": version},
            )
        return triggered
