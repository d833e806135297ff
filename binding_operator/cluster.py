"""
Cluster access for arbitrary resource kinds.

Wraps the kubernetes dynamic client so the rest of the operator works with
plain dict trees and a small error taxonomy instead of ApiException status
codes.
"""

from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional

import urllib3
from kubernetes import client, config
from kubernetes.client.rest import ApiException
from kubernetes.dynamic import DynamicClient
from kubernetes.dynamic.exceptions import ResourceNotFoundError

MERGE_PATCH = "application/merge-patch+json"


class ClusterError(Exception):
    """Raised when an API call fails."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class NotFoundError(ClusterError):
    pass


class ConflictError(ClusterError):
    """Optimistic-lock failure (stale resourceVersion)."""


class AlreadyExistsError(ConflictError):
    pass


def translate_api_exception(e: ApiException, what: str) -> ClusterError:
    status = getattr(e, "status", None)
    reason = getattr(e, "reason", None) or str(e)
    message = f"{what}: {reason}"
    if status == 404:
        return NotFoundError(message, status)
    if status == 409:
        body = getattr(e, "body", None) or ""
        if isinstance(body, bytes):
            body = body.decode("utf-8", errors="replace")
        if "AlreadyExists" in body or "already exists" in str(reason).lower():
            return AlreadyExistsError(message, status)
        return ConflictError(message, status)
    return ClusterError(message, status)


@contextmanager
def api_call(what: str) -> Iterator[None]:
    """Convert client-side failures into ClusterError subclasses."""
    try:
        yield
    except ResourceNotFoundError as e:
        raise NotFoundError(f"{what}: resource type not served ({e})", 404) from e
    except ApiException as e:
        raise translate_api_exception(e, what) from e
    except urllib3.exceptions.HTTPError as e:
        raise ClusterError(f"{what}: {e}") from e


def _name_and_namespace(obj: Dict[str, Any]):
    meta = obj.get("metadata") or {}
    return meta.get("name"), meta.get("namespace")


class ClusterClient:
    """
    Generic get/list/create/update over any served resource.

    All calls are blocking and carry request_timeout (seconds) as the
    per-request deadline.
    """

    def __init__(self, dynamic_client: DynamicClient, request_timeout: Optional[float] = None):
        self._dyn = dynamic_client
        self.request_timeout = request_timeout

    @classmethod
    def from_config(cls, request_timeout: Optional[float] = None) -> "ClusterClient":
        """In-cluster config first, kubeconfig for local development."""
        try:
            config.load_incluster_config()
        except config.ConfigException:
            config.load_kube_config()
        return cls(DynamicClient(client.ApiClient()), request_timeout=request_timeout)

    def _kwargs(self) -> Dict[str, Any]:
        if self.request_timeout:
            return {"_request_timeout": self.request_timeout}
        return {}

    def _resource(self, api_version: str, kind: str):
        with api_call(f"discover {api_version}/{kind}"):
            return self._dyn.resources.get(api_version=api_version, kind=kind)

    def plural_for(self, api_version: str, kind: str) -> str:
        return self._resource(api_version, kind).name

    def get(self, api_version: str, kind: str, name: str, namespace: Optional[str] = None) -> Dict[str, Any]:
        res = self._resource(api_version, kind)
        with api_call(f"get {kind} {namespace or ''}/{name}"):
            return res.get(name=name, namespace=namespace, **self._kwargs()).to_dict()

    def list(
        self,
        api_version: str,
        kind: str,
        namespace: Optional[str] = None,
        label_selector: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """
        List objects; namespace=None lists across all namespaces.

        List items come back without apiVersion/kind, they are filled in so
        that each item can be written back on its own.
        """
        res = self._resource(api_version, kind)
        kwargs = self._kwargs()
        if label_selector:
            kwargs["label_selector"] = label_selector
        with api_call(f"list {kind} in {namespace or '*'}"):
            result = res.get(namespace=namespace, **kwargs).to_dict()
        items = result.get("items") or []
        for item in items:
            item.setdefault("apiVersion", api_version)
            item.setdefault("kind", kind)
        return items

    def create(self, obj: Dict[str, Any]) -> Dict[str, Any]:
        res = self._resource(obj["apiVersion"], obj["kind"])
        name, namespace = _name_and_namespace(obj)
        with api_call(f"create {obj['kind']} {namespace or ''}/{name}"):
            return res.create(body=obj, namespace=namespace, **self._kwargs()).to_dict()

    def replace(self, obj: Dict[str, Any]) -> Dict[str, Any]:
        """Full update; fails with ConflictError when resourceVersion is stale."""
        res = self._resource(obj["apiVersion"], obj["kind"])
        name, namespace = _name_and_namespace(obj)
        with api_call(f"update {obj['kind']} {namespace or ''}/{name}"):
            return res.replace(body=obj, name=name, namespace=namespace, **self._kwargs()).to_dict()

    def patch_metadata(
        self,
        api_version: str,
        kind: str,
        name: str,
        namespace: Optional[str],
        metadata: Dict[str, Any],
    ) -> Dict[str, Any]:
        """Merge-patch metadata (finalizers, annotations)."""
        res = self._resource(api_version, kind)
        with api_call(f"patch {kind} {namespace or ''}/{name}"):
            return res.patch(
                body={"metadata": metadata},
                name=name,
                namespace=namespace,
                content_type=MERGE_PATCH,
                **self._kwargs(),
            ).to_dict()

    def patch_status(
        self,
        api_version: str,
        kind: str,
        name: str,
        namespace: Optional[str],
        status: Dict[str, Any],
    ) -> Dict[str, Any]:
        res = self._resource(api_version, kind)
        with api_call(f"patch status of {kind} {namespace or ''}/{name}"):
            return self._dyn.patch(
                res.status,
                body={"status": status},
                name=name,
                namespace=namespace,
                content_type=MERGE_PATCH,
                **self._kwargs(),
            ).to_dict()
