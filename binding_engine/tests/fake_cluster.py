"""
In-memory stand-in for binding_operator.cluster.ClusterClient.

Objects are stored as plain trees and copied in and out, resourceVersion is
bumped on every write and checked on replace, like the API server does.
"""

import copy
import re
from typing import Any, Dict, List, Optional, Set, Tuple

from binding_operator.cluster import AlreadyExistsError, ClusterError, ConflictError, NotFoundError

PLURALS = {
    "Deployment": "deployments",
    "StatefulSet": "statefulsets",
    "Secret": "secrets",
    "ConfigMap": "configmaps",
    "ServiceBinding": "servicebindings",
    "ClusterApplicationResourceMapping": "clusterapplicationresourcemappings",
}

Key = Tuple[str, str, Optional[str], str]


def _split_terms(selector: str) -> List[str]:
    terms, depth, current = [], 0, ""
    for ch in selector:
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
        if ch == "," and depth == 0:
            terms.append(current.strip())
            current = ""
        else:
            current += ch
    if current.strip():
        terms.append(current.strip())
    return terms


def matches_selector(labels: Dict[str, str], selector: Optional[str]) -> bool:
    """Supports k=v, k in (a,b), k notin (a,b), k and !k."""
    if not selector:
        return True
    for term in _split_terms(selector):
        m = re.match(r"^(\S+)\s+(in|notin)\s+\((.*)\)$", term)
        if m:
            key, op, values = m.group(1), m.group(2), [v.strip() for v in m.group(3).split(",")]
            if op == "in" and labels.get(key) not in values:
                return False
            if op == "notin" and key in labels and labels[key] in values:
                return False
        elif "=" in term:
            key, value = term.split("=", 1)
            if labels.get(key) != value:
                return False
        elif term.startswith("!"):
            if term[1:] in labels:
                return False
        elif term not in labels:
            return False
    return True


class FakeCluster:
    def __init__(self):
        self.objects: Dict[Key, Dict[str, Any]] = {}
        self.calls: List[Tuple[str, str, str]] = []
        self.fail_replace: Dict[str, ClusterError] = {}
        self.fail_get: Dict[str, ClusterError] = {}
        self.unserved: Set[str] = set()
        self._version = 100

    def _next_version(self) -> str:
        self._version += 1
        return str(self._version)

    @staticmethod
    def _key(api_version: str, kind: str, name: str, namespace: Optional[str]) -> Key:
        return (api_version, kind, namespace or None, name)

    def _key_of(self, obj: Dict[str, Any]) -> Key:
        meta = obj.get("metadata") or {}
        return self._key(obj["apiVersion"], obj["kind"], meta["name"], meta.get("namespace"))

    def add(self, obj: Dict[str, Any]) -> Dict[str, Any]:
        """Seed an object (test setup, not recorded as a call)."""
        stored = copy.deepcopy(obj)
        stored.setdefault("metadata", {})["resourceVersion"] = self._next_version()
        stored["metadata"].setdefault("generation", 1)
        self.objects[self._key_of(stored)] = stored
        return copy.deepcopy(stored)

    def peek(self, api_version: str, kind: str, name: str, namespace: Optional[str] = None) -> Optional[Dict[str, Any]]:
        obj = self.objects.get(self._key(api_version, kind, name, namespace))
        return copy.deepcopy(obj) if obj is not None else None

    def writes(self, kind: Optional[str] = None) -> List[Tuple[str, str, str]]:
        return [c for c in self.calls if c[0] != "get" and c[0] != "list" and (kind is None or c[1] == kind)]

    # ClusterClient contract

    def plural_for(self, api_version: str, kind: str) -> str:
        if kind in self.unserved:
            raise NotFoundError(f"discover {api_version}/{kind}: resource type not served", 404)
        return PLURALS.get(kind, kind.lower() + "s")

    def get(self, api_version: str, kind: str, name: str, namespace: Optional[str] = None) -> Dict[str, Any]:
        self.calls.append(("get", kind, name))
        if name in self.fail_get:
            raise self.fail_get[name]
        obj = self.objects.get(self._key(api_version, kind, name, namespace))
        if obj is None:
            raise NotFoundError(f"get {kind} {namespace or ''}/{name}: Not Found", 404)
        return copy.deepcopy(obj)

    def list(
        self,
        api_version: str,
        kind: str,
        namespace: Optional[str] = None,
        label_selector: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        self.calls.append(("list", kind, label_selector or ""))
        items = []
        for (av, k, ns, _), obj in sorted(self.objects.items(), key=lambda kv: str(kv[0])):
            if av != api_version or k != kind:
                continue
            if namespace is not None and ns != namespace:
                continue
            if matches_selector((obj.get("metadata") or {}).get("labels") or {}, label_selector):
                items.append(copy.deepcopy(obj))
        return items

    def create(self, obj: Dict[str, Any]) -> Dict[str, Any]:
        meta = obj.get("metadata") or {}
        self.calls.append(("create", obj["kind"], meta.get("name", "")))
        key = self._key_of(obj)
        if key in self.objects:
            raise AlreadyExistsError(f"create {obj['kind']} {meta.get('name')}: AlreadyExists", 409)
        return self.add(obj)

    def replace(self, obj: Dict[str, Any]) -> Dict[str, Any]:
        meta = obj.get("metadata") or {}
        name = meta.get("name", "")
        self.calls.append(("replace", obj["kind"], name))
        if name in self.fail_replace:
            raise self.fail_replace[name]
        key = self._key_of(obj)
        current = self.objects.get(key)
        if current is None:
            raise NotFoundError(f"update {obj['kind']} {name}: Not Found", 404)
        sent_version = meta.get("resourceVersion")
        if sent_version and sent_version != current["metadata"]["resourceVersion"]:
            raise ConflictError(f"update {obj['kind']} {name}: the object has been modified", 409)
        stored = copy.deepcopy(obj)
        stored["metadata"]["resourceVersion"] = self._next_version()
        self.objects[key] = stored
        return copy.deepcopy(stored)

    def patch_metadata(
        self,
        api_version: str,
        kind: str,
        name: str,
        namespace: Optional[str],
        metadata: Dict[str, Any],
    ) -> Dict[str, Any]:
        self.calls.append(("patch", kind, name))
        key = self._key(api_version, kind, name, namespace)
        current = self.objects.get(key)
        if current is None:
            raise NotFoundError(f"patch {kind} {name}: Not Found", 404)
        patch = dict(metadata)
        sent_version = patch.pop("resourceVersion", None)
        if sent_version and sent_version != current["metadata"]["resourceVersion"]:
            raise ConflictError(f"patch {kind} {name}: the object has been modified", 409)
        for field_name, value in patch.items():
            if isinstance(value, dict):
                merged = dict(current["metadata"].get(field_name) or {})
                merged.update(value)
                current["metadata"][field_name] = merged
            else:
                current["metadata"][field_name] = value
        current["metadata"]["resourceVersion"] = self._next_version()
        if current["metadata"].get("deletionTimestamp") and not current["metadata"].get("finalizers"):
            del self.objects[key]
        return copy.deepcopy(current)

    def patch_status(
        self,
        api_version: str,
        kind: str,
        name: str,
        namespace: Optional[str],
        status: Dict[str, Any],
    ) -> Dict[str, Any]:
        self.calls.append(("status", kind, name))
        current = self.objects.get(self._key(api_version, kind, name, namespace))
        if current is None:
            raise NotFoundError(f"patch status of {kind} {name}: Not Found", 404)
        merged = dict(current.get("status") or {})
        merged.update(copy.deepcopy(status))
        current["status"] = merged
        current["metadata"]["resourceVersion"] = self._next_version()
        return copy.deepcopy(current)
