"""
Typed views over ServiceBinding resources and the duck types the engine relies on.

The binding itself has a fixed schema and is decoded into frozen dataclasses.
Applications and backing services are not: they stay generic trees and are
only inspected through the narrow views below.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union

from .errors import AppNameSelectorConflictError, MissingApplicationReferenceError, ValidationError
from .tree import get_string

BINDING_GROUP = "binding.x-k8s.io"
BINDING_VERSION = "v1beta1"
BINDING_API_VERSION = f"{BINDING_GROUP}/{BINDING_VERSION}"
BINDING_KIND = "ServiceBinding"
BINDING_PLURAL = "servicebindings"
BINDING_FINALIZER = f"{BINDING_GROUP}/finalizer"

MAPPING_KIND = "ClusterApplicationResourceMapping"
MAPPING_PLURAL = "clusterapplicationresourcemappings"

ContainerSelector = Union[str, int]


@dataclass(frozen=True)
class GroupVersionKind:
    group: str
    version: str
    kind: str

    @staticmethod
    def from_api_version(api_version: str, kind: str) -> "GroupVersionKind":
        """Split "apps/v1" into group and version; "v1" is the core group."""
        if "/" in api_version:
            group, version = api_version.split("/", 1)
        else:
            group, version = "", api_version
        return GroupVersionKind(group=group, version=version, kind=kind)

    @property
    def api_version(self) -> str:
        return f"{self.group}/{self.version}" if self.group else self.version


@dataclass(frozen=True)
class ObjectReference:
    api_version: str
    kind: str
    name: str

    @staticmethod
    def from_dict(data: Optional[Dict[str, Any]]) -> "ObjectReference":
        data = data or {}
        return ObjectReference(
            api_version=data.get("apiVersion", ""),
            kind=data.get("kind", ""),
            name=data.get("name", ""),
        )


@dataclass(frozen=True)
class LabelSelector:
    match_labels: Dict[str, str] = field(default_factory=dict)
    match_expressions: Tuple[Dict[str, Any], ...] = ()

    @staticmethod
    def from_dict(data: Optional[Dict[str, Any]]) -> Optional["LabelSelector"]:
        if data is None:
            return None
        return LabelSelector(
            match_labels=dict(data.get("matchLabels") or {}),
            match_expressions=tuple(data.get("matchExpressions") or ()),
        )

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {}
        if self.match_labels:
            out["matchLabels"] = dict(self.match_labels)
        if self.match_expressions:
            out["matchExpressions"] = [dict(e) for e in self.match_expressions]
        return out

    def to_selector_string(self) -> str:
        """
        Render as a Kubernetes label selector query string.

        Example:
            matchLabels {env: test}, expression {key: tier, operator: In, values: [a, b]}
            -> "env=test,tier in (a,b)"
        """
        terms = [f"{k}={v}" for k, v in sorted(self.match_labels.items())]
        for expr in self.match_expressions:
            key = expr.get("key")
            op = expr.get("operator")
            values = ",".join(str(v) for v in expr.get("values") or [])
            if not key:
                raise ValidationError("label selector expression without key")
            if op == "In":
                terms.append(f"{key} in ({values})")
            elif op == "NotIn":
                terms.append(f"{key} notin ({values})")
            elif op == "Exists":
                terms.append(key)
            elif op == "DoesNotExist":
                terms.append(f"!{key}")
            else:
                raise ValidationError(f"unsupported label selector operator: {op}")
        return ",".join(terms)


@dataclass(frozen=True)
class ApplicationReference:
    api_version: str
    kind: str
    name: Optional[str] = None
    selector: Optional[LabelSelector] = None
    containers: Tuple[ContainerSelector, ...] = ()

    @staticmethod
    def from_dict(data: Optional[Dict[str, Any]]) -> "ApplicationReference":
        data = data or {}
        return ApplicationReference(
            api_version=data.get("apiVersion", ""),
            kind=data.get("kind", ""),
            name=data.get("name") or None,
            selector=LabelSelector.from_dict(data.get("selector")),
            containers=tuple(data.get("containers") or ()),
        )

    def validate(self) -> None:
        """
        Enforce name XOR selector.

        Raises:
            AppNameSelectorConflictError: Both are set
            MissingApplicationReferenceError: Neither is set
        """
        if self.name and self.selector is not None:
            raise AppNameSelectorConflictError(self.name, self.selector.to_dict())
        if not self.name and self.selector is None:
            raise MissingApplicationReferenceError(
                f"{self.kind or 'application'} reference needs a name or a selector"
            )


@dataclass(frozen=True)
class EnvMapping:
    """Generated environment variable name -> secret data key."""
    name: str
    key: str


@dataclass(frozen=True)
class ServiceBinding:
    """
    Decoded ServiceBinding resource.

    Only the engine-relevant fields are kept; the raw object stays available
    through `raw` for status and metadata writes.
    """
    name: str
    namespace: str
    application: ApplicationReference
    service: ObjectReference
    uid: str = ""
    generation: int = 0
    labels: Dict[str, str] = field(default_factory=dict)
    finalizers: Tuple[str, ...] = ()
    deletion_timestamp: Optional[str] = None
    binding_name: str = ""
    type: str = ""
    provider: str = ""
    env: Tuple[EnvMapping, ...] = ()
    conditions: Tuple[Dict[str, Any], ...] = ()
    bound_secret: str = ""
    raw: Dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @staticmethod
    def from_dict(obj: Dict[str, Any]) -> "ServiceBinding":
        meta = obj.get("metadata") or {}
        spec = obj.get("spec") or {}
        status = obj.get("status") or {}
        return ServiceBinding(
            name=meta.get("name", ""),
            namespace=meta.get("namespace", ""),
            uid=meta.get("uid", ""),
            generation=int(meta.get("generation") or 0),
            labels=dict(meta.get("labels") or {}),
            finalizers=tuple(meta.get("finalizers") or ()),
            deletion_timestamp=meta.get("deletionTimestamp"),
            binding_name=spec.get("name") or "",
            type=spec.get("type") or "",
            provider=spec.get("provider") or "",
            application=ApplicationReference.from_dict(spec.get("application")),
            service=ObjectReference.from_dict(spec.get("service")),
            env=tuple(
                EnvMapping(name=e.get("name", ""), key=e.get("key", ""))
                for e in spec.get("env") or ()
            ),
            conditions=tuple(status.get("conditions") or ()),
            bound_secret=get_string(status, ("binding", "name")) or "",
            raw=obj,
        )

    @property
    def mount_path_dir(self) -> str:
        """Directory under the binding root; spec.name overrides the object name."""
        return self.binding_name or self.name

    @property
    def is_finalizing(self) -> bool:
        return bool(self.deletion_timestamp)

    def has_finalizer(self, finalizer: str = BINDING_FINALIZER) -> bool:
        return finalizer in self.finalizers

    @property
    def key(self) -> str:
        return f"{self.namespace}/{self.name}"


@dataclass(frozen=True)
class ProvisionedService:
    """
    Duck type: any resource whose status exposes binding.name (a Secret name).
    """
    secret_name: str

    @staticmethod
    def from_resource(obj: Dict[str, Any]) -> Optional["ProvisionedService"]:
        """
        Tolerant partial decode. Unknown fields are ignored; a missing or
        non-string status.binding.name yields None instead of raising.
        """
        name = get_string(obj, ("status", "binding", "name"))
        if name is None:
            return None
        return ProvisionedService(secret_name=name)


def env_names(env: Tuple[EnvMapping, ...]) -> List[str]:
    return [e.name for e in env if e.name]
