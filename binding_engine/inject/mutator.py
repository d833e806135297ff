"""
Application mutator: applies a Projection to one application tree.

Pure functions only: (application, mapping, projection) -> new application.
Persisting the result is the operator's job.
"""

import logging
import posixpath
from typing import Any, Dict, List, Sequence

from ..core.canonical import clone_tree
from ..core.errors import MissingContainersError, TreeError
from ..core.tree import Path, format_path, get_nested_list, set_nested
from ..mapping.resolver import ResourceMapping
from .containers import MATCH_SET, ContainerView, container_selected
from .projection import DEFAULT_BINDING_ROOT, SERVICE_BINDING_ROOT, Projection, owned_entry

logger = logging.getLogger(__name__)


def _application_name(application: Dict[str, Any]) -> str:
    meta = application.get("metadata") or {}
    return meta.get("name", "")


def bind_volumes(volumes: List[Any], projection: Projection) -> List[Any]:
    """
    Replace this binding's volume in place, else append it.

    Only the first matching entry is kept, older duplicates are dropped.
    """
    out: List[Any] = []
    replaced = False
    for volume in volumes:
        if owned_entry(volume, projection.volume_name_prefix):
            if not replaced:
                out.append(clone_tree(projection.volume))
                replaced = True
            continue
        out.append(volume)
    if not replaced:
        out.append(clone_tree(projection.volume))
    return out


def bind_container(view: ContainerView, projection: Projection) -> None:
    """
    Inject env vars and the volume mount into one container.

    The mount path is $SERVICE_BINDING_ROOT/<dir>. When the container does
    not define SERVICE_BINDING_ROOT, /bindings is used and the variable is
    added. An existing entry without a literal value (valueFrom) is never
    touched; the mount then falls back to /bindings.
    """
    for name, value in projection.env:
        view.upsert_env(name, value)

    root = view.get_env(SERVICE_BINDING_ROOT)
    if root is not None and root.get("value"):
        mount_path = posixpath.join(root["value"], projection.mount_path_dir)
    else:
        mount_path = posixpath.join(DEFAULT_BINDING_ROOT, projection.mount_path_dir)
        if root is None:
            view.upsert_env(SERVICE_BINDING_ROOT, DEFAULT_BINDING_ROOT)
        else:
            logger.info(
                f"Container {view.name!r} sets {SERVICE_BINDING_ROOT} without a literal value, "
                f"mounting under {DEFAULT_BINDING_ROOT}"
            )

    view.upsert_volume_mount(projection.volume_mount(mount_path), projection.volume_name_prefix)


def _containers_at(application: Dict[str, Any], path: Path, primary: bool) -> List[Any]:
    containers, found = get_nested_list(application, path)
    if not found and primary:
        raise MissingContainersError(
            f"{format_path(path)} not found in application {_application_name(application)!r}"
        )
    return containers


def _rewrite_containers(
    application: Dict[str, Any],
    mapping: ResourceMapping,
    allow_list: Sequence[Any],
    matching: str,
    apply,
) -> None:
    for i, path in enumerate(mapping.container_paths):
        containers = _containers_at(application, path, primary=(i == 0))
        if not containers:
            continue
        updated = []
        for index, container in enumerate(containers):
            view = ContainerView(container, mapping.env_path, mapping.volume_mounts_path)
            if not container_selected(view.name, index, allow_list, matching):
                updated.append(container)
                continue
            apply(view)
            updated.append(view.to_tree())
        set_nested(application, path, updated)


def bind_application(
    application: Dict[str, Any],
    mapping: ResourceMapping,
    projection: Projection,
    allow_list: Sequence[Any] = (),
    matching: str = MATCH_SET,
) -> Dict[str, Any]:
    """
    Project the binding into an application.

    Returns a mutated deep copy; the input is left untouched. Applying the
    same projection twice yields an identical tree.

    Raises:
        MissingContainersError: The primary container path is absent
        TreeError: A path exists but has the wrong shape
    """
    app = clone_tree(application)
    if not isinstance(app, dict):
        raise TreeError("application is not a mapping")

    volumes, _ = get_nested_list(app, mapping.volumes_path)
    set_nested(app, mapping.volumes_path, bind_volumes(volumes, projection))

    _rewrite_containers(
        app,
        mapping,
        allow_list,
        matching,
        lambda view: bind_container(view, projection),
    )
    return app


def unbind_application(
    application: Dict[str, Any],
    mapping: ResourceMapping,
    volume_name_prefix: str,
    env_names: Sequence[str] = (),
    allow_list: Sequence[Any] = (),
    matching: str = MATCH_SET,
) -> Dict[str, Any]:
    """
    Strip a binding from an application: its volume, its mounts and the env
    vars it generated. SERVICE_BINDING_ROOT is left in place since other
    bindings may rely on it.
    """
    app = clone_tree(application)
    if not isinstance(app, dict):
        raise TreeError("application is not a mapping")

    volumes, found = get_nested_list(app, mapping.volumes_path)
    if found:
        set_nested(
            app,
            mapping.volumes_path,
            [v for v in volumes if not owned_entry(v, volume_name_prefix)],
        )

    def strip(view: ContainerView) -> None:
        view.remove_volume_mounts(volume_name_prefix)
        view.remove_env([n for n in env_names if n != SERVICE_BINDING_ROOT])

    _rewrite_containers(app, mapping, allow_list, matching, strip)
    return app
