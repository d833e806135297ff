"""
Container view and container selection.

A container inside an application tree is decoded into a ContainerView that
only knows about env vars and volume mounts; every other field is carried
through untouched when the view is encoded back with to_tree().
"""

from typing import Any, Dict, List, Optional, Sequence

from ..core.canonical import clone_tree
from ..core.errors import TreeError
from ..core.tree import Path, get_nested_list, set_nested
from ..mapping.resolver import ENV_PATH, VOLUME_MOUNTS_PATH
from .projection import owned_entry

MATCH_SET = "set"
MATCH_LEGACY = "legacy"
MATCHING_MODES = (MATCH_SET, MATCH_LEGACY)


class ContainerView:
    """Env var / volume mount manipulation for one container."""

    def __init__(
        self,
        container: Dict[str, Any],
        env_path: Path = ENV_PATH,
        volume_mounts_path: Path = VOLUME_MOUNTS_PATH,
    ):
        if not isinstance(container, dict):
            raise TreeError("container entry is not a mapping")
        self._tree = clone_tree(container)
        self._env_path = env_path
        self._mounts_path = volume_mounts_path
        env, self._had_env = get_nested_list(self._tree, env_path)
        mounts, self._had_mounts = get_nested_list(self._tree, volume_mounts_path)
        self.env: List[Dict[str, Any]] = env
        self.volume_mounts: List[Dict[str, Any]] = mounts

    @property
    def name(self) -> str:
        return self._tree.get("name") or ""

    def get_env(self, name: str) -> Optional[Dict[str, Any]]:
        for var in self.env:
            if isinstance(var, dict) and var.get("name") == name:
                return var
        return None

    def upsert_env(self, name: str, value: str) -> None:
        """Replace the first variable with this name, else append."""
        entry = {"name": name, "value": value}
        for i, var in enumerate(self.env):
            if isinstance(var, dict) and var.get("name") == name:
                self.env[i] = entry
                return
        self.env.append(entry)

    def remove_env(self, names: Sequence[str]) -> None:
        self.env = [v for v in self.env if not (isinstance(v, dict) and v.get("name") in names)]

    def upsert_volume_mount(self, mount: Dict[str, Any], prefix: str) -> None:
        """Replace the first mount owned by the binding with this volume name prefix, else append."""
        for i, vm in enumerate(self.volume_mounts):
            if owned_entry(vm, prefix):
                self.volume_mounts[i] = mount
                return
        self.volume_mounts.append(mount)

    def remove_volume_mounts(self, prefix: str) -> None:
        self.volume_mounts = [vm for vm in self.volume_mounts if not owned_entry(vm, prefix)]

    def to_tree(self) -> Dict[str, Any]:
        """
        Encode back into the generic tree.

        Empty lists that were absent before stay absent so that bind/unbind
        round trips restore the original shape.
        """
        tree = clone_tree(self._tree)
        _write_list(tree, self._env_path, self.env, self._had_env)
        _write_list(tree, self._mounts_path, self.volume_mounts, self._had_mounts)
        return tree


def _write_list(tree: Dict[str, Any], path: Path, items: List[Any], existed: bool) -> None:
    if items or existed:
        set_nested(tree, path, items)
        return
    parent: Any = tree
    for key in path[:-1]:
        parent = parent.get(key) if isinstance(parent, dict) else None
    if isinstance(parent, dict):
        parent.pop(path[-1], None)


def container_selected(
    name: str,
    index: int,
    allow_list: Sequence[Any],
    mode: str = MATCH_SET,
) -> bool:
    """
    Decide whether a container receives the binding.

    An empty allow-list selects every container.

    "set" mode: selected iff the list contains the container name or its
    ordinal index within its container list.

    "legacy" mode reproduces the counting rule of earlier releases: entries
    are consumed in order until one equals the container name; the container
    is skipped only when every entry was consumed without a match. Integer
    entries never match in this mode.
    """
    if not allow_list:
        return True
    if mode == MATCH_LEGACY:
        return _legacy_selected(name, allow_list)
    for entry in allow_list:
        if isinstance(entry, bool):
            continue
        if isinstance(entry, int):
            if entry == index:
                return True
        elif entry == name:
            return True
    return False


def _legacy_selected(name: str, allow_list: Sequence[Any]) -> bool:
    found = False
    count = 0
    for entry in allow_list:
        if isinstance(entry, str) and entry == name:
            break
        found = True
        count += 1
    return not (found and count == len(allow_list))
