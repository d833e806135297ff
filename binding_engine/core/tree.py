"""
Accessors for schema-unknown resource trees.

Application resources are handled as plain nested dicts/lists because their
kind is only known at runtime. Paths are tuples of keys; the dotted string
form used by mapping rules (".spec.template.spec.containers") is parsed by
parse_path().
"""

from typing import Any, List, Optional, Sequence, Tuple

from .errors import TreeError

Path = Tuple[str, ...]


def parse_path(path: str) -> Path:
    """
    Parse a dotted field path into a key tuple.

    Accepts a leading "$" and ".", and a trailing "[*]" as written in
    JSONPath-style mapping rules:

        parse_path(".spec.template.spec.containers[*]")
        -> ("spec", "template", "spec", "containers")
    """
    if not isinstance(path, str):
        raise TreeError(f"field path must be a string: {path!r}")
    text = path.strip()
    if text.startswith("$"):
        text = text[1:]
    if text.endswith("[*]"):
        text = text[:-3]
    text = text.strip(".")
    if not text:
        raise TreeError(f"empty field path: {path!r}")
    parts = tuple(text.split("."))
    if any(not p for p in parts):
        raise TreeError(f"malformed field path: {path!r}")
    return parts


def format_path(path: Sequence[str]) -> str:
    return "." + ".".join(path)


def get_nested(obj: Any, path: Sequence[str]) -> Tuple[Any, bool]:
    """
    Look up a nested field.

    Returns:
        (value, found). Missing keys yield (None, False).

    Raises:
        TreeError: If an intermediate node exists but is not a mapping
    """
    cur = obj
    for i, key in enumerate(path):
        if cur is None:
            return None, False
        if not isinstance(cur, dict):
            raise TreeError(f"{format_path(path[:i])} is not a mapping")
        if key not in cur:
            return None, False
        cur = cur[key]
    return cur, True


def get_nested_list(obj: Any, path: Sequence[str]) -> Tuple[List[Any], bool]:
    """
    Look up a nested list. An explicit null is treated as absent.

    Raises:
        TreeError: If the value exists but is not a list
    """
    value, found = get_nested(obj, path)
    if not found or value is None:
        return [], False
    if not isinstance(value, list):
        raise TreeError(f"{format_path(path)} is not a list")
    return value, True


def set_nested(obj: dict, path: Sequence[str], value: Any) -> None:
    """Set a nested field, creating intermediate mappings as needed."""
    if not path:
        raise TreeError("cannot set a value at the root path")
    cur = obj
    for i, key in enumerate(path[:-1]):
        nxt = cur.get(key)
        if nxt is None:
            nxt = {}
            cur[key] = nxt
        elif not isinstance(nxt, dict):
            raise TreeError(f"{format_path(path[: i + 1])} is not a mapping")
        cur = nxt
    cur[path[-1]] = value


def get_string(obj: Any, path: Sequence[str]) -> Optional[str]:
    """Tolerant string lookup: anything that is not a non-empty string is None."""
    try:
        value, found = get_nested(obj, path)
    except TreeError:
        return None
    if not found or not isinstance(value, str) or not value:
        return None
    return value
