"""
Canonical serialization of resource trees.

Used to decide whether a mutation changed anything (no-op detection) and to
assert that repeated reconciliation produces identical objects.
"""

import copy
import hashlib
import json
from typing import Any


def canonicalize(obj: Any) -> Any:
    """
    Normalize a resource tree: mapping keys sorted at every level, tuples
    turned into lists. Sequence order is kept.
    """
    if isinstance(obj, dict):
        return {key: canonicalize(obj[key]) for key in sorted(obj)}
    if isinstance(obj, (list, tuple)):
        return [canonicalize(item) for item in obj]
    return obj


def canonical_json_bytes(obj: Any) -> bytes:
    """
    Deterministic JSON bytes for a resource tree.

    List order is preserved (container and volume order is significant),
    only mapping keys are sorted.
    """
    canon = canonicalize(obj)
    s = json.dumps(canon, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
    return s.encode("utf-8")


def canonical_json_str(obj: Any) -> str:
    return canonical_json_bytes(obj).decode("utf-8")


def tree_hash(obj: Any) -> str:
    """SHA-256 of the canonical JSON form."""
    return hashlib.sha256(canonical_json_bytes(obj)).hexdigest()


def same_tree(a: Any, b: Any) -> bool:
    return canonical_json_bytes(a) == canonical_json_bytes(b)


def clone_tree(obj: Any) -> Any:
    """Deep copy so that callers never mutate objects they did not build."""
    return copy.deepcopy(obj)
