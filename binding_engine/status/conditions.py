"""
Ready condition state machine.

One condition type (Ready) with True/False written by the engine; Unknown is
only ever a default. Every pass overwrites the existing Ready entry instead
of appending a second one.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

CONDITION_READY = "Ready"

STATUS_TRUE = "True"
STATUS_FALSE = "False"
STATUS_UNKNOWN = "Unknown"

REASON_BOUND = "service bound to application"


@dataclass(frozen=True)
class Outcome:
    """
    Result of one reconciliation pass as it will be reported.

    Fields:
        ready: Ready=True when set
        reason: condition reason
        message: human readable detail
        secret_name: resolved secret ("" when resolution failed first)
    """
    ready: bool
    reason: str
    message: str = ""
    secret_name: str = ""

    @property
    def status(self) -> str:
        return STATUS_TRUE if self.ready else STATUS_FALSE


def find_condition(conditions: Sequence[Dict[str, Any]], type_: str = CONDITION_READY) -> Optional[Dict[str, Any]]:
    for cond in conditions:
        if isinstance(cond, dict) and cond.get("type") == type_:
            return cond
    return None


def set_ready_condition(
    conditions: Sequence[Dict[str, Any]],
    status: str,
    reason: str,
    message: str,
    now: str,
) -> List[Dict[str, Any]]:
    """
    Return a new condition list with Ready set.

    An existing Ready entry keeps its position; its lastTransitionTime only
    moves when the status value changes. Other condition types are kept.
    """
    out: List[Dict[str, Any]] = []
    found = False
    for cond in conditions:
        if isinstance(cond, dict) and cond.get("type") == CONDITION_READY:
            if found:
                continue
            found = True
            updated = dict(cond)
            if updated.get("status") != status or not updated.get("lastTransitionTime"):
                updated["lastTransitionTime"] = now
            updated["status"] = status
            updated["reason"] = reason
            updated["message"] = message
            out.append(updated)
        else:
            out.append(cond)

    if not found:
        out.append({
            "type": CONDITION_READY,
            "status": status,
            "reason": reason,
            "message": message,
            "lastTransitionTime": now,
        })
    return out


def build_status(
    conditions: Sequence[Dict[str, Any]],
    generation: int,
    outcome: Outcome,
    now: str,
) -> Dict[str, Any]:
    """Complete status subresource for one pass."""
    return {
        "observedGeneration": generation,
        "conditions": set_ready_condition(conditions, outcome.status, outcome.reason, outcome.message, now),
        "binding": {"name": outcome.secret_name},
    }
