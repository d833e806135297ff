"""
Binding status: Ready condition and bound secret reference.
"""

from .conditions import (
    CONDITION_READY,
    REASON_BOUND,
    STATUS_FALSE,
    STATUS_TRUE,
    STATUS_UNKNOWN,
    Outcome,
    build_status,
    find_condition,
    set_ready_condition,
)

__all__ = [
    "CONDITION_READY",
    "REASON_BOUND",
    "STATUS_FALSE",
    "STATUS_TRUE",
    "STATUS_UNKNOWN",
    "Outcome",
    "build_status",
    "find_condition",
    "set_ready_condition",
]
