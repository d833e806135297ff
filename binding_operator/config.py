"""
Operator configuration from environment variables.

Environment Variables:
    BINDING_REQUEUE_DELAY_SECONDS: delay before retrying a missing backing
        service or secret - default: 60
    BINDING_RETRY_DELAY_SECONDS: delay before retrying conflicts and failed
        application updates - default: 10
    BINDING_CONTAINER_MATCHING: container allow-list semantics, "set" or
        "legacy" - default: set
    BINDING_UNBIND_ON_DELETE: strip injected config when a binding is
        deleted (1/0) - default: 1
    BINDING_REQUEST_TIMEOUT_SECONDS: per API request timeout - default: 30
    BINDING_WATCH_SECRETS: re-trigger bindings on secret changes (1/0) - default: 1
    METRICS_ENABLED: enable the Prometheus endpoint (true/false) - default: false
    METRICS_PORT: Prometheus endpoint port - default: 8080
"""

import os
from dataclasses import dataclass

from binding_engine.inject import MATCH_SET, MATCHING_MODES


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


def _positive_float(name: str, default: str) -> float:
    raw = os.getenv(name, default)
    value = float(raw)
    if value < 0:
        raise ValueError(f"{name} must not be negative, got {raw!r}")
    return value


@dataclass(frozen=True)
class OperatorConfig:
    requeue_delay: float = 60.0
    retry_delay: float = 10.0
    container_matching: str = MATCH_SET
    unbind_on_delete: bool = True
    request_timeout: float = 30.0
    watch_secrets: bool = True
    metrics_enabled: bool = False
    metrics_port: int = 8080

    @staticmethod
    def from_env() -> "OperatorConfig":
        """
        Raises:
            ValueError: On malformed values (fail fast at startup)
        """
        matching = os.getenv("BINDING_CONTAINER_MATCHING", MATCH_SET).strip().lower()
        if matching not in MATCHING_MODES:
            raise ValueError(
                f"BINDING_CONTAINER_MATCHING must be one of {', '.join(MATCHING_MODES)}, got {matching!r}"
            )
        return OperatorConfig(
            requeue_delay=_positive_float("BINDING_REQUEUE_DELAY_SECONDS", "60"),
            retry_delay=_positive_float("BINDING_RETRY_DELAY_SECONDS", "10"),
            container_matching=matching,
            unbind_on_delete=_flag("BINDING_UNBIND_ON_DELETE", "1"),
            request_timeout=_positive_float("BINDING_REQUEST_TIMEOUT_SECONDS", "30"),
            watch_secrets=_flag("BINDING_WATCH_SECRETS", "1"),
            metrics_enabled=_flag("METRICS_ENABLED", "false"),
            metrics_port=int(os.getenv("METRICS_PORT", "8080")),
        )
