"""
Status writer: persists the outcome of a reconciliation pass.
"""

import logging
from typing import Any, Dict, Optional

from binding_engine.core import BINDING_API_VERSION, BINDING_KIND, ServiceBinding
from binding_engine.status import Outcome, build_status

from .cluster import ClusterClient


class StatusManager:
    def __init__(self, cluster: ClusterClient, clock, logger: Optional[logging.LoggerAdapter] = None):
        self.cluster = cluster
        self.clock = clock
        self.logger = logger or logging.getLogger(__name__)

    def write(self, binding: ServiceBinding, outcome: Outcome) -> Dict[str, Any]:
        """
        Patch the status subresource once: Ready condition, bound secret
        name and observedGeneration.

        Raises:
            ClusterError: The patch was rejected
        """
        status = build_status(
            binding.conditions,
            binding.generation,
            outcome,
            self.clock.now(),
        )
        self.cluster.patch_status(
            binding.raw.get("apiVersion") or BINDING_API_VERSION,
            binding.raw.get("kind") or BINDING_KIND,
            binding.name,
            binding.namespace,
            status,
        )
        self.logger.info(
            f"Status of {binding.key}: Ready={outcome.status}",
            extra={"reason": outcome.reason, "secret": outcome.secret_name},
        )
        return status
