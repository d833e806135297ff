"""
Mapping rule lookup for application kinds.

Mapping rules are opt-in: a missing rule, or a failed lookup, yields the
pod-template convention. Only a malformed rule is an error.
"""

import logging
from typing import Optional

from binding_engine.core import BINDING_API_VERSION, GroupVersionKind
from binding_engine.core.models import MAPPING_KIND
from binding_engine.mapping import DEFAULT_MAPPING, ResourceMapping, mapping_from_rule, mapping_rule_name

from .cluster import ClusterClient, ClusterError, NotFoundError


class ResourceMappingResolver:
    def __init__(self, cluster: ClusterClient, logger: Optional[logging.LoggerAdapter] = None):
        self.cluster = cluster
        self.logger = logger or logging.getLogger(__name__)

    def resolve(self, api_version: str, kind: str) -> ResourceMapping:
        """
        Raises:
            MappingRuleError: The matching rule entry is malformed
        """
        gvk = GroupVersionKind.from_api_version(api_version, kind)
        try:
            plural = self.cluster.plural_for(api_version, kind)
            rule = self.cluster.get(BINDING_API_VERSION, MAPPING_KIND, mapping_rule_name(plural, gvk.group))
        except NotFoundError:
            return DEFAULT_MAPPING
        except ClusterError as e:
            self.logger.warning(f"Mapping rule lookup for {kind} failed, using defaults: {e}")
            return DEFAULT_MAPPING
        return mapping_from_rule(rule, gvk.version)
