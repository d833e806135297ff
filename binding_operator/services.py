"""
Service resolver: binding service reference -> Secret.

A reference to a v1 Secret is used as is. Anything else is treated as a
Provisioned Service: the referenced resource must expose status.binding.name,
which names a Secret in the binding's namespace.
"""

from typing import Any, Dict

from binding_engine.core import (
    BackingServiceNotFoundError,
    ProvisionedService,
    ProvisionedServiceNotReadyError,
    SecretNotFoundError,
    ServiceBinding,
)

from .cluster import ClusterClient, NotFoundError


def is_secret_reference(api_version: str, kind: str) -> bool:
    return kind == "Secret" and api_version == "v1"


class ServiceResolver:
    def __init__(self, cluster: ClusterClient):
        self.cluster = cluster

    def resolve(self, binding: ServiceBinding) -> Dict[str, Any]:
        """
        Return the Secret backing this binding.

        Raises:
            BackingServiceNotFoundError: The referenced service does not exist
            ProvisionedServiceNotReadyError: The service exposes no secret name yet
            SecretNotFoundError: The named Secret does not exist
        """
        ref = binding.service
        if is_secret_reference(ref.api_version, ref.kind):
            return self._secret(ref.name, binding.namespace)

        try:
            backing = self.cluster.get(ref.api_version, ref.kind, ref.name, binding.namespace)
        except NotFoundError as e:
            raise BackingServiceNotFoundError(
                f"{ref.kind} {binding.namespace}/{ref.name}: {e}"
            ) from e

        provisioned = ProvisionedService.from_resource(backing)
        if provisioned is None or not provisioned.secret_name:
            raise ProvisionedServiceNotReadyError(
                f"{ref.kind} {binding.namespace}/{ref.name} has no status.binding.name"
            )
        return self._secret(provisioned.secret_name, binding.namespace)

    def _secret(self, name: str, namespace: str) -> Dict[str, Any]:
        try:
            return self.cluster.get("v1", "Secret", name, namespace)
        except NotFoundError as e:
            raise SecretNotFoundError(f"Secret {namespace}/{name}: {e}") from e
