"""
Application locator: binding application reference -> application trees.
"""

from typing import Any, Dict, List

from binding_engine.core import ApplicationNotFoundError, ServiceBinding

from .cluster import ClusterClient, NotFoundError


class ApplicationLocator:
    def __init__(self, cluster: ClusterClient):
        self.cluster = cluster

    def locate(self, binding: ServiceBinding) -> List[Dict[str, Any]]:
        """
        Resolve the target applications in the binding's namespace.

        A name yields exactly one application. A selector yields any number,
        including none.

        Raises:
            AppNameSelectorConflictError / MissingApplicationReferenceError:
                Invalid reference (checked before any API call)
            ApplicationNotFoundError: The named application does not exist
        """
        ref = binding.application
        ref.validate()

        if ref.name:
            try:
                return [self.cluster.get(ref.api_version, ref.kind, ref.name, binding.namespace)]
            except NotFoundError as e:
                raise ApplicationNotFoundError(
                    f"{ref.kind} {binding.namespace}/{ref.name}: {e}"
                ) from e

        selector = ref.selector.to_selector_string()
        return self.cluster.list(
            ref.api_version,
            ref.kind,
            namespace=binding.namespace,
            label_selector=selector or None,
        )
