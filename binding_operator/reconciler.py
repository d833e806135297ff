"""
ServiceBinding reconciler.

One pass, per binding:

    get binding -> finalizer handling -> validate application reference
      -> resolve service secret -> upsert ConfigMap -> build projection
      -> locate applications -> resolve mapping -> bind each application
      -> write status (exactly once)

The reconciler is shared by all bindings and keeps no per-pass state on
self: everything derived during a pass travels in local values (Projection,
ResourceMapping, Outcome). reconcile() never raises; failures are reported
through the Ready condition and the returned ReconcileResult.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from binding_engine.core import (
    BINDING_API_VERSION,
    BINDING_KIND,
    ApplicationNotFoundError,
    ApplicationUpdateError,
    BindingError,
    NotAvailableError,
    SecretNotFoundError,
    ServiceBinding,
    SystemClock,
    ValidationError,
)
from binding_engine.core.models import env_names
from binding_engine.inject import bind_application, build_projection, unbind_application, volume_name_prefix
from binding_engine.status import REASON_BOUND, Outcome

from .applications import ApplicationLocator
from .cluster import ClusterClient, ClusterError, NotFoundError
from .config import OperatorConfig
from .executor import Executor
from .logging_config import get_logger
from .metrics import track_application_update, track_outcome, track_reconcile_duration
from .resource_mapping import ResourceMappingResolver
from .services import ServiceResolver
from .status import StatusManager


@dataclass(frozen=True)
class ReconcileResult:
    """
    What the dispatch layer should do next.

    requeue_after is in seconds; 0 means "as soon as possible".
    """
    requeue: bool = False
    requeue_after: float = 0.0
    outcome: Optional[Outcome] = None


def _app_key(app: Dict[str, Any]) -> str:
    meta = app.get("metadata") or {}
    return f"{app.get('kind', '')} {meta.get('namespace', '')}/{meta.get('name', '')}"


class ServiceBindingReconciler:
    def __init__(
        self,
        cluster: ClusterClient,
        config: Optional[OperatorConfig] = None,
        clock=None,
    ):
        self.cluster = cluster
        self.config = config or OperatorConfig()
        self.clock = clock or SystemClock()
        self.services = ServiceResolver(cluster)
        self.applications = ApplicationLocator(cluster)
        self.mappings = ResourceMappingResolver(cluster)
        self.executor = Executor(cluster)
        self.status = StatusManager(cluster, self.clock)

    def reconcile(self, namespace: str, name: str) -> ReconcileResult:
        logger = get_logger(__name__, trace_id=f"{namespace}/{name}")
        with track_reconcile_duration("servicebindings"):
            try:
                return self._reconcile(namespace, name, logger)
            except Exception as e:
                logger.exception(f"Unexpected failure reconciling {namespace}/{name}: {e}")
                track_outcome("requeued")
                return ReconcileResult(requeue=True, requeue_after=self.config.retry_delay)

    def _reconcile(self, namespace: str, name: str, logger) -> ReconcileResult:
        try:
            obj = self.cluster.get(BINDING_API_VERSION, BINDING_KIND, name, namespace)
        except NotFoundError:
            logger.debug("Binding is gone, nothing to do")
            return ReconcileResult()
        except ClusterError as e:
            logger.error(f"Failed to read binding: {e}")
            return ReconcileResult(requeue=True, requeue_after=self.config.retry_delay)

        binding = ServiceBinding.from_dict(obj)

        if binding.is_finalizing:
            return self.finalize(binding, logger)

        if not binding.has_finalizer():
            try:
                self.executor.add_finalizer(binding)
            except ClusterError as e:
                logger.error(f"Failed to add finalizer: {e}")
                return ReconcileResult(requeue=True, requeue_after=self.config.retry_delay)
            return ReconcileResult(requeue=True, requeue_after=0.0)

        return self.bind(binding, logger)

    def _delay_for(self, error: BindingError) -> Optional[float]:
        if not error.requeue:
            return None
        if isinstance(error, NotAvailableError):
            return self.config.requeue_delay
        return self.config.retry_delay

    def bind(self, binding: ServiceBinding, logger) -> ReconcileResult:
        logger.info(f"Reconciling binding {binding.key}")

        try:
            binding.application.validate()
        except ValidationError as e:
            logger.warning(f"Invalid application reference: {e}")
            return self._report(binding, Outcome(False, e.reason, str(e)), None, logger)

        try:
            secret = self.services.resolve(binding)
        except SecretNotFoundError as e:
            logger.warning(f"Backing secret missing, unbinding applications: {e}")
            self.unbind(binding, logger)
            return self._report(binding, Outcome(False, e.reason, str(e)), self._delay_for(e), logger)
        except BindingError as e:
            logger.warning(f"Backing service not resolved: {e}")
            return self._report(binding, Outcome(False, e.reason, str(e)), self._delay_for(e), logger)
        except ClusterError as e:
            logger.error(f"Failed to resolve backing service: {e}")
            return self._report(
                binding, Outcome(False, BindingError.reason, str(e)), self.config.retry_delay, logger
            )

        secret_name = (secret.get("metadata") or {}).get("name", "")

        try:
            self.executor.ensure_config_map(binding)
            projection = build_projection(binding, secret)
            apps = self.applications.locate(binding)
            mapping = self.mappings.resolve(binding.application.api_version, binding.application.kind)
        except BindingError as e:
            logger.warning(f"Binding not applied: {e}")
            return self._report(
                binding, Outcome(False, e.reason, str(e), secret_name), self._delay_for(e), logger
            )
        except ClusterError as e:
            logger.error(f"Cluster error while preparing projection: {e}")
            return self._report(
                binding,
                Outcome(False, BindingError.reason, str(e), secret_name),
                self.config.retry_delay,
                logger,
            )

        logger.info(
            f"Projecting secret {secret_name} into {len(apps)} application(s)",
            extra={"volume": projection.volume_name, "mapping": mapping.source},
        )

        failures: List[str] = []
        retryable = False
        for app in apps:
            try:
                mutated = bind_application(
                    app,
                    mapping,
                    projection,
                    binding.application.containers,
                    self.config.container_matching,
                )
                result = self.executor.update_application(app, mutated)
                track_application_update("noop" if result["noop"] else "updated")
            except BindingError as e:
                logger.error(f"Cannot bind {_app_key(app)}: {e}")
                failures.append(f"{_app_key(app)}: {e}")
                retryable = retryable or e.requeue
                track_application_update("failed")
            except ClusterError as e:
                logger.error(f"Failed to update {_app_key(app)}: {e}")
                failures.append(f"{_app_key(app)}: {e}")
                retryable = True
                track_application_update("failed")

        if failures:
            outcome = Outcome(False, ApplicationUpdateError.reason, "; ".join(failures), secret_name)
            delay = self.config.retry_delay if retryable else None
            return self._report(binding, outcome, delay, logger)

        return self._report(binding, Outcome(True, REASON_BOUND, "", secret_name), None, logger)

    def unbind(self, binding: ServiceBinding, logger) -> List[str]:
        """
        Strip this binding from its applications.

        Returns the failures; an unresolvable reference means there is
        nothing to unbind.
        """
        try:
            apps = self.applications.locate(binding)
            mapping = self.mappings.resolve(binding.application.api_version, binding.application.kind)
        except (ValidationError, ApplicationNotFoundError) as e:
            logger.info(f"No applications to unbind: {e}")
            return []
        except (BindingError, ClusterError) as e:
            logger.error(f"Cannot resolve applications to unbind: {e}")
            return [str(e)]

        failures = []
        for app in apps:
            try:
                stripped = unbind_application(
                    app,
                    mapping,
                    volume_name_prefix(binding.name),
                    env_names(binding.env),
                    binding.application.containers,
                    self.config.container_matching,
                )
                self.executor.update_application(app, stripped)
            except (BindingError, ClusterError) as e:
                logger.error(f"Failed to unbind {_app_key(app)}: {e}")
                failures.append(f"{_app_key(app)}: {e}")
        return failures

    def finalize(self, binding: ServiceBinding, logger) -> ReconcileResult:
        if not binding.has_finalizer():
            return ReconcileResult()

        if self.config.unbind_on_delete:
            failures = self.unbind(binding, logger)
            if failures:
                logger.warning(f"Keeping finalizer, {len(failures)} application(s) not unbound")
                return ReconcileResult(requeue=True, requeue_after=self.config.retry_delay)

        try:
            self.executor.remove_finalizer(binding)
        except NotFoundError:
            return ReconcileResult()
        except ClusterError as e:
            logger.error(f"Failed to remove finalizer: {e}")
            return ReconcileResult(requeue=True, requeue_after=self.config.retry_delay)
        logger.info(f"Binding {binding.key} finalized")
        return ReconcileResult()

    def _report(
        self,
        binding: ServiceBinding,
        outcome: Outcome,
        requeue_after: Optional[float],
        logger,
    ) -> ReconcileResult:
        try:
            self.status.write(binding, outcome)
        except ClusterError as e:
            logger.error(f"Failed to write status: {e}")
            track_outcome("requeued")
            return ReconcileResult(requeue=True, requeue_after=self.config.retry_delay, outcome=outcome)

        if requeue_after is not None:
            track_outcome("requeued")
            return ReconcileResult(requeue=True, requeue_after=requeue_after, outcome=outcome)
        track_outcome("ready" if outcome.ready else "not_ready")
        return ReconcileResult(outcome=outcome)
