"""
kopf entry point.

Run with:
    kopf run -m binding_operator.main --all-namespaces

Handlers stay thin: they turn kopf events into reconcile() calls and
ReconcileResult requeues into kopf.TemporaryError.
"""

import kopf

from binding_engine.core import BINDING_GROUP, BINDING_PLURAL, BINDING_VERSION

from .cluster import ClusterClient, ClusterError
from .config import OperatorConfig
from .logging_config import get_logger, setup_logging
from .metrics import start_metrics_server, track_secret_trigger
from .reconciler import ReconcileResult, ServiceBindingReconciler
from .watch_index import SecretWatchIndex

_state = {}

def _raise_for(result: ReconcileResult) -> None:
    if result.requeue:
        reason = result.outcome.reason if result.outcome else "requeue"
        raise kopf.TemporaryError(reason, delay=result.requeue_after)


@kopf.on.startup()
def _startup(**_):
    setup_logging()
    config = OperatorConfig.from_env()

    start_metrics_server(enabled=config.metrics_enabled, port=config.metrics_port)

    cluster = ClusterClient.from_config(request_timeout=config.request_timeout)
    _state["config"] = config
    _state["reconciler"] = ServiceBindingReconciler(cluster, config)
    _state["watch_index"] = SecretWatchIndex(cluster)

    logger = get_logger(__name__)
    logger.info("Operator startup complete", extra={
        "metrics_enabled": config.metrics_enabled,
        "metrics_port": config.metrics_port,
        "container_matching": config.container_matching,
        "unbind_on_delete": config.unbind_on_delete,
        "watch_secrets": config.watch_secrets,
    })

@kopf.on.resume(BINDING_GROUP, BINDING_VERSION, BINDING_PLURAL)
@kopf.on.create(BINDING_GROUP, BINDING_VERSION, BINDING_PLURAL)
@kopf.on.update(BINDING_GROUP, BINDING_VERSION, BINDING_PLURAL)
def binding_reconcile(name, namespace, **_):
    _raise_for(_state["reconciler"].reconcile(namespace, name))

@kopf.on.delete(BINDING_GROUP, BINDING_VERSION, BINDING_PLURAL, optional=True)
def binding_finalize(name, namespace, **_):
    # optional=True: kopf adds no finalizer of its own; ours holds the object.
    _raise_for(_state["reconciler"].reconcile(namespace, name))

@kopf.on.event("", "v1", "secrets")
def secret_changed(type, body, name, namespace, **_):
    config = _state.get("config")
    if config is None or not config.watch_secrets:
        return
    if type not in (None, "ADDED", "MODIFIED"):
        return

    logger = get_logger(__name__, trace_id=f"{namespace}/{name}")
    try:
        triggered = _state["watch_index"].notify(dict(body))
    except ClusterError as e:
        logger.error(f"Failed to map secret change to bindings: {e}")
        return
    track_secret_trigger(len(triggered))
