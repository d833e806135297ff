"""Shared test fixtures for the binding engine and operator tests."""

import pytest

from binding_engine.core import FixedClock
from binding_operator.config import OperatorConfig
from binding_operator.reconciler import ServiceBindingReconciler

from binding_engine.tests.fake_cluster import FakeCluster


@pytest.fixture
def cluster():
    """Empty in-memory cluster."""
    return FakeCluster()


@pytest.fixture
def clock():
    return FixedClock()


@pytest.fixture
def config():
    return OperatorConfig()


@pytest.fixture
def reconciler(cluster, config, clock):
    """Reconciler wired to the fake cluster and a pinned clock."""
    return ServiceBindingReconciler(cluster, config, clock)


@pytest.fixture(autouse=True)
def clean_binding_env(monkeypatch):
    """Keep the process environment from leaking into config tests."""
    for var in (
        "BINDING_REQUEUE_DELAY_SECONDS",
        "BINDING_RETRY_DELAY_SECONDS",
        "BINDING_CONTAINER_MATCHING",
        "BINDING_UNBIND_ON_DELETE",
        "BINDING_REQUEST_TIMEOUT_SECONDS",
        "BINDING_WATCH_SECRETS",
        "METRICS_ENABLED",
        "METRICS_PORT",
    ):
        monkeypatch.delenv(var, raising=False)
