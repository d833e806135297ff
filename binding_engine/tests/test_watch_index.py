"""
Tests for the secret -> binding reverse-watch index.
"""

from binding_engine.core import BINDING_API_VERSION
from binding_operator.watch_index import (
    SECRET_VERSION_ANNOTATION,
    ReconcileRequest,
    SecretWatchIndex,
    requests_for_secret,
)
from binding_engine.tests.factories import binding, secret


def _bound(name, secret_name, namespace="default", service=None):
    obj = binding(name=name, namespace=namespace, service=service or {
        "apiVersion": "example.com/v1", "kind": "Database", "name": "db",
    })
    obj["status"] = {"binding": {"name": secret_name}}
    return obj


def test_matches_persisted_binding_name():
    """Bindings whose status names the secret are requeued."""
    bindings = [_bound("a", "secret1"), _bound("b", "other"), _bound("c", "secret1")]
    assert requests_for_secret(bindings, secret()) == [
        ReconcileRequest("default", "a"),
        ReconcileRequest("default", "c"),
    ]


def test_other_namespaces_are_ignored():
    """Bindings in other namespaces never match."""
    bindings = [_bound("a", "secret1", namespace="prod")]
    assert requests_for_secret(bindings, secret()) == []


def test_direct_secret_reference_matches_before_binding():
    """A direct Secret reference matches before status is written."""
    waiting = binding(name="waiting")
    assert requests_for_secret([waiting], secret()) == [ReconcileRequest("default", "waiting")]


def test_nameless_secret_yields_nothing():
    """A secret without a name matches nothing."""
    assert requests_for_secret([_bound("a", "secret1")], {"metadata": {}}) == []


def test_notify_stamps_annotation_once(cluster):
    """Each secret revision is stamped on a binding only once."""
    cluster.add(_bound("a", "secret1"))
    cluster.add(_bound("b", "unrelated"))
    s = cluster.add(secret())
    index = SecretWatchIndex(cluster)

    triggered = index.notify(s)

    assert triggered == [ReconcileRequest("default", "a")]
    annotations = cluster.peek(BINDING_API_VERSION, "ServiceBinding", "a", "default")["metadata"]["annotations"]
    assert annotations[SECRET_VERSION_ANNOTATION] == s["metadata"]["resourceVersion"]
    assert "annotations" not in cluster.peek(BINDING_API_VERSION, "ServiceBinding", "b", "default")["metadata"]

    assert index.notify(s) == []
