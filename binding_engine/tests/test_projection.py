"""
Tests for projected volume and ConfigMap construction.
"""

import pytest

from binding_engine.core import ServiceBinding
from binding_engine.inject import (
    build_config_map,
    build_projection,
    owned_entry,
    owned_volume_name,
    secret_value,
    volume_name_prefix,
)
from binding_engine.tests.factories import binding, secret


def test_volume_name_tracks_secret_revision():
    """Each secret revision yields a new volume name under the same prefix."""
    sb = ServiceBinding.from_dict(binding())
    p1 = build_projection(sb, secret(resource_version="7"))
    p2 = build_projection(sb, secret(resource_version="8"))

    assert p1.volume_name == "sb1-7"
    assert p2.volume_name == "sb1-8"
    assert p1.volume_name_prefix == p2.volume_name_prefix == "sb1"
    assert owned_volume_name(p1.volume_name, p2.volume_name_prefix)


def test_volume_name_prefix_is_truncated():
    """Binding names longer than 56 characters are cut for the volume name."""
    long_name = "x" * 80
    assert volume_name_prefix(long_name) == "x" * 56


@pytest.mark.parametrize("name,prefix,expected", [
    ("db-7", "db", True),
    ("db-replica-5", "db-replica", True),
    ("db-replica-5", "db", False),
    ("db-data", "db", False),
    ("db", "db", False),
    ("db-", "db", False),
    (None, "db", False),
])
def test_owned_volume_name_matches_whole_identity(name, prefix, expected):
    """Ownership needs the exact prefix followed by a resource version."""
    assert owned_volume_name(name, prefix) is expected


def test_owned_entry_requires_mapping():
    """Only mapping entries with a matching name are owned."""
    assert owned_entry({"name": "sb1-3", "mountPath": "/x"}, "sb1")
    assert not owned_entry("sb1-3", "sb1")
    assert not owned_entry({"mountPath": "/x"}, "sb1")


def test_projected_sources_secret_then_config_map():
    """The projected volume lists the secret before the overrides ConfigMap."""
    sb = ServiceBinding.from_dict(binding())
    projection = build_projection(sb, secret())

    assert projection.volume == {
        "name": "sb1-7",
        "projected": {"sources": [{"secret": {"name": "secret1"}}, {"configMap": {"name": "sb1"}}]},
    }


def test_env_values_are_decoded():
    """Env values are base64-decoded; a missing key resolves to an empty string."""
    sb = ServiceBinding.from_dict(binding(env=[
        {"name": "USER", "key": "username"},
        {"name": "PASS", "key": "password"},
        {"name": "MISSING", "key": "nope"},
    ]))
    projection = build_projection(sb, secret(username="guest", password="s3cret"))
    assert projection.env == (("USER", "guest"), ("PASS", "s3cret"), ("MISSING", ""))


def test_secret_value_string_data():
    """stringData values are returned verbatim."""
    s = {"stringData": {"host": "db.local"}}
    assert secret_value(s, "host") == "db.local"
    assert secret_value(s, "port") == ""


def test_mount_directory_uses_spec_name():
    """spec.name overrides the binding name as the mount directory."""
    raw = binding()
    raw["spec"]["name"] = "custom"
    sb = ServiceBinding.from_dict(raw)
    assert build_projection(sb, secret()).mount_path_dir == "custom"


def test_config_map_carries_overrides_and_owner():
    """The overrides ConfigMap copies labels, type/provider and an owner reference."""
    raw = binding(type="postgresql", provider="bitnami")
    raw["metadata"]["labels"] = {"team": "a"}
    cm = build_config_map(ServiceBinding.from_dict(raw))

    assert cm["metadata"]["name"] == "sb1"
    assert cm["metadata"]["labels"] == {"team": "a"}
    assert cm["data"] == {"type": "postgresql", "provider": "bitnami"}
    owner = cm["metadata"]["ownerReferences"][0]
    assert owner["kind"] == "ServiceBinding"
    assert owner["uid"] == "uid-sb1"
    assert owner["controller"] is True
