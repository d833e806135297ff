"""
Tests for application resource mapping resolution.
"""

import pytest

from binding_engine.core import MappingRuleError
from binding_engine.mapping import (
    CONTAINERS_PATH,
    DEFAULT_MAPPING,
    INIT_CONTAINERS_PATH,
    VOLUMES_PATH,
    mapping_from_rule,
    mapping_rule_name,
    select_version_entry,
)
from binding_engine.tests.factories import mapping_rule


def test_rule_name_uses_plural_and_group():
    """Rule names are <plural>.<group>, or the bare plural for the core group."""
    assert mapping_rule_name("deployments", "apps") == "deployments.apps"
    assert mapping_rule_name("pods", "") == "pods"


def test_no_rule_falls_back_to_pod_template_convention():
    """No rule means the pod template paths."""
    mapping = mapping_from_rule(None, "v1")
    assert mapping == DEFAULT_MAPPING
    assert mapping.container_paths == (CONTAINERS_PATH, INIT_CONTAINERS_PATH)
    assert mapping.volumes_path == VOLUMES_PATH


def test_exact_version_wins_over_wildcard():
    """An exact version entry is preferred over "*"."""
    rule = mapping_rule("custompods.example.com", [
        {"version": "*", "containers": [{"path": ".spec.wild"}]},
        {"version": "v1", "containers": [{"path": ".spec.exact"}]},
    ])
    assert select_version_entry(rule, "v1")["containers"][0]["path"] == ".spec.exact"
    assert select_version_entry(rule, "v2")["containers"][0]["path"] == ".spec.wild"


def test_unmatched_version_uses_defaults():
    """A rule without a matching version falls back to the defaults."""
    rule = mapping_rule("custompods.example.com", [{"version": "v1", "containers": [".spec.containers"]}])
    assert mapping_from_rule(rule, "v2") == DEFAULT_MAPPING


def test_rule_container_and_volume_paths():
    """Container paths accept both mapping and string forms."""
    rule = mapping_rule("custompods.example.com", [
        {"version": "v1", "containers": [{"path": ".spec.containers[*]"}, ".spec.sidecars"], "volumes": ".spec.volumes"},
    ])
    mapping = mapping_from_rule(rule, "v1")
    assert mapping.container_paths == (("spec", "containers"), ("spec", "sidecars"))
    assert mapping.volumes_path == ("spec", "volumes")
    assert mapping.source == "custompods.example.com"


def test_env_override_keeps_default_container_paths():
    """env and volumeMounts overrides keep the default container paths."""
    rule = mapping_rule("jobs.batch", [{"version": "*", "env": ".envVars", "volumeMounts": ".mounts"}])
    mapping = mapping_from_rule(rule, "v1")
    assert mapping.container_paths == DEFAULT_MAPPING.container_paths
    assert mapping.env_path == ("envVars",)
    assert mapping.volume_mounts_path == ("mounts",)


def test_containers_and_env_override_are_exclusive():
    """containers together with env is an invalid rule."""
    rule = mapping_rule("custompods.example.com", [
        {"version": "v1", "containers": [{"path": ".spec.containers"}], "env": ".env"},
    ])
    with pytest.raises(MappingRuleError):
        mapping_from_rule(rule, "v1")


def test_unparsable_path_is_a_rule_error():
    """An empty path is an invalid rule."""
    rule = mapping_rule("custompods.example.com", [{"version": "v1", "containers": [{"path": ""}]}])
    with pytest.raises(MappingRuleError):
        mapping_from_rule(rule, "v1")


def test_describe_lists_dotted_paths():
    """describe() renders paths in dotted form."""
    assert DEFAULT_MAPPING.describe() == {
        "source": "default",
        "containers": [".spec.template.spec.containers", ".spec.template.spec.initContainers"],
        "volumes": ".spec.template.spec.volumes",
        "env": ".env",
        "volumeMounts": ".volumeMounts",
    }
