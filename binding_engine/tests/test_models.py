"""
Tests for binding decoding, label selectors and the Provisioned Service duck type.
"""

import pytest

from binding_engine.core import (
    AppNameSelectorConflictError,
    ApplicationReference,
    GroupVersionKind,
    LabelSelector,
    MissingApplicationReferenceError,
    ProvisionedService,
    ServiceBinding,
    ValidationError,
)
from binding_engine.tests.factories import binding


def test_binding_decoding():
    """A ServiceBinding manifest decodes into the typed model."""
    sb = ServiceBinding.from_dict(binding())

    assert sb.key == "default/sb1"
    assert sb.service.kind == "Secret"
    assert sb.application.name == "app1"
    assert sb.env[0].name == "BACKING_SERVICE_USERNAME"
    assert sb.has_finalizer()
    assert not sb.is_finalizing
    assert sb.mount_path_dir == "sb1"


def test_group_version_split():
    """apiVersion splits into group and version."""
    assert GroupVersionKind.from_api_version("apps/v1", "Deployment").group == "apps"
    core = GroupVersionKind.from_api_version("v1", "Secret")
    assert (core.group, core.version, core.api_version) == ("", "v1", "v1")


def test_name_and_selector_conflict():
    """Name and selector together is a terminal validation error."""
    ref = ApplicationReference.from_dict({
        "apiVersion": "apps/v1",
        "kind": "Deployment",
        "name": "app1",
        "selector": {"matchLabels": {"app": "web"}},
    })
    with pytest.raises(AppNameSelectorConflictError) as exc:
        ref.validate()
    assert exc.value.reason == "application name and selector cannot be used together"
    assert exc.value.requeue is False


def test_missing_reference():
    """An application reference needs a name or a selector."""
    with pytest.raises(MissingApplicationReferenceError):
        ApplicationReference.from_dict({"apiVersion": "apps/v1", "kind": "Deployment"}).validate()


def test_selector_string():
    """Label selectors render in Kubernetes selector syntax."""
    selector = LabelSelector.from_dict({
        "matchLabels": {"env": "test", "app": "web"},
        "matchExpressions": [
            {"key": "tier", "operator": "In", "values": ["a", "b"]},
            {"key": "legacy", "operator": "DoesNotExist"},
            {"key": "zone", "operator": "Exists"},
            {"key": "track", "operator": "NotIn", "values": ["canary"]},
        ],
    })
    assert selector.to_selector_string() == "app=web,env=test,tier in (a,b),!legacy,zone,track notin (canary)"


def test_selector_unknown_operator():
    """An unsupported selector operator is a validation error."""
    selector = LabelSelector.from_dict({"matchExpressions": [{"key": "a", "operator": "Gt", "values": ["1"]}]})
    with pytest.raises(ValidationError):
        selector.to_selector_string()


def test_provisioned_service_duck_type():
    """Only a string status.binding.name marks a Provisioned Service."""
    assert ProvisionedService.from_resource({"status": {"binding": {"name": "secret-x"}}}).secret_name == "secret-x"
    assert ProvisionedService.from_resource({"status": {"phase": "Pending"}}) is None
    assert ProvisionedService.from_resource({"status": {"binding": "secret-x"}}) is None
    assert ProvisionedService.from_resource({}) is None
