"""
Exception types for the binding engine.

Every error carries the condition reason it is reported under and whether the
failure is expected to heal by itself (requeue) or needs a spec change.
"""


class BindingError(Exception):
    """Base class for failures reported through the binding's Ready condition."""

    reason = "reconciliation failed"
    requeue = True


class ValidationError(BindingError):
    """Raised when the binding or a mapping rule is invalid. Terminal for the pass."""

    reason = "invalid service binding"
    requeue = False


class AppNameSelectorConflictError(ValidationError):
    """Raised when the application is referenced by both name and selector."""

    reason = "application name and selector cannot be used together"

    def __init__(self, name: str, selector: dict):
        super().__init__(f"Name: {name}, Selector: {selector}")
        self.name = name
        self.selector = selector


class MissingApplicationReferenceError(ValidationError):
    """Raised when the application reference carries neither name nor selector."""

    reason = "application name or selector must be specified"


class MappingRuleError(ValidationError):
    """Raised when an application resource mapping rule is malformed."""

    reason = "invalid application resource mapping"


class MissingContainersError(ValidationError):
    """Raised when the primary container path is absent from an application."""

    reason = "application has no containers"


class TreeError(ValidationError):
    """Raised when a nested field has an unexpected shape."""

    reason = "malformed application resource"


class NotAvailableError(BindingError):
    """Raised when a referenced resource does not exist (yet)."""

    reason = "referenced resource not available"


class BackingServiceNotFoundError(NotAvailableError):
    reason = "unable to retrieve backing service"


class ProvisionedServiceNotReadyError(NotAvailableError):
    """Raised when the backing service does not expose status.binding.name."""

    reason = "backing service does not expose a binding secret"


class SecretNotFoundError(NotAvailableError):
    reason = "unable to retrieve the Secret object"


class ApplicationNotFoundError(NotAvailableError):
    reason = "unable to retrieve application"


class ApplicationUpdateError(BindingError):
    """Raised when one or more application updates failed in a fan-out."""

    reason = "application update failed"


class ConfigMapError(BindingError):
    reason = "unable to create ConfigMap resource"
