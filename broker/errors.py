"""
Typed failures raised by the broker core.

The API layer maps each failure onto an HTTP status through `status_code`.
"""


class BrokerError(Exception):
    """Base class for every failure surfaced by the lifecycle controller."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class MountFailure(BrokerError):
    """Local root creation or the external mount invocation failed."""


class ShareOperationFailure(BrokerError):
    """Share directory create/delete failed."""


class ShareNotFound(BrokerError):
    status_code = 404


class InstanceNotFound(BrokerError):
    status_code = 404


class BindingNotFound(BrokerError):
    status_code = 404


class Conflict(BrokerError):
    """An existing record differs from the incoming request."""

    status_code = 409


class BindingsOutstanding(Conflict):
    """Strict deprovision refused because bindings still reference the instance."""


class ValidationFailure(BrokerError):
    status_code = 422


class NotImplementedFailure(BrokerError):
    status_code = 501


class PersistenceFailure(BrokerError):
    """The state file for a category could not be serialized or written."""
