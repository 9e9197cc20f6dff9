"""Error kinds raised by the alert engine.

Every store-level failure is raised to the caller as one of these; the HTTP
layer maps them onto status codes.
"""


class AlertError(RuntimeError):
    """Base class for alert engine failures."""


class UnknownAlertError(AlertError):
    """The alert does not exist or is no longer visible to the caller."""


class AccessDeniedError(AlertError):
    """The caller lacks permission for the requested operation."""


class DuplicateAlertError(AlertError):
    """An alert with the same owner, type, view and scope already exists."""


class InvalidArgumentsError(AlertError):
    """The scope, view or delivery settings are malformed or inconsistent."""


class AlertStorageError(AlertError):
    """A transient storage failure persisted after the allowed retries."""
