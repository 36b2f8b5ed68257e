"""
Error types raised by the SQL adapter.

Statement execution failures (constraint violations, malformed SQL, backend
errors) are not wrapped: the driver's own exception reaches the caller.
"""


class AdapterError(Exception):
    """Base class for adapter errors"""


class ConfigurationError(AdapterError):
    """A property value could not be used (bad number, malformed field spec, ...)"""


class ConnectionAcquireError(AdapterError):
    """No connection could be obtained from the pool (exhausted or unreachable)"""


class StaleConnectionError(AdapterError):
    """The connection was invalidated and can no longer prepare statements"""


class OperationCancelledError(AdapterError):
    """The caller's deadline expired or the operation was cancelled"""


class SessionClosedError(AdapterError):
    """An operation was issued on a session after cleanup"""
