"""Domain exceptions.

Lookups that miss raise plain ``ValueError`` with a ``"... not found"``
message, the same way the repositories do.
"""


class InvalidSessionStateError(RuntimeError):
    """Raised when an operation is not allowed in the session's current state."""


class PathAccessError(PermissionError):
    """Raised when a scan path is malformed or outside the allowed directories."""
