"""Error types shared across EntityForge.

Every error a handler raises derives from EntityForgeError and carries a
machine-readable code. The API layer maps codes to HTTP status codes.
"""


class EntityForgeError(Exception):
    """Base exception for EntityForge errors."""

    code = "ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class AuthenticationRequired(EntityForgeError):
    """Raised when an operation is invoked without a known caller."""

    code = "AUTHENTICATION_REQUIRED"


class AuthorizationDenied(EntityForgeError):
    """Raised when the caller may not act on the resolved resource."""

    code = "FORBIDDEN"


class ResourceResolutionFailed(EntityForgeError):
    """Raised when the resource an operation targets cannot be determined.

    Covers a missing or malformed argument path as well as a resource id
    that does not reference an existing record.
    """

    code = "RESOURCE_RESOLUTION_FAILED"


class DataConflictError(EntityForgeError):
    """Raised when a mutation conflicts with existing data or invariants."""

    code = "CONFLICT"


class NotFoundError(EntityForgeError):
    """Raised when a mutation targets a record that does not exist."""

    code = "NOT_FOUND"


class InvalidArgumentsError(EntityForgeError):
    """Raised when operation arguments are malformed (e.g. unknown filter fields)."""

    code = "BAD_REQUEST"


class UnknownOperationError(EntityForgeError):
    """Raised when dispatching an operation name that is not registered."""

    code = "UNKNOWN_OPERATION"
