"""Domain exceptions for the access-control library.

These exceptions represent business-logic errors and are converted to
RFC 7807 Problem Details responses by the exception handlers.
"""

from typing import Any


class AppException(Exception):
    """Base exception for all library errors.

    All domain exceptions should inherit from this class.

    Attributes:
        message: Human-readable error message
        error_code: Machine-readable error code for clients
        status_code: HTTP status code for the response
        details: Additional error details
    """

    message: str = "An unexpected error occurred"
    error_code: str = "internal_error"
    status_code: int = 500

    def __init__(
        self,
        message: str | None = None,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message or self.message
        self.error_code = error_code or self.error_code
        self.details = details or {}
        super().__init__(self.message)


class NotFoundError(AppException):
    """Raised when a requested resource is not found.

    Example:
        raise NotFoundError("Role not found", resource="role", resource_id="admin")
    """

    message = "Resource not found"
    error_code = "not_found"
    status_code = 404

    def __init__(
        self,
        message: str | None = None,
        resource: str | None = None,
        resource_id: str | None = None,
        **kwargs: Any,
    ) -> None:
        details = kwargs.pop("details", {})
        if resource:
            details["resource"] = resource
        if resource_id:
            details["resource_id"] = resource_id
        super().__init__(message=message, details=details, **kwargs)


class ConflictError(AppException):
    """Raised when there's a conflict with existing data.

    Example:
        raise ConflictError("Role already registered", details={"name": name})
    """

    message = "Resource conflict"
    error_code = "conflict"
    status_code = 409


class UnauthorizedError(AppException):
    """Raised when the caller cannot be identified or is not allowed in.

    Example:
        raise UnauthorizedError("Missing consumer header")
    """

    message = "Authentication required"
    error_code = "unauthorized"
    status_code = 401


class BadRequestError(AppException):
    """Raised for general client errors.

    Example:
        raise BadRequestError("Invalid request format")
    """

    message = "Bad request"
    error_code = "bad_request"
    status_code = 400


class ServiceUnavailableError(AppException):
    """Raised when a required service is unavailable.

    Example:
        raise ServiceUnavailableError("Database connection failed")
    """

    message = "Service temporarily unavailable"
    error_code = "service_unavailable"
    status_code = 503


# ============================================================
# Registration / assignment conflicts
# ============================================================


class DuplicateRoleError(ConflictError):
    """Raised when a role name is already registered."""

    message = "Role already exists"
    error_code = "duplicate_role"


class DuplicatePermissionError(ConflictError):
    """Raised when a permission name is already registered."""

    message = "Permission already exists"
    error_code = "duplicate_permission"


class DuplicateUserRoleError(ConflictError):
    """Raised when a user already holds the role being assigned."""

    message = "User already has this role"
    error_code = "duplicate_user_role"


class DuplicateRolePermissionError(ConflictError):
    """Raised when a role already holds one of the permissions being assigned."""

    message = "Role already has this permission"
    error_code = "duplicate_role_permission"


class DuplicateUserPermissionError(ConflictError):
    """Raised when a user already holds one of the permissions being granted."""

    message = "User already has this permission"
    error_code = "duplicate_user_permission"


# ============================================================
# Name resolution
# ============================================================


class RoleNotFoundError(NotFoundError):
    """Raised when role names do not resolve to stored roles."""

    message = "Role not found"
    error_code = "role_not_found"

    def __init__(self, names: list[str], **kwargs: Any) -> None:
        details = kwargs.pop("details", {})
        details["names"] = names
        super().__init__(resource="role", details=details, **kwargs)
        self.names = names


class PermissionNotFoundError(NotFoundError):
    """Raised when permission names do not resolve to stored permissions."""

    message = "Permission not found"
    error_code = "permission_not_found"

    def __init__(self, names: list[str], **kwargs: Any) -> None:
        details = kwargs.pop("details", {})
        details["names"] = names
        super().__init__(resource="permission", details=details, **kwargs)
        self.names = names


# ============================================================
# Expression parsing
# ============================================================


class InvalidExpressionError(BadRequestError):
    """Raised when an access expression clause is malformed.

    Example:
        raise InvalidExpressionError(details={"clause": "role"})
    """

    message = "Invalid access expression format, expected key:value[,value]"
    error_code = "invalid_expression"


class UnknownKeyError(InvalidExpressionError):
    """Raised when an expression clause uses a key other than role/permission."""

    message = "Unknown expression key, valid keys: role, permission"
    error_code = "unknown_expression_key"


class DuplicateKeyError(InvalidExpressionError):
    """Raised when an expression repeats the same key in two clauses."""

    message = "Expression key repeated, combine the values into one clause"
    error_code = "duplicate_expression_key"


class InvalidScopeError(BadRequestError):
    """Raised when only one of module/method is supplied to a check."""

    message = "Module and method must be supplied together"
    error_code = "invalid_scope"


# ============================================================
# Consumer identity and access decisions
# ============================================================


class InvalidConsumerFormatError(UnauthorizedError):
    """Raised when the consumer identity value is not label:<id>."""

    message = "Invalid consumer username format, example: consumer:1"
    error_code = "invalid_consumer_format"


class InvalidConsumerIdError(UnauthorizedError):
    """Raised when the consumer identity suffix is not an integer."""

    message = "Consumer id must be an integer"
    error_code = "invalid_consumer_id"


class AccessDeniedError(UnauthorizedError):
    """Raised when a principal does not satisfy an access expression."""

    message = "You don't have permission"
    error_code = "access_denied"


# ============================================================
# Storage
# ============================================================


class StorageError(ServiceUnavailableError):
    """Raised when the relational store fails a query.

    The original driver exception is chained as ``__cause__``.
    """

    message = "Access control storage failure"
    error_code = "storage_error"
