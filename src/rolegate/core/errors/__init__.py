"""Error handling module with RFC 7807 Problem Details."""

from rolegate.core.errors.exceptions import (
    AccessDeniedError,
    AppException,
    BadRequestError,
    ConflictError,
    DuplicateKeyError,
    DuplicatePermissionError,
    DuplicateRoleError,
    DuplicateRolePermissionError,
    DuplicateUserPermissionError,
    DuplicateUserRoleError,
    InvalidConsumerFormatError,
    InvalidConsumerIdError,
    InvalidExpressionError,
    InvalidScopeError,
    NotFoundError,
    PermissionNotFoundError,
    RoleNotFoundError,
    ServiceUnavailableError,
    StorageError,
    UnauthorizedError,
    UnknownKeyError,
)
from rolegate.core.errors.handlers import (
    ProblemDetail,
    problem_response,
    register_exception_handlers,
)


__all__ = [
    "AccessDeniedError",
    # Exceptions
    "AppException",
    "BadRequestError",
    "ConflictError",
    "DuplicateKeyError",
    "DuplicatePermissionError",
    "DuplicateRoleError",
    "DuplicateRolePermissionError",
    "DuplicateUserPermissionError",
    "DuplicateUserRoleError",
    "InvalidConsumerFormatError",
    "InvalidConsumerIdError",
    "InvalidExpressionError",
    "InvalidScopeError",
    "NotFoundError",
    "PermissionNotFoundError",
    # Handlers
    "ProblemDetail",
    "RoleNotFoundError",
    "ServiceUnavailableError",
    "StorageError",
    "UnauthorizedError",
    "UnknownKeyError",
    "problem_response",
    "register_exception_handlers",
]
