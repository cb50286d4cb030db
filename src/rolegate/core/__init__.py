"""Core services and cross-cutting concerns."""

from rolegate.core.database import Base
from rolegate.core.errors import (
    AppException,
    ConflictError,
    NotFoundError,
    StorageError,
    UnauthorizedError,
    register_exception_handlers,
)
from rolegate.core.logging import configure_logging


__all__ = [
    # Errors
    "AppException",
    # Database
    "Base",
    "ConflictError",
    "NotFoundError",
    "StorageError",
    "UnauthorizedError",
    "configure_logging",
    "register_exception_handlers",
]
