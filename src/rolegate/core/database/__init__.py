"""Database layer - engine/session construction, base models, and mixins."""

from rolegate.core.database.base import Base, IntegerIDMixin, TimestampMixin
from rolegate.core.database.session import create_engine, create_session_factory


__all__ = [
    "Base",
    "IntegerIDMixin",
    "TimestampMixin",
    "create_engine",
    "create_session_factory",
]
