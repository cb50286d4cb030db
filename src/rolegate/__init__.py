"""rolegate - role-based access control for async SQLAlchemy applications."""

__version__ = "0.1.0"
