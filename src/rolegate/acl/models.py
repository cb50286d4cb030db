"""Access-control database models.

This module defines the RBAC (Role-Based Access Control) schema:
- Role: A named bundle of permissions
- Permission: A named, atomic capability
- role_has_permissions: Junction table linking roles to permissions
- user_has_roles: Junction table linking accounts to roles
- user_has_permissions: Junction table granting permissions directly

The account table itself belongs to the host application and is only
referenced through ``account_table()``.
"""

from sqlalchemy import Column, Integer, String, Table
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql.expression import TableClause, column, table

from rolegate.core.constants import (
    DEFAULT_ACCOUNT_NAME_COLUMN,
    DEFAULT_ACCOUNT_TABLE,
    DEFAULT_USER_ROLE_TABLE,
    MAX_PERMISSION_NAME_LENGTH,
    MAX_ROLE_NAME_LENGTH,
    PERMISSION_TABLE,
    ROLE_PERMISSION_TABLE,
    ROLE_TABLE,
    USER_PERMISSION_TABLE,
)
from rolegate.core.database.base import Base, IntegerIDMixin, TimestampMixin


class Role(Base, IntegerIDMixin, TimestampMixin):
    """Role model representing a named set of permissions.

    Attributes:
        name: Globally unique role name (e.g., "admin", "Superadmin")
    """

    __tablename__ = ROLE_TABLE

    name: Mapped[str] = mapped_column(
        String(MAX_ROLE_NAME_LENGTH),
        nullable=False,
        unique=True,
    )

    def __repr__(self) -> str:
        return f"<Role(id={self.id}, name={self.name})>"


class Permission(Base, IntegerIDMixin, TimestampMixin):
    """Permission model representing a single capability.

    Permissions scoped to a module and HTTP method follow the
    ``module.method`` naming convention, e.g. ``products.get``.

    Attributes:
        name: Globally unique permission name
    """

    __tablename__ = PERMISSION_TABLE

    name: Mapped[str] = mapped_column(
        String(MAX_PERMISSION_NAME_LENGTH),
        nullable=False,
        unique=True,
    )

    def __repr__(self) -> str:
        return f"<Permission(id={self.id}, name={self.name})>"


# Junction table for Role <-> Permission many-to-many relationship
role_has_permissions = Table(
    ROLE_PERMISSION_TABLE,
    Base.metadata,
    Column("role_id", Integer, primary_key=True),
    Column("permission_id", Integer, primary_key=True),
)

# Direct Account -> Permission grants
user_has_permissions = Table(
    USER_PERMISSION_TABLE,
    Base.metadata,
    Column("user_id", Integer, primary_key=True),
    Column("permission_id", Integer, primary_key=True),
)


def user_role_table(name: str = DEFAULT_USER_ROLE_TABLE) -> Table:
    """Get the Account -> Role junction table registered under ``name``.

    The table is created in the library metadata on first use so that
    ``create_all`` picks up custom names as well as the default.
    """
    existing = Base.metadata.tables.get(name)
    if existing is not None:
        return existing
    return Table(
        name,
        Base.metadata,
        Column("user_id", Integer, primary_key=True),
        Column("role_id", Integer, primary_key=True),
    )


user_has_roles = user_role_table()


def account_table(
    name: str = DEFAULT_ACCOUNT_TABLE,
    name_column: str = DEFAULT_ACCOUNT_NAME_COLUMN,
    role_column: str | None = None,
) -> TableClause:
    """Describe the host application's account table.

    Returns a lightweight table clause that is not attached to any
    metadata, so the library never creates or alters it.

    Args:
        name: Table name, optionally schema-qualified ("auth.users")
        name_column: Column holding the account display name
        role_column: Optional column holding the account's role name

    Returns:
        TableClause exposing ``id``, the name column and, when configured,
        the role column
    """
    schema, _, table_name = name.rpartition(".")
    columns = [column("id"), column(name_column)]
    if role_column:
        columns.append(column(role_column))
    return table(table_name, *columns, schema=schema or None)
