"""Access-control repository for database operations."""

from collections.abc import AsyncIterator, Iterable, Sequence
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

import structlog
from sqlalchemy import Table, func, insert, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from rolegate.acl.models import (
    Permission,
    Role,
    account_table,
    role_has_permissions,
    user_has_permissions,
    user_role_table,
)
from rolegate.acl.schemas import AccountPermission, AccountRole
from rolegate.core.constants import (
    DEFAULT_ACCOUNT_NAME_COLUMN,
    DEFAULT_ACCOUNT_TABLE,
    DEFAULT_USER_ROLE_TABLE,
)
from rolegate.core.database import Base
from rolegate.core.errors import (
    ConflictError,
    DuplicatePermissionError,
    DuplicateRoleError,
    DuplicateRolePermissionError,
    DuplicateUserPermissionError,
    DuplicateUserRoleError,
    NotFoundError,
    PermissionNotFoundError,
    RoleNotFoundError,
    StorageError,
)


if TYPE_CHECKING:
    from rolegate.config import Settings


logger = structlog.get_logger()

# Unique-violation markers: PostgreSQL SQLSTATE, then driver wording
# for PostgreSQL, MySQL/MariaDB and SQLite
_UNIQUE_VIOLATION_SQLSTATE = "23505"
_UNIQUE_VIOLATION_MARKERS = ("duplicate key", "duplicate entry", "unique constraint")


def _is_unique_violation(exc: IntegrityError) -> bool:
    """Check whether an integrity error came from a unique/primary key clash."""
    orig = exc.orig
    if getattr(orig, "sqlstate", None) == _UNIQUE_VIOLATION_SQLSTATE:
        return True
    if getattr(orig, "pgcode", None) == _UNIQUE_VIOLATION_SQLSTATE:
        return True
    message = str(orig).lower()
    return any(marker in message for marker in _UNIQUE_VIOLATION_MARKERS)


@asynccontextmanager
async def _storage_errors(operation: str) -> AsyncIterator[None]:
    """Translate driver failures into StorageError.

    Domain errors raised inside the block pass through untouched.
    """
    try:
        yield
    except SQLAlchemyError as exc:
        logger.error("storage_query_failed", operation=operation, error=str(exc))
        raise StorageError(details={"operation": operation}) from exc


class AccessRepository:
    """Repository for role, permission and assignment storage.

    Each call opens its own session from the session factory and
    commits or rolls back before returning. The account table is
    owned by the host application and is only read.

    Attributes:
        session_factory: Factory producing AsyncSession instances
        accounts: Table clause describing the account table
        user_roles: The Account -> Role junction table
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        account_table_name: str = DEFAULT_ACCOUNT_TABLE,
        account_name_column: str = DEFAULT_ACCOUNT_NAME_COLUMN,
        account_role_column: str | None = None,
        user_role_table_name: str = DEFAULT_USER_ROLE_TABLE,
    ) -> None:
        self.session_factory = session_factory
        self.account_name_column = account_name_column
        self.account_role_column = account_role_column
        self.accounts = account_table(
            account_table_name, account_name_column, account_role_column
        )
        self.user_roles = user_role_table(user_role_table_name)

    @classmethod
    def from_settings(
        cls,
        settings: "Settings",
        session_factory: async_sessionmaker[AsyncSession],
    ) -> "AccessRepository":
        """Build a repository using the table layout from settings."""
        return cls(
            session_factory,
            account_table_name=settings.account_table,
            account_name_column=settings.account_name_column,
            account_role_column=settings.account_role_column,
            user_role_table_name=settings.user_role_table,
        )

    @property
    def tables(self) -> list[Table]:
        """Library-owned tables used by this repository."""
        return [
            Role.__table__,  # type: ignore[list-item]
            Permission.__table__,  # type: ignore[list-item]
            role_has_permissions,
            user_has_permissions,
            self.user_roles,
        ]

    async def create_schema(self) -> None:
        """Create the library-owned tables if they do not exist."""
        async with (
            _storage_errors("create_schema"),
            self.session_factory() as session,
        ):
            connection = await session.connection()
            await connection.run_sync(Base.metadata.create_all, tables=self.tables)
            await session.commit()
        logger.info("schema_created", tables=[t.name for t in self.tables])

    # ============================================================
    # Registration
    # ============================================================

    async def create_role(self, name: str) -> Role:
        """Insert a new role.

        Args:
            name: Unique role name

        Returns:
            The created role with ID populated

        Raises:
            DuplicateRoleError: If the name is already registered
            StorageError: If the query fails
        """
        return await self._create_named(Role(name=name), DuplicateRoleError)

    async def create_permission(self, name: str) -> Permission:
        """Insert a new permission.

        Args:
            name: Unique permission name

        Returns:
            The created permission with ID populated

        Raises:
            DuplicatePermissionError: If the name is already registered
            StorageError: If the query fails
        """
        return await self._create_named(
            Permission(name=name), DuplicatePermissionError
        )

    async def list_roles(self) -> list[Role]:
        """List all roles ordered by ID."""
        async with (
            _storage_errors("list_roles"),
            self.session_factory() as session,
        ):
            result = await session.execute(select(Role).order_by(Role.id))
            return list(result.scalars().all())

    async def list_permissions(self) -> list[Permission]:
        """List all permissions ordered by ID."""
        async with (
            _storage_errors("list_permissions"),
            self.session_factory() as session,
        ):
            result = await session.execute(select(Permission).order_by(Permission.id))
            return list(result.scalars().all())

    # ============================================================
    # Name -> ID resolution
    # ============================================================

    async def get_role_ids(
        self, names: Sequence[str], require_all: bool = True
    ) -> list[int]:
        """Resolve role names to IDs.

        Args:
            names: Role names to resolve
            require_all: If True, every name must exist; if False, a subset
                is returned and only a complete miss is an error

        Returns:
            Role IDs in the order the names were given

        Raises:
            RoleNotFoundError: If names are missing (see require_all)
            StorageError: If the query fails
        """
        return await self._resolve_ids(Role, names, require_all, RoleNotFoundError)

    async def get_permission_ids(
        self, names: Sequence[str], require_all: bool = True
    ) -> list[int]:
        """Resolve permission names to IDs.

        Args:
            names: Permission names to resolve
            require_all: If True, every name must exist; if False, a subset
                is returned and only a complete miss is an error

        Returns:
            Permission IDs in the order the names were given

        Raises:
            PermissionNotFoundError: If names are missing (see require_all)
            StorageError: If the query fails
        """
        return await self._resolve_ids(
            Permission, names, require_all, PermissionNotFoundError
        )

    # ============================================================
    # Assignment
    # ============================================================

    async def give_permissions_to_role(
        self, role_id: int, permission_ids: Sequence[int]
    ) -> None:
        """Link permissions to a role in a single transaction.

        Raises:
            DuplicateRolePermissionError: If the role already has a permission;
                no link from the batch is kept
            StorageError: If the query fails
        """
        await self._insert_links(
            role_has_permissions,
            [
                {"role_id": role_id, "permission_id": permission_id}
                for permission_id in dict.fromkeys(permission_ids)
            ],
            DuplicateRolePermissionError,
            "give_permissions_to_role",
        )

    async def give_role_to_user(self, user_id: int, role_id: int) -> None:
        """Link a role to an account.

        Raises:
            DuplicateUserRoleError: If the account already has the role
            StorageError: If the query fails
        """
        await self._insert_links(
            self.user_roles,
            [{"user_id": user_id, "role_id": role_id}],
            DuplicateUserRoleError,
            "give_role_to_user",
        )

    async def give_permissions_to_user(
        self, user_id: int, permission_ids: Sequence[int]
    ) -> None:
        """Grant permissions directly to an account in a single transaction.

        Raises:
            DuplicateUserPermissionError: If the account already has a permission
            StorageError: If the query fails
        """
        await self._insert_links(
            user_has_permissions,
            [
                {"user_id": user_id, "permission_id": permission_id}
                for permission_id in dict.fromkeys(permission_ids)
            ],
            DuplicateUserPermissionError,
            "give_permissions_to_user",
        )

    # ============================================================
    # Account lookups
    # ============================================================

    async def get_account_role_names(self, user_id: int) -> list[str]:
        """Get the role names of an account in one query.

        Reads the account's role column when one is configured,
        otherwise joins the account to its role assignments.

        Args:
            user_id: The account ID

        Returns:
            Role names, empty when the account is unknown or has none
        """
        if self.account_role_column:
            stmt = select(self.accounts.c[self.account_role_column]).where(
                self.accounts.c.id == user_id
            )
        else:
            stmt = (
                select(Role.name)
                .select_from(self.accounts)
                .join(self.user_roles, self.user_roles.c.user_id == self.accounts.c.id)
                .join(Role, Role.id == self.user_roles.c.role_id)
                .where(self.accounts.c.id == user_id)
            )

        async with (
            _storage_errors("get_account_role_names"),
            self.session_factory() as session,
        ):
            result = await session.execute(stmt)
            return [name for name in result.scalars().all() if name is not None]

    async def get_account_roles(
        self, user_id: int, role_ids: Sequence[int]
    ) -> list[AccountRole]:
        """Get the account's memberships among the given roles.

        Args:
            user_id: The account ID
            role_ids: Role IDs to look for

        Returns:
            One AccountRole per matching membership
        """
        stmt = (
            select(
                self._account_name().label("full_name"),
                Role.name.label("role_name"),
            )
            .select_from(self.user_roles)
            .join(self.accounts, self.accounts.c.id == self.user_roles.c.user_id)
            .join(Role, Role.id == self.user_roles.c.role_id)
            .where(
                self.user_roles.c.user_id == user_id,
                self.user_roles.c.role_id.in_(role_ids),
            )
            .order_by(Role.id)
        )

        async with (
            _storage_errors("get_account_roles"),
            self.session_factory() as session,
        ):
            result = await session.execute(stmt)
            return [
                AccountRole(full_name=row.full_name, role_name=row.role_name)
                for row in result.all()
            ]

    async def get_account_role_permissions(
        self, user_id: int, role_ids: Sequence[int] | None = None
    ) -> list[AccountPermission]:
        """Get permissions an account holds through role membership.

        Args:
            user_id: The account ID
            role_ids: Only consider these roles; all of the account's roles
                when None

        Returns:
            One AccountPermission per distinct permission
        """
        stmt = (
            select(
                self._account_name().label("full_name"),
                Permission.name.label("permission_name"),
            )
            .select_from(self.user_roles)
            .join(self.accounts, self.accounts.c.id == self.user_roles.c.user_id)
            .join(
                role_has_permissions,
                role_has_permissions.c.role_id == self.user_roles.c.role_id,
            )
            .join(Permission, Permission.id == role_has_permissions.c.permission_id)
            .where(self.user_roles.c.user_id == user_id)
            .distinct()
        )
        if role_ids is not None:
            stmt = stmt.where(self.user_roles.c.role_id.in_(role_ids))

        async with (
            _storage_errors("get_account_role_permissions"),
            self.session_factory() as session,
        ):
            result = await session.execute(stmt)
            return [
                AccountPermission(
                    full_name=row.full_name, permission_name=row.permission_name
                )
                for row in result.all()
            ]

    async def get_account_permissions(
        self, user_id: int, permission_ids: Sequence[int] | None = None
    ) -> list[AccountPermission]:
        """Get permissions granted directly to an account.

        Args:
            user_id: The account ID
            permission_ids: Restrict to these permissions; all grants when None

        Returns:
            One AccountPermission per grant
        """
        stmt = (
            select(
                self._account_name().label("full_name"),
                Permission.name.label("permission_name"),
            )
            .select_from(user_has_permissions)
            .join(self.accounts, self.accounts.c.id == user_has_permissions.c.user_id)
            .join(Permission, Permission.id == user_has_permissions.c.permission_id)
            .where(user_has_permissions.c.user_id == user_id)
            .order_by(Permission.id)
        )
        if permission_ids is not None:
            stmt = stmt.where(user_has_permissions.c.permission_id.in_(permission_ids))

        async with (
            _storage_errors("get_account_permissions"),
            self.session_factory() as session,
        ):
            result = await session.execute(stmt)
            return [
                AccountPermission(
                    full_name=row.full_name, permission_name=row.permission_name
                )
                for row in result.all()
            ]

    async def role_has_permissions(
        self, role_ids: Sequence[int], permission_ids: Sequence[int]
    ) -> bool:
        """Check whether any of the roles holds any of the permissions."""
        stmt = (
            select(func.count())
            .select_from(role_has_permissions)
            .where(
                role_has_permissions.c.role_id.in_(role_ids),
                role_has_permissions.c.permission_id.in_(permission_ids),
            )
        )

        async with (
            _storage_errors("role_has_permissions"),
            self.session_factory() as session,
        ):
            result = await session.execute(stmt)
            return result.scalar_one() > 0

    # ============================================================
    # Helpers
    # ============================================================

    def _account_name(self) -> Any:
        return self.accounts.c[self.account_name_column]

    async def _create_named(
        self,
        entity: Role | Permission,
        duplicate_error: type[ConflictError],
    ) -> Any:
        name = entity.name
        operation = f"create_{type(entity).__name__.lower()}"
        async with (
            _storage_errors(operation),
            self.session_factory() as session,
        ):
            session.add(entity)
            try:
                await session.commit()
            except IntegrityError as exc:
                await session.rollback()
                if _is_unique_violation(exc):
                    raise duplicate_error(details={"name": name}) from exc
                raise

        logger.info(operation, id=entity.id, name=name)
        return entity

    async def _resolve_ids(
        self,
        model: type[Role] | type[Permission],
        names: Sequence[str],
        require_all: bool,
        not_found_error: type[NotFoundError],
    ) -> list[int]:
        stmt = select(model.id, model.name).where(model.name.in_(list(names)))

        async with (
            _storage_errors(f"resolve_{model.__tablename__}"),
            self.session_factory() as session,
        ):
            result = await session.execute(stmt)
            ids_by_name = {row.name: row.id for row in result.all()}

        requested = list(dict.fromkeys(names))
        missing = [name for name in requested if name not in ids_by_name]
        if not ids_by_name or (require_all and missing):
            raise not_found_error(missing)  # type: ignore[call-arg]

        return [ids_by_name[name] for name in requested if name in ids_by_name]

    async def _insert_links(
        self,
        link_table: Table,
        rows: Iterable[dict[str, int]],
        duplicate_error: type[ConflictError],
        operation: str,
    ) -> None:
        rows = list(rows)
        async with (
            _storage_errors(operation),
            self.session_factory() as session,
        ):
            try:
                async with session.begin():
                    for values in rows:
                        await session.execute(insert(link_table).values(**values))
            except IntegrityError as exc:
                if _is_unique_violation(exc):
                    raise duplicate_error(details={"links": rows}) from exc
                raise

        logger.info(operation, links=len(rows))
