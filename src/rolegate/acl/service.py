"""Access control service.

This module provides the registration, assignment and privilege
evaluation operations on top of the access repository.
"""

from collections.abc import Iterable, Sequence
from typing import TYPE_CHECKING

import structlog

from rolegate.acl.expression import parse_expression
from rolegate.acl.repos import AccessRepository
from rolegate.acl.schemas import AccessExpression, PermissionRead, RoleRead
from rolegate.core.constants import (
    DEFAULT_IDENTITY_HEADER,
    DEFAULT_SUPERADMIN_ROLE,
    SCOPE_SEPARATOR,
)
from rolegate.core.errors import NotFoundError


if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

    from rolegate.config import Settings


logger = structlog.get_logger()


def scoped_permission_name(module: str, method: str) -> str:
    """Build the permission name expected for a module/method pair.

    Example:
        scoped_permission_name("Products", "GET") -> "products.get"
    """
    return f"{module.lower()}{SCOPE_SEPARATOR}{method.lower()}"


class AccessControlService:
    """Service for role/permission registration and access checks.

    Holds no state across calls besides its configuration; every
    check goes back to the repository.

    Attributes:
        repo: Storage adapter
        superadmin_roles: Role names that bypass all checks
        identity_header: Header the HTTP gate reads the principal from
    """

    def __init__(
        self,
        repo: AccessRepository,
        superadmin_roles: Iterable[str] = (DEFAULT_SUPERADMIN_ROLE,),
        identity_header: str = DEFAULT_IDENTITY_HEADER,
    ) -> None:
        self.repo = repo
        self.superadmin_roles = frozenset(superadmin_roles)
        self.identity_header = identity_header

    @classmethod
    def from_settings(
        cls,
        settings: "Settings",
        session_factory: "async_sessionmaker[AsyncSession]",
    ) -> "AccessControlService":
        """Build a service and its repository from settings."""
        return cls(
            AccessRepository.from_settings(settings, session_factory),
            superadmin_roles=settings.superadmin_roles,
            identity_header=settings.identity_header,
        )

    # ============================================================
    # Registration and assignment
    # ============================================================

    async def register_role(self, name: str) -> RoleRead:
        """Register a new role.

        Raises:
            DuplicateRoleError: If the role already exists
            StorageError: If the query fails
        """
        role = await self.repo.create_role(name)
        return RoleRead.model_validate(role)

    async def register_permission(self, name: str) -> PermissionRead:
        """Register a new permission.

        Raises:
            DuplicatePermissionError: If the permission already exists
            StorageError: If the query fails
        """
        permission = await self.repo.create_permission(name)
        return PermissionRead.model_validate(permission)

    async def assign_permissions_to_role(
        self, role: str, permissions: Sequence[str]
    ) -> None:
        """Assign permissions to a role.

        Either every permission is linked or none is.

        Args:
            role: Role name
            permissions: Permission names

        Raises:
            RoleNotFoundError: If the role does not exist
            PermissionNotFoundError: If any permission does not exist
            DuplicateRolePermissionError: If the role already has a permission
            StorageError: If the query fails
        """
        role_ids = await self.repo.get_role_ids([role])
        permission_ids = await self.repo.get_permission_ids(permissions)
        await self.repo.give_permissions_to_role(role_ids[0], permission_ids)

    async def assign_user_to_role(self, user_id: int, role: str) -> None:
        """Assign a role to a user.

        Raises:
            RoleNotFoundError: If the role does not exist
            DuplicateUserRoleError: If the user already has the role
            StorageError: If the query fails
        """
        role_ids = await self.repo.get_role_ids([role])
        await self.repo.give_role_to_user(user_id, role_ids[0])

    async def assign_permissions_to_user(
        self, user_id: int, permissions: Sequence[str]
    ) -> None:
        """Grant permissions directly to a user, independent of roles.

        Raises:
            PermissionNotFoundError: If any permission does not exist
            DuplicateUserPermissionError: If the user already has a permission
            StorageError: If the query fails
        """
        permission_ids = await self.repo.get_permission_ids(permissions)
        await self.repo.give_permissions_to_user(user_id, permission_ids)

    async def list_roles(self) -> list[RoleRead]:
        """List registered roles."""
        return [RoleRead.model_validate(role) for role in await self.repo.list_roles()]

    async def list_permissions(self) -> list[PermissionRead]:
        """List registered permissions."""
        return [
            PermissionRead.model_validate(permission)
            for permission in await self.repo.list_permissions()
        ]

    # ============================================================
    # Queries
    # ============================================================

    async def role_has_permission(
        self, roles: Sequence[str], permissions: Sequence[str]
    ) -> bool:
        """Check whether any of the roles holds any of the permissions.

        Unknown names contribute nothing; if no name resolves the
        answer is False.
        """
        try:
            role_ids = await self.repo.get_role_ids(roles, require_all=False)
            permission_ids = await self.repo.get_permission_ids(
                permissions, require_all=False
            )
        except NotFoundError:
            return False
        return await self.repo.role_has_permissions(role_ids, permission_ids)

    async def list_user_permissions(self, user_id: int) -> set[str]:
        """Get every permission a user holds, directly or through roles."""
        direct = await self.repo.get_account_permissions(user_id)
        via_roles = await self.repo.get_account_role_permissions(user_id)
        return {grant.permission_name for grant in [*direct, *via_roles]}

    # ============================================================
    # Privilege evaluation
    # ============================================================

    async def check_access(
        self,
        user_id: int,
        expression: str | AccessExpression,
        module: str | None = None,
        method: str | None = None,
    ) -> bool:
        """Decide whether a user satisfies an access expression.

        Evaluation order: superadmin short-circuit, then the role path,
        then the permission path. When both module and method are given,
        a path only grants access if it yields the permission named
        ``module.method`` (lowercased); otherwise any permission the path
        yields is enough.

        Args:
            user_id: The principal's account ID
            expression: Expression string or parsed expression
            module: Optional resource module, e.g. "products"
            method: Optional HTTP method, e.g. "GET"

        Returns:
            True if access is granted, False if denied

        Raises:
            InvalidExpressionError: If the expression cannot be parsed
            StorageError: If a query in an evaluated path fails
        """
        if isinstance(expression, str):
            expression = parse_expression(expression)

        required = None
        if module is not None and method is not None:
            required = scoped_permission_name(module, method)

        log = logger.bind(
            user_id=user_id, expression=str(expression), required=required
        )

        if await self._is_superadmin(user_id):
            log.info("access_granted", via="superadmin")
            return True

        if expression.is_empty:
            log.info("access_denied", reason="empty_expression")
            return False

        if expression.roles and await self._check_role_access(
            user_id, expression.roles, required
        ):
            log.info("access_granted", via="role")
            return True

        if expression.permissions and await self._check_permission_access(
            user_id, expression.permissions, required
        ):
            log.info("access_granted", via="permission")
            return True

        log.info("access_denied", reason="no_matching_grant")
        return False

    async def _is_superadmin(self, user_id: int) -> bool:
        role_names = await self.repo.get_account_role_names(user_id)
        return any(name in self.superadmin_roles for name in role_names)

    async def _check_role_access(
        self, user_id: int, roles: Sequence[str], required: str | None
    ) -> bool:
        try:
            role_ids = await self.repo.get_role_ids(roles, require_all=False)
        except NotFoundError:
            return False

        granted = await self.repo.get_account_role_permissions(user_id, role_ids)
        if required is None:
            return len(granted) > 0
        return any(grant.permission_name == required for grant in granted)

    async def _check_permission_access(
        self, user_id: int, permissions: Sequence[str], required: str | None
    ) -> bool:
        try:
            permission_ids = await self.repo.get_permission_ids(
                permissions, require_all=False
            )
        except NotFoundError:
            return False

        granted = await self.repo.get_account_permissions(user_id, permission_ids)
        if required is None:
            return len(granted) > 0
        return any(grant.permission_name == required for grant in granted)
