"""Integration tests for the access repository.

These tests run the repository against in-memory SQLite to verify:
- Duplicate classification
- Strict and lenient name resolution
- Atomic batch inserts
- Account lookups in both role storage modes
"""

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from rolegate.acl.models import role_has_permissions
from rolegate.acl.repos import AccessRepository
from rolegate.core.errors import (
    DuplicatePermissionError,
    DuplicateRoleError,
    DuplicateRolePermissionError,
    DuplicateUserPermissionError,
    DuplicateUserRoleError,
    PermissionNotFoundError,
    RoleNotFoundError,
    StorageError,
)
from tests.conftest import AddAccount


pytestmark = pytest.mark.integration


async def count_role_links(session_factory: async_sessionmaker[AsyncSession]) -> int:
    """Count stored role -> permission edges."""
    async with session_factory() as session:
        result = await session.execute(
            select(func.count()).select_from(role_has_permissions)
        )
        return result.scalar_one()


class TestRegistration:
    """Tests for role and permission creation."""

    async def test_create_role(self, repo: AccessRepository) -> None:
        """Verify a created role gets an ID."""
        role = await repo.create_role("admin")

        assert role.id is not None
        assert role.name == "admin"

    async def test_duplicate_role(self, repo: AccessRepository) -> None:
        """Verify the second registration is a duplicate error."""
        await repo.create_role("admin")

        with pytest.raises(DuplicateRoleError) as exc_info:
            await repo.create_role("admin")

        assert exc_info.value.details == {"name": "admin"}

    async def test_duplicate_permission(self, repo: AccessRepository) -> None:
        """Verify duplicate permissions are classified."""
        await repo.create_permission("read")

        with pytest.raises(DuplicatePermissionError):
            await repo.create_permission("read")

    async def test_role_and_permission_names_are_separate(
        self, repo: AccessRepository
    ) -> None:
        """Verify a role and a permission may share a name."""
        await repo.create_role("admin")
        await repo.create_permission("admin")

    async def test_list_in_id_order(self, repo: AccessRepository) -> None:
        """Verify listings come back in creation order."""
        for name in ["b", "a", "c"]:
            await repo.create_role(name)

        assert [role.name for role in await repo.list_roles()] == ["b", "a", "c"]
        assert await repo.list_permissions() == []


class TestNameResolution:
    """Tests for name -> ID resolution."""

    async def test_ids_in_input_order(self, repo: AccessRepository) -> None:
        """Verify IDs follow the order of the requested names."""
        first = await repo.create_permission("first")
        second = await repo.create_permission("second")

        assert await repo.get_permission_ids(["second", "first"]) == [
            second.id,
            first.id,
        ]

    async def test_repeated_names_resolve_once(self, repo: AccessRepository) -> None:
        """Verify duplicates in the request collapse."""
        role = await repo.create_role("admin")

        assert await repo.get_role_ids(["admin", "admin"]) == [role.id]

    async def test_strict_partial_miss(self, repo: AccessRepository) -> None:
        """Verify strict resolution reports the missing names."""
        await repo.create_permission("read")

        with pytest.raises(PermissionNotFoundError) as exc_info:
            await repo.get_permission_ids(["read", "write", "delete"])

        assert exc_info.value.names == ["write", "delete"]

    async def test_lenient_partial_miss(self, repo: AccessRepository) -> None:
        """Verify lenient resolution returns the known subset."""
        role = await repo.create_role("admin")

        assert await repo.get_role_ids(["ghost", "admin"], require_all=False) == [
            role.id
        ]

    async def test_lenient_total_miss(self, repo: AccessRepository) -> None:
        """Verify lenient resolution still fails when nothing matches."""
        with pytest.raises(RoleNotFoundError):
            await repo.get_role_ids(["ghost"], require_all=False)


class TestAssignment:
    """Tests for link inserts."""

    async def test_batch_is_atomic(
        self,
        repo: AccessRepository,
        session_factory: async_sessionmaker[AsyncSession],
    ) -> None:
        """Verify a failing edge rolls back the edges before it."""
        role = await repo.create_role("admin")
        p1 = await repo.create_permission("p1")
        p2 = await repo.create_permission("p2")
        await repo.give_permissions_to_role(role.id, [p2.id])

        with pytest.raises(DuplicateRolePermissionError):
            await repo.give_permissions_to_role(role.id, [p1.id, p2.id])

        assert await count_role_links(session_factory) == 1
        assert not await repo.role_has_permissions([role.id], [p1.id])

    async def test_duplicate_user_role(self, repo: AccessRepository) -> None:
        """Verify assigning the same role twice is a duplicate."""
        role = await repo.create_role("admin")
        await repo.give_role_to_user(1, role.id)

        with pytest.raises(DuplicateUserRoleError):
            await repo.give_role_to_user(1, role.id)

    async def test_duplicate_user_permission(self, repo: AccessRepository) -> None:
        """Verify granting the same permission twice is a duplicate."""
        permission = await repo.create_permission("read")
        await repo.give_permissions_to_user(1, [permission.id])

        with pytest.raises(DuplicateUserPermissionError):
            await repo.give_permissions_to_user(1, [permission.id])

    async def test_role_has_permissions(self, repo: AccessRepository) -> None:
        """Verify the role/permission edge check."""
        role = await repo.create_role("admin")
        read = await repo.create_permission("read")
        write = await repo.create_permission("write")
        await repo.give_permissions_to_role(role.id, [read.id])

        assert await repo.role_has_permissions([role.id], [write.id, read.id])
        assert not await repo.role_has_permissions([role.id], [write.id])


class TestAccountLookups:
    """Tests for queries joining the host account table."""

    async def test_role_names_from_assignments(
        self, repo: AccessRepository, add_account: AddAccount
    ) -> None:
        """Verify role names come from the junction table by default."""
        await add_account(1, "Ada Lovelace")
        admin = await repo.create_role("admin")
        editor = await repo.create_role("editor")
        await repo.give_role_to_user(1, admin.id)
        await repo.give_role_to_user(1, editor.id)

        assert sorted(await repo.get_account_role_names(1)) == ["admin", "editor"]
        assert await repo.get_account_role_names(2) == []

    async def test_role_names_from_account_column(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        add_account: AddAccount,
    ) -> None:
        """Verify a configured role column is read directly."""
        repo = AccessRepository(session_factory, account_role_column="role_name")
        await add_account(1, "Ada Lovelace", role_name="Superadmin")
        await add_account(2, "Alan Turing")

        assert await repo.get_account_role_names(1) == ["Superadmin"]
        assert await repo.get_account_role_names(2) == []

    async def test_account_roles(
        self, repo: AccessRepository, add_account: AddAccount
    ) -> None:
        """Verify memberships are limited to the requested roles."""
        await add_account(1, "Ada Lovelace")
        admin = await repo.create_role("admin")
        editor = await repo.create_role("editor")
        await repo.give_role_to_user(1, admin.id)

        rows = await repo.get_account_roles(1, [admin.id, editor.id])

        assert [(r.full_name, r.role_name) for r in rows] == [
            ("Ada Lovelace", "admin")
        ]
        assert await repo.get_account_roles(1, [editor.id]) == []

    async def test_account_role_permissions_are_distinct(
        self, repo: AccessRepository, add_account: AddAccount
    ) -> None:
        """Verify a permission held through two roles appears once."""
        await add_account(1, "Ada Lovelace")
        admin = await repo.create_role("admin")
        editor = await repo.create_role("editor")
        read = await repo.create_permission("read")
        await repo.give_permissions_to_role(admin.id, [read.id])
        await repo.give_permissions_to_role(editor.id, [read.id])
        await repo.give_role_to_user(1, admin.id)
        await repo.give_role_to_user(1, editor.id)

        rows = await repo.get_account_role_permissions(1)

        assert [r.permission_name for r in rows] == ["read"]
        assert await repo.get_account_role_permissions(1, [editor.id]) == rows

    async def test_account_permissions(
        self, repo: AccessRepository, add_account: AddAccount
    ) -> None:
        """Verify direct grants can be filtered by permission ID."""
        await add_account(1, "Ada Lovelace")
        read = await repo.create_permission("read")
        write = await repo.create_permission("write")
        await repo.give_permissions_to_user(1, [read.id, write.id])

        all_rows = await repo.get_account_permissions(1)
        filtered = await repo.get_account_permissions(1, [write.id])

        assert [r.permission_name for r in all_rows] == ["read", "write"]
        assert [r.permission_name for r in filtered] == ["write"]

    async def test_unknown_account_has_no_grants(
        self, repo: AccessRepository
    ) -> None:
        """Verify grants to IDs missing from the account table are not listed."""
        read = await repo.create_permission("read")
        await repo.give_permissions_to_user(99, [read.id])

        assert await repo.get_account_permissions(99) == []

    async def test_custom_user_role_table(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        add_account: AddAccount,
    ) -> None:
        """Verify the junction table name is configurable."""
        repo = AccessRepository(session_factory, user_role_table_name="account_roles")
        await repo.create_schema()
        await add_account(1, "Ada Lovelace")
        role = await repo.create_role("admin")
        await repo.give_role_to_user(1, role.id)

        assert repo.user_roles.name == "account_roles"
        assert await repo.get_account_role_names(1) == ["admin"]


class TestStorageErrors:
    """Tests for driver failure translation."""

    async def test_missing_account_table(
        self, session_factory: async_sessionmaker[AsyncSession]
    ) -> None:
        """Verify a failing query surfaces as StorageError."""
        repo = AccessRepository(session_factory, account_table_name="no_such_table")

        with pytest.raises(StorageError) as exc_info:
            await repo.get_account_role_names(1)

        assert isinstance(exc_info.value.__cause__, OperationalError)
        assert exc_info.value.details == {"operation": "get_account_role_names"}
