"""Unit tests for library settings."""

import pytest
from pydantic import ValidationError

from rolegate.config import Settings


pytestmark = pytest.mark.unit


def make_settings(**overrides) -> Settings:
    """Build settings that ignore any local .env file."""
    return Settings(_env_file=None, **overrides)


class TestSettings:
    """Tests for Settings validation."""

    def test_defaults(self) -> None:
        """Verify the default table layout."""
        settings = make_settings()

        assert settings.account_table == "users"
        assert settings.account_name_column == "full_name"
        assert settings.account_role_column is None
        assert settings.user_role_table == "user_has_roles"
        assert settings.superadmin_roles == ["Superadmin"]
        assert settings.identity_header == "x-consumer-username"

    @pytest.mark.parametrize(
        ("url", "expected"),
        [
            ("postgresql://u:p@db/acl", "postgresql+asyncpg://u:p@db/acl"),
            ("sqlite:///acl.db", "sqlite+aiosqlite:///acl.db"),
            ("sqlite+aiosqlite://", "sqlite+aiosqlite://"),
        ],
    )
    def test_database_url_uses_async_driver(self, url: str, expected: str) -> None:
        """Verify plain URLs are upgraded to async drivers."""
        settings = make_settings(database_url=url)

        assert settings.database_url == expected

    def test_is_sqlite(self) -> None:
        """Verify SQLite detection."""
        assert make_settings(database_url="sqlite://").is_sqlite
        assert not make_settings().is_sqlite

    def test_schema_qualified_table_allowed(self) -> None:
        """Verify schema.table names pass validation."""
        settings = make_settings(account_table="auth.accounts")

        assert settings.account_table == "auth.accounts"

    @pytest.mark.parametrize(
        "field",
        ["account_table", "account_name_column", "account_role_column"],
    )
    def test_rejects_non_identifiers(self, field: str) -> None:
        """Verify names that are not SQL identifiers are refused."""
        with pytest.raises(ValidationError):
            make_settings(**{field: "users; drop table roles"})
