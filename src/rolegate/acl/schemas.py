"""Pydantic schemas for access-control data."""

from pydantic import BaseModel, ConfigDict, Field

from rolegate.core.constants import (
    CLAUSE_SEPARATOR,
    KEY_SEPARATOR,
    PERMISSION_KEY,
    ROLE_KEY,
    VALUE_SEPARATOR,
)


class RoleRead(BaseModel):
    """Schema for a registered role."""

    id: int
    name: str

    model_config = ConfigDict(from_attributes=True)


class PermissionRead(BaseModel):
    """Schema for a registered permission."""

    id: int
    name: str

    model_config = ConfigDict(from_attributes=True)


class AccountRole(BaseModel):
    """A role held by an account, as returned by the membership join."""

    full_name: str | None = None
    role_name: str


class AccountPermission(BaseModel):
    """A permission held by an account, directly or through a role."""

    full_name: str | None = None
    permission_name: str


class AccessExpression(BaseModel):
    """Parsed ``role:...|permission:...`` access expression.

    Attributes:
        roles: Role names, any of which grants access
        permissions: Permission names, any of which grants access
    """

    roles: list[str] = Field(default_factory=list)
    permissions: list[str] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)

    @property
    def is_empty(self) -> bool:
        """True when the expression names no roles and no permissions."""
        return not self.roles and not self.permissions

    def __str__(self) -> str:
        pairs = ((ROLE_KEY, self.roles), (PERMISSION_KEY, self.permissions))
        clauses = [
            f"{key}{KEY_SEPARATOR}{VALUE_SEPARATOR.join(names)}"
            for key, names in pairs
            if names
        ]
        return CLAUSE_SEPARATOR.join(clauses)
