"""Role-based access control: storage, evaluation and HTTP gating."""

from rolegate.acl.decorators import require_access
from rolegate.acl.expression import extract_consumer_id, parse_expression
from rolegate.acl.middleware import AccessGateMiddleware, authorize_request
from rolegate.acl.models import (
    Permission,
    Role,
    account_table,
    role_has_permissions,
    user_has_permissions,
    user_has_roles,
    user_role_table,
)
from rolegate.acl.repos import AccessRepository
from rolegate.acl.schemas import (
    AccessExpression,
    AccountPermission,
    AccountRole,
    PermissionRead,
    RoleRead,
)
from rolegate.acl.service import AccessControlService, scoped_permission_name


__all__ = [
    "AccessControlService",
    "AccessExpression",
    "AccessGateMiddleware",
    "AccessRepository",
    "AccountPermission",
    "AccountRole",
    "Permission",
    "PermissionRead",
    "Role",
    "RoleRead",
    "account_table",
    "authorize_request",
    "extract_consumer_id",
    "parse_expression",
    "require_access",
    "role_has_permissions",
    "scoped_permission_name",
    "user_has_permissions",
    "user_has_roles",
    "user_role_table",
]
