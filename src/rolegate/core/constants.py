"""Library-wide constants.

This module defines constants used throughout the library
to avoid magic strings and ensure consistency.
"""

# String field lengths
MAX_ROLE_NAME_LENGTH = 100
MAX_PERMISSION_NAME_LENGTH = 150

# Default storage layout
DEFAULT_ACCOUNT_TABLE = "users"
DEFAULT_ACCOUNT_NAME_COLUMN = "full_name"
DEFAULT_USER_ROLE_TABLE = "user_has_roles"
ROLE_TABLE = "roles"
PERMISSION_TABLE = "permissions"
ROLE_PERMISSION_TABLE = "role_has_permissions"
USER_PERMISSION_TABLE = "user_has_permissions"

# Access evaluation
DEFAULT_SUPERADMIN_ROLE = "Superadmin"
DEFAULT_IDENTITY_HEADER = "x-consumer-username"

# Expression grammar
CLAUSE_SEPARATOR = "|"
KEY_SEPARATOR = ":"
VALUE_SEPARATOR = ","
ROLE_KEY = "role"
PERMISSION_KEY = "permission"
SCOPE_SEPARATOR = "."
