"""Access expression parsing and consumer identity extraction.

An access expression is a compact string such as::

    role:admin
    permission:read,write
    role:admin|permission:read,write

Clauses are separated by ``|``; each clause is ``key:value[,value...]``
where ``key`` is ``role`` or ``permission``.
"""

from rolegate.acl.schemas import AccessExpression
from rolegate.core.constants import (
    CLAUSE_SEPARATOR,
    KEY_SEPARATOR,
    PERMISSION_KEY,
    ROLE_KEY,
    VALUE_SEPARATOR,
)
from rolegate.core.errors import (
    DuplicateKeyError,
    InvalidConsumerFormatError,
    InvalidConsumerIdError,
    InvalidExpressionError,
    UnknownKeyError,
)


def parse_expression(text: str) -> AccessExpression:
    """Parse an access expression into role and permission lists.

    Args:
        text: The expression, e.g. "role:admin|permission:read,write"

    Returns:
        AccessExpression with names in input order

    Raises:
        InvalidExpressionError: If a clause lacks a colon or has more than one
        UnknownKeyError: If a clause key is not "role" or "permission"
        DuplicateKeyError: If the same key appears in two clauses
    """
    values: dict[str, list[str]] = {}

    for clause in text.split(CLAUSE_SEPARATOR):
        parts = clause.split(KEY_SEPARATOR)
        if len(parts) != 2:
            raise InvalidExpressionError(details={"clause": clause})

        key, value = parts
        if key not in (ROLE_KEY, PERMISSION_KEY):
            raise UnknownKeyError(details={"key": key})
        if key in values:
            raise DuplicateKeyError(details={"key": key})

        # Blank names ("role:" or "a,,b") carry no access
        values[key] = [name for name in value.split(VALUE_SEPARATOR) if name]

    return AccessExpression(
        roles=values.get(ROLE_KEY, []),
        permissions=values.get(PERMISSION_KEY, []),
    )


def extract_consumer_id(value: str | None) -> int:
    """Extract the numeric consumer ID from a "label:<id>" value.

    Args:
        value: Identity value, e.g. "consumer:1"

    Returns:
        The consumer ID

    Raises:
        InvalidConsumerFormatError: If the value is missing or not two segments
        InvalidConsumerIdError: If the ID segment is not a base-10 integer
    """
    if value is None:
        raise InvalidConsumerFormatError()

    parts = value.split(KEY_SEPARATOR)
    if len(parts) != 2:
        raise InvalidConsumerFormatError()

    try:
        return int(parts[1], 10)
    except ValueError as exc:
        raise InvalidConsumerIdError(details={"value": parts[1]}) from exc
