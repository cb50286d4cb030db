"""Access decorators for route protection.

This module provides a decorator that can be applied to FastAPI
routes to require an access expression.
"""

from collections.abc import Awaitable, Callable
from functools import wraps
from typing import TYPE_CHECKING, Any, ParamSpec, TypeVar, cast

import structlog

from rolegate.acl.expression import parse_expression
from rolegate.acl.middleware import authorize_request
from rolegate.core.errors import UnauthorizedError


if TYPE_CHECKING:
    from fastapi import Request

    from rolegate.acl.service import AccessControlService


logger = structlog.get_logger()

P = ParamSpec("P")
R = TypeVar("R")


def _get_request_and_service(
    kwargs: dict[str, Any],
) -> tuple["Request | None", "AccessControlService | None"]:
    """Extract the request and the app's access service from kwargs."""
    request = cast("Request | None", kwargs.get("request"))
    if request is None:
        return None, None
    service = getattr(request.app.state, "access_service", None)
    return request, cast("AccessControlService | None", service)


def require_access(
    expression: str,
    module: str | None = None,
    method: str | None = None,
    header: str | None = None,
) -> Callable[[Callable[P, Awaitable[R]]], Callable[P, Awaitable[R]]]:
    """Decorator that requires an access expression to reach a route.

    The route must accept a ``request`` argument, and the application
    must expose the service as ``app.state.access_service``. Failures
    raise library exceptions for ``register_exception_handlers`` to
    render.

    Usage:
        @router.get("/products")
        @require_access("role:admin|permission:read", module="products")
        async def list_products(request: Request):
            ...

    Args:
        expression: Access expression, parsed when the route is declared
        module: Optional resource module for scoped checks
        method: Optional fixed method, defaults to the request method
        header: Header carrying the "label:<id>" identity, defaults to the
            service's identity_header

    Returns:
        Decorator function

    Raises:
        InvalidExpressionError: At decoration time, for a malformed expression
    """
    parsed = parse_expression(expression)

    def decorator(func: Callable[P, Awaitable[R]]) -> Callable[P, Awaitable[R]]:
        @wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            request, service = _get_request_and_service(kwargs)

            if request is None or service is None:
                logger.error(
                    "access_check_unavailable",
                    route=func.__name__,
                    has_request=request is not None,
                )
                raise UnauthorizedError(
                    "Access check failed",
                    error_code="access_check_failed",
                )

            await authorize_request(
                service,
                request,
                parsed,
                module=module,
                method=method,
                header=header or service.identity_header,
            )
            return await func(*args, **kwargs)

        return wrapper

    return decorator
