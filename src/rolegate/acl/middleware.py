"""Access gate middleware.

This module provides middleware that authorizes every request against
an access expression before the wrapped application sees it. The
principal is identified by a ``label:<id>`` header, e.g. the
``x-consumer-username`` header set by an API gateway.
"""

from typing import TYPE_CHECKING

import structlog
from fastapi import Request, Response, status
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from rolegate.acl.expression import extract_consumer_id, parse_expression
from rolegate.acl.schemas import AccessExpression
from rolegate.core.constants import DEFAULT_IDENTITY_HEADER
from rolegate.core.errors import (
    AccessDeniedError,
    AppException,
    InvalidScopeError,
    StorageError,
    problem_response,
)


if TYPE_CHECKING:
    from starlette.types import ASGIApp

    from rolegate.acl.service import AccessControlService


logger = structlog.get_logger()


async def authorize_request(
    service: "AccessControlService",
    request: Request,
    expression: AccessExpression,
    module: str | None = None,
    method: str | None = None,
    header: str = DEFAULT_IDENTITY_HEADER,
) -> int:
    """Authorize a request against an access expression.

    When a module is given without a fixed method, the request's own
    HTTP method completes the scope.

    Args:
        service: Access control service
        request: The incoming request
        expression: Parsed access expression
        module: Optional resource module
        method: Optional fixed method, defaults to the request method
        header: Header carrying the "label:<id>" identity

    Returns:
        The authorized consumer ID, also stored on request.state.consumer_id

    Raises:
        InvalidConsumerFormatError: If the identity header is missing or garbled
        InvalidConsumerIdError: If the identity is not an integer
        AccessDeniedError: If the consumer does not satisfy the expression
        StorageError: If the access check cannot reach storage
    """
    consumer_id = extract_consumer_id(request.headers.get(header))
    request.state.consumer_id = consumer_id

    if module is not None and method is None:
        method = request.method

    if not await service.check_access(consumer_id, expression, module, method):
        raise AccessDeniedError(details={"required": str(expression)})

    return consumer_id


class AccessGateMiddleware(BaseHTTPMiddleware):
    """Middleware that only lets authorized consumers through.

    Any failure (missing or malformed identity, denial, storage
    failure) answers 401 with a Problem Details body whose type
    names the failure, and the wrapped application is not called.

    Attributes:
        service: Access control service
        expression: Parsed access expression
        module: Optional resource module for scoped checks
        method: Optional fixed method for scoped checks
        header: Identity header name
        exclude_paths: Path prefixes that skip the gate
    """

    def __init__(
        self,
        app: "ASGIApp",
        service: "AccessControlService",
        expression: str | AccessExpression,
        module: str | None = None,
        method: str | None = None,
        header: str | None = None,
        exclude_paths: list[str] | None = None,
    ) -> None:
        """Initialize the middleware.

        The expression is parsed here so a malformed one fails when the
        application is wired rather than on every request. The identity
        header defaults to the service's ``identity_header``.

        Raises:
            InvalidExpressionError: If the expression cannot be parsed
            InvalidScopeError: If a method is fixed without a module
        """
        super().__init__(app)
        if module is None and method is not None:
            raise InvalidScopeError(details={"method": method})

        self.service = service
        self.expression = (
            parse_expression(expression) if isinstance(expression, str) else expression
        )
        self.module = module
        self.method = method
        self.header = header or service.identity_header
        self.exclude_paths = exclude_paths or []

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        """Authorize the request, then hand it to the wrapped application.

        Args:
            request: The incoming request
            call_next: The next middleware/handler

        Returns:
            The handler's response, or a 401 problem response
        """
        # Skip excluded paths
        if any(request.url.path.startswith(path) for path in self.exclude_paths):
            return await call_next(request)

        try:
            consumer_id = await authorize_request(
                self.service,
                request,
                self.expression,
                module=self.module,
                method=self.method,
                header=self.header,
            )
        except AppException as exc:
            log = logger.error if isinstance(exc, StorageError) else logger.warning
            log(
                "access_gate_rejected",
                error_code=exc.error_code,
                path=request.url.path,
                method=request.method,
            )
            return problem_response(
                request, exc, status_code=status.HTTP_401_UNAUTHORIZED
            )

        with structlog.contextvars.bound_contextvars(consumer_id=consumer_id):
            return await call_next(request)
