"""Authentication middleware for FastAPI."""

import logging

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from entityforge.auth.jwt_service import JWTError, JWTService
from entityforge.auth.types import UserContext

logger = logging.getLogger(__name__)


class AuthMiddleware(BaseHTTPMiddleware):
    """Middleware that extracts JWT from Authorization header and sets user context.

    The middleware:
    1. Extracts Bearer token from Authorization header
    2. Decodes and validates the JWT
    3. Sets request.state.user_context from the claims

    If no token is present or token is invalid, user_context is set to None.
    The middleware does NOT reject unauthenticated requests - operations
    that need a caller reject them during dispatch.

    When ``dev_context`` is given, token handling is skipped and every
    request runs as that caller.
    """

    def __init__(
        self,
        app,
        jwt_service: JWTService,
        dev_context: UserContext | None = None,
    ):
        """Initialize middleware with JWT service.

        Args:
            app: The ASGI application
            jwt_service: JWT service for token validation
            dev_context: Fixed caller used when authentication is disabled
        """
        super().__init__(app)
        self._jwt_service = jwt_service
        self._dev_context = dev_context

    async def dispatch(self, request: Request, call_next) -> Response:
        """Process the request and extract authentication info."""
        request.state.user_context = None

        if self._dev_context is not None:
            request.state.user_context = self._dev_context
            return await call_next(request)

        auth_header = request.headers.get("Authorization")
        if auth_header and auth_header.startswith("Bearer "):
            token = auth_header[7:]  # Remove "Bearer " prefix
            try:
                claims = self._jwt_service.decode_token(token)
                if claims.type == "access":
                    request.state.user_context = claims.to_user_context()
            except JWTError as e:
                # Invalid token - leave user_context as None
                logger.info("Rejected bearer token: %s", e)

        return await call_next(request)


def get_user_context(request: Request) -> UserContext | None:
    """Get the user context from the request state.

    Args:
        request: The FastAPI/Starlette request

    Returns:
        UserContext if authenticated, None otherwise
    """
    return getattr(request.state, "user_context", None)
