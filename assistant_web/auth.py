"""Login collaborator: bearer-token authentication for HTTP and WebSocket routes."""

import hmac
import logging

from fastapi import Request, WebSocket

from assistant_web.config import settings
from assistant_web.errors import UnauthorizedError
from assistant_web.utils.crypto import issue_token, verify_token

logger = logging.getLogger(__name__)


def _bearer(authorization: str | None) -> str | None:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token:
        return None
    return token.strip()


def login(username: str, password: str) -> str:
    """Check credentials against the configured users and issue an access token."""
    expected = settings.users.get(username)
    if expected is None or not hmac.compare_digest(expected.encode(), password.encode()):
        logger.warning("Failed login for user %r", username)
        raise UnauthorizedError("Invalid username or password")
    return issue_token(username)


async def require_user(request: Request) -> str:
    """FastAPI dependency: the logged-in user, or 401."""
    token = _bearer(request.headers.get("authorization"))
    user = verify_token(token) if token else None
    if user is None:
        raise UnauthorizedError("Unauthorized")
    return user


def websocket_user(ws: WebSocket) -> str | None:
    """Resolve the user of a WebSocket handshake (header or ``access_token`` query)."""
    token = _bearer(ws.headers.get("authorization")) or ws.query_params.get("access_token")
    return verify_token(token) if token else None
