"""Request dependencies shared by the routers."""

import logging

from fastapi import Depends, Request

from accounts.policy import is_admin
from auth.session_provider import SessionCredentials, SessionUser
from orchestrator import EdgeAssistant

logger = logging.getLogger(__name__)


class APIError(Exception):
    """Error rendered as ``{"error": message}`` with the given status."""

    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message


def get_assistant(request: Request) -> EdgeAssistant:
    return request.app.state.assistant


def get_credentials(request: Request) -> SessionCredentials:
    """Collect the bearer token and cookies presented with the request."""
    bearer = None
    authorization = request.headers.get("authorization", "")
    if authorization.lower().startswith("bearer "):
        bearer = authorization[7:].strip() or None

    return SessionCredentials(
        bearer_token=bearer,
        cookies=dict(request.cookies),
        cookie_header=request.headers.get("cookie"),
    )


def require_session(
    credentials: SessionCredentials = Depends(get_credentials),
    assistant: EdgeAssistant = Depends(get_assistant),
) -> SessionUser:
    """The caller's session user; 401 without one."""
    try:
        user = assistant.session_provider.get_session(credentials)
    except Exception as e:
        logger.error(f"Session lookup failed: {e}")
        user = None

    if user is None:
        raise APIError(401, "Unauthorized")
    return user


def require_admin(user: SessionUser = Depends(require_session)) -> SessionUser:
    """The caller's session user if they pass the admin policy; 403 otherwise."""
    if not is_admin(user.id, user.email):
        raise APIError(403, "Forbidden")
    return user
