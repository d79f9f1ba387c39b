"""Shared FastAPI dependencies."""

from fastapi import Request, WebSocket

from pawpaw.core.exceptions import UnauthorizedError
from pawpaw.core.logging import bind_user_id
from pawpaw.core.security import load_session_token
from pawpaw.models.user import User

SESSION_COOKIE_NAME = "pawpaw_session"


def _session_token(headers, cookies) -> str | None:
    """Mobile clients send a bearer token; browsers send the cookie."""
    auth = headers.get("authorization") or ""
    if auth.lower().startswith("bearer "):
        return auth[7:].strip() or None
    return cookies.get(SESSION_COOKIE_NAME)


async def _user_from_token(token: str | None) -> User:
    if not token:
        raise UnauthorizedError("Not authenticated")
    payload = load_session_token(token)
    if not payload:
        raise UnauthorizedError("Invalid or expired session")
    user_id = payload.get("user_id")
    if not user_id:
        raise UnauthorizedError("Invalid session")
    user = await User.get(user_id)
    if not user:
        raise UnauthorizedError("User not found")
    if payload.get("session_version") != user.session_version:
        raise UnauthorizedError("Session invalidated")
    bind_user_id(str(user.id))
    return user


async def get_current_user(request: Request) -> User:
    """Dependency: load session from bearer token or cookie and return User."""
    return await _user_from_token(_session_token(request.headers, request.cookies))


async def get_optional_user(request: Request) -> User | None:
    """Dependency for public endpoints that personalize when signed in."""
    token = _session_token(request.headers, request.cookies)
    if not token:
        return None
    try:
        return await _user_from_token(token)
    except UnauthorizedError:
        return None


async def get_websocket_user(websocket: WebSocket) -> User | None:
    """Resolve the socket's user from header, cookie or ?token=; None if unauthenticated."""
    token = _session_token(websocket.headers, websocket.cookies) or websocket.query_params.get("token")
    try:
        return await _user_from_token(token)
    except UnauthorizedError:
        return None
