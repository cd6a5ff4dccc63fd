from fastapi import Depends, Request, WebSocket
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from app.database import get_db
from app.models.user import User
from app.services.broadcast import RoomBroadcastHub
from app.utils.security import verify_access_token
from app.utils.exceptions import (
    UnauthorizedException,
    ForbiddenException,
    AccountInactiveException,
)

# Bearer token extractor
bearer_scheme = HTTPBearer(auto_error=False)


# ─── Token → User ─────────────────────────────────────────────────────────────
def authenticate_token(db: Session, token: str | None) -> User:
    """
    Resolve a bearer token to an active User.

    Shared by the HTTP dependencies and the room WebSocket handshake.
    Raises 401 if the token is missing, invalid, expired or names an unknown
    user, 403 if the account is inactive.
    """
    if not token:
        raise UnauthorizedException("No authentication token provided")

    payload = verify_access_token(token)
    user_id = payload.get("sub")

    if user_id is None:
        raise UnauthorizedException("Invalid token payload")

    try:
        user = db.query(User).filter(User.id == int(user_id)).first()
    except (TypeError, ValueError):
        raise UnauthorizedException("Invalid token payload")
    if not user:
        raise UnauthorizedException("User not found")

    if not user.isActive:
        raise AccountInactiveException()

    return user


def ensure_admin(user: User) -> User:
    """Raise 403 unless the user is an admin. Used in front of every room mutation."""
    if not user.is_admin:
        raise ForbiddenException("Unauthorized - Admin access required")
    return user


# ─── Get Current User ─────────────────────────────────────────────────────────
def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> User:
    """
    Validate JWT Bearer token and return the current User.
    Raises 401 if token is missing, invalid, or expired.
    Raises 403 if account is inactive.
    """
    return authenticate_token(db, credentials.credentials if credentials else None)


def websocket_token(websocket: WebSocket) -> str | None:
    """Read the bearer token of a WebSocket handshake: ``?token=`` first, then the header."""
    token = websocket.query_params.get("token")
    if token:
        return token
    header = websocket.headers.get("authorization", "")
    scheme, _, value = header.partition(" ")
    if scheme.lower() == "bearer" and value:
        return value.strip()
    return None


# ─── Role Guards ──────────────────────────────────────────────────────────────
def get_admin_user(current_user: User = Depends(get_current_user)) -> User:
    """
    Dependency for admin-only routes.

    Usage:
        @router.post("/rooms")
        def create_room(current_user: User = Depends(get_admin_user)):
            ...
    """
    return ensure_admin(current_user)


# ─── Broadcast Hub ────────────────────────────────────────────────────────────
def get_room_hub(request: Request) -> RoomBroadcastHub:
    """The hub owned by the running application (created in ``create_app``)."""
    return request.app.state.room_hub


def get_socket_room_hub(websocket: WebSocket) -> RoomBroadcastHub:
    return websocket.app.state.room_hub
