from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import get_current_user
from app.models.user import User
from app.schemas.auth import LoginRequest
from app.schemas.common import SuccessResponse, success_response
from app.services.auth_service import auth_service, serialize_user

router = APIRouter(prefix="/auth")


# ─── POST /auth/login ─────────────────────────────────────────────────────────
@router.post(
    "/login",
    status_code=status.HTTP_200_OK,
    summary="Login and receive an access token",
    response_model=SuccessResponse,
)
def login(data: LoginRequest, db: Session = Depends(get_db)):
    """
    Authenticate user.
    The returned accessToken is used as the Bearer token for /rooms and as
    the ``token`` query parameter of the room WebSocket.
    """
    result = auth_service.login(db, data)
    return success_response("Login successful", result)


# ─── GET /auth/me ─────────────────────────────────────────────────────────────
@router.get(
    "/me",
    status_code=status.HTTP_200_OK,
    summary="Get current authenticated user profile",
    response_model=SuccessResponse,
)
def get_me(current_user: User = Depends(get_current_user)):
    return success_response("User profile retrieved", serialize_user(current_user))
