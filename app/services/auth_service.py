import logging

from sqlalchemy.orm import Session

from app.config import settings
from app.models.user import User
from app.schemas.auth import LoginRequest
from app.utils.security import verify_password, create_access_token
from app.utils.exceptions import UnauthorizedException, AccountInactiveException

logger = logging.getLogger(__name__)


def serialize_user(user: User) -> dict:
    return {
        "id":        user.id,
        "username":  user.username,
        "email":     user.email,
        "firstName": user.firstName,
        "lastName":  user.lastName,
        "role":      user.role.value,
        "isActive":  user.isActive,
    }


class AuthService:

    # ─── Login ────────────────────────────────────────────────────────────────
    def login(self, db: Session, data: LoginRequest) -> dict:
        user = db.query(User).filter(User.username == data.username).first()

        if not user or not verify_password(data.password, user.password):
            raise UnauthorizedException("Invalid username or password")

        if not user.isActive:
            raise AccountInactiveException()

        access_token = create_access_token(user.id, user.role.value)
        logger.info(f"{user.username} logged in")

        return {
            "accessToken": access_token,
            "tokenType":   "Bearer",
            "expiresIn":   settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
            "user":        serialize_user(user),
        }


auth_service = AuthService()
