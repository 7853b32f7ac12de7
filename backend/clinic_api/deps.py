from fastapi import Depends, Header
from sqlalchemy import select
from sqlalchemy.orm import Session

from clinic_api.core.errors import UnauthorizedError
from clinic_api.core.security import decode_token
from clinic_api.core.settings import settings
from clinic_api.db.session import get_db
from clinic_api.models.user import User


def bearer_token(authorization: str | None) -> str:
    if not authorization or not authorization.lower().startswith("bearer "):
        raise UnauthorizedError("Missing token")
    token = authorization.split(" ", 1)[1].strip()
    if not token:
        raise UnauthorizedError("Missing token")
    return token


def get_current_user(
    db: Session = Depends(get_db), authorization: str | None = Header(default=None)
) -> User:
    token = bearer_token(authorization)
    user_id = decode_token(token, secret=settings.secret_key, alg=settings.jwt_alg)
    user = db.scalar(select(User).where(User.id == user_id))
    if not user or not user.is_active:
        raise UnauthorizedError("Invalid user")
    return user
