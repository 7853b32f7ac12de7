from datetime import datetime, timedelta, timezone
import hashlib
import secrets
from typing import Any, Dict, Optional

from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext

from clinic_api.core.errors import UnauthorizedError

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

ACCESS_TOKEN = "access"
REFRESH_TOKEN = "refresh"


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def create_token(
    *,
    subject: str,
    secret: str,
    alg: str,
    expires_minutes: int,
    token_type: str = ACCESS_TOKEN,
    extra: Optional[Dict[str, Any]] = None,
) -> str:
    now = datetime.now(timezone.utc)
    expire = now + timedelta(minutes=expires_minutes)
    to_encode: Dict[str, Any] = {
        "sub": subject,
        "iat": int(now.timestamp()),
        "exp": int(expire.timestamp()),
        "typ": token_type,
    }
    if extra:
        to_encode.update(extra)
    return jwt.encode(to_encode, secret, algorithm=alg)


def decode_token(token: str, *, secret: str, alg: str, token_type: str = ACCESS_TOKEN) -> int:
    """Return the user id carried by ``token`` or raise ``UnauthorizedError``."""
    try:
        payload = jwt.decode(token, secret, algorithms=[alg])
    except ExpiredSignatureError:
        raise UnauthorizedError("Session expired")
    except JWTError:
        raise UnauthorizedError("Invalid token")
    if payload.get("typ", ACCESS_TOKEN) != token_type:
        raise UnauthorizedError("Invalid token")
    try:
        return int(payload["sub"])
    except (KeyError, TypeError, ValueError):
        raise UnauthorizedError("Invalid token")


def generate_reset_token() -> str:
    return secrets.token_urlsafe(32)


def hash_reset_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()
