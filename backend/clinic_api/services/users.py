from __future__ import annotations

import re
from datetime import datetime, timezone

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from clinic_api.core.errors import ValidationError
from clinic_api.core.security import hash_password, verify_password
from clinic_api.models.user import Role, User

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def normalize_email(value: str | None) -> str:
    return (value or "").strip().lower()


def is_valid_email(value: str | None) -> bool:
    return bool(value) and EMAIL_PATTERN.match(value.strip()) is not None


def get_user_by_email(db: Session, email: str) -> User | None:
    return db.scalar(select(User).where(User.email == normalize_email(email)))


def get_user_by_id(db: Session, user_id: int) -> User | None:
    return db.scalar(select(User).where(User.id == user_id))


def users_by_username(db: Session, username: str, *, limit: int = 2) -> list[User]:
    """Case-insensitive exact match; callers look at ``len`` to spot duplicates."""
    name = username.strip().lower()
    return list(db.scalars(select(User).where(func.lower(User.username) == name).limit(limit)))


def authenticate(db: Session, email: str, password: str) -> User | None:
    user = get_user_by_email(db, email)
    if not user or not user.is_active:
        return None
    if not verify_password(password.strip(), user.hashed_password):
        return None
    return user


def create_user(
    db: Session,
    *,
    username: str,
    email: str,
    phone: str | None,
    password: str,
    role: Role = Role.dentist,
) -> User:
    email = normalize_email(email)
    username = username.strip()
    phone = (phone or "").strip() or None
    clashes = [User.email == email, func.lower(User.username) == username.lower()]
    if phone:
        clashes.append(User.phone == phone)
    taken = db.scalars(select(User).where(or_(*clashes))).all()
    for existing in taken:
        if existing.email == email:
            raise ValidationError("Email already exists")
        if existing.username.lower() == username.lower():
            raise ValidationError("Username already exists")
        raise ValidationError("Email or phone already exists")

    user = User(
        username=username,
        email=email,
        phone=phone,
        role=role,
        is_active=True,
        hashed_password=hash_password(password),
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def set_password_reset_token(
    db: Session,
    *,
    user: User,
    token_hash: str,
    expires_at: datetime,
) -> User:
    user.reset_token_hash = token_hash
    user.reset_token_expires_at = expires_at
    user.reset_token_used_at = None
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def _aware(value: datetime) -> datetime:
    # SQLite hands back naive datetimes even for timezone-aware columns.
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def reset_password_with_token(
    db: Session,
    *,
    token_hash: str,
    new_password: str,
) -> User | None:
    now = datetime.now(timezone.utc)
    user = db.scalar(
        select(User).where(
            User.reset_token_hash == token_hash,
            User.reset_token_expires_at.is_not(None),
            User.reset_token_used_at.is_(None),
        )
    )
    if not user or not user.is_active:
        return None
    if _aware(user.reset_token_expires_at) <= now:
        return None
    user.hashed_password = hash_password(new_password)
    user.reset_token_used_at = now
    user.reset_token_hash = None
    user.reset_token_expires_at = None
    db.add(user)
    db.commit()
    db.refresh(user)
    return user
