import logging
from datetime import datetime, timedelta, timezone

from fastapi import APIRouter, Depends, Header, Request, status
from sqlalchemy.orm import Session

from clinic_api.core.errors import RateLimitedError, UnauthorizedError, ValidationError
from clinic_api.core.security import (
    ACCESS_TOKEN,
    REFRESH_TOKEN,
    create_token,
    decode_token,
    generate_reset_token,
    hash_reset_token,
)
from clinic_api.core.settings import settings
from clinic_api.db.session import get_db
from clinic_api.deps import get_current_user
from clinic_api.models.user import User
from clinic_api.schemas.auth import (
    ForgotPasswordRequest,
    ForgotPasswordResponse,
    LoginRequest,
    LoginResponse,
    RefreshRequest,
    RegisteredUser,
    RegisterRequest,
    RegisterResponse,
    ResetPasswordRequest,
    ResetPasswordResponse,
    TokenPair,
)
from clinic_api.schemas.user import CurrentUserOut, UserOut
from clinic_api.services.rate_limit import SimpleRateLimiter
from clinic_api.services.users import (
    authenticate,
    create_user,
    get_user_by_email,
    get_user_by_id,
    is_valid_email,
    normalize_email,
    reset_password_with_token,
    set_password_reset_token,
    users_by_username,
)

logger = logging.getLogger("dental_clinic.auth")

router = APIRouter(prefix="/auth", tags=["auth"])

INVALID_LOGIN = "Invalid username/email or password"

LOGIN_LIMITER = SimpleRateLimiter(max_events=settings.login_attempts_per_minute, window_seconds=60)
LOGIN_IP_LIMITER = SimpleRateLimiter(
    max_events=settings.login_attempts_per_minute * 2, window_seconds=60
)
RESET_REQUEST_LIMITER = SimpleRateLimiter(
    max_events=settings.login_attempts_per_minute, window_seconds=60
)


def _client_ip(request: Request) -> str:
    return request.client.host if request.client else "unknown"


def _issue_tokens(user: User) -> TokenPair:
    extra = {"role": user.role.value, "email": user.email}
    access = create_token(
        subject=str(user.id),
        secret=settings.secret_key,
        alg=settings.jwt_alg,
        expires_minutes=settings.access_token_expire_minutes,
        token_type=ACCESS_TOKEN,
        extra=extra,
    )
    refresh = create_token(
        subject=str(user.id),
        secret=settings.secret_key,
        alg=settings.jwt_alg,
        expires_minutes=settings.refresh_token_expire_minutes,
        token_type=REFRESH_TOKEN,
    )
    return TokenPair(token=access, refresh_token=refresh)


@router.post("/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
def register(payload: RegisterRequest, db: Session = Depends(get_db)):
    if not (payload.username and payload.email and payload.password and payload.phone):
        raise ValidationError("Missing required fields")
    email = normalize_email(payload.email)
    if not is_valid_email(email):
        raise ValidationError("Invalid email format")
    user = create_user(
        db,
        username=payload.username,
        email=email,
        phone=payload.phone,
        password=payload.password,
    )
    logger.info("Registered user id=%s", user.id)
    return RegisterResponse(
        msg="Registered. You can log in now.",
        user=RegisteredUser(id=user.id, email=user.email, username=user.username, phone=user.phone),
    )


def _resolve_login_email(db: Session, payload: LoginRequest) -> str:
    if payload.email and is_valid_email(payload.email):
        return normalize_email(payload.email)
    name = (payload.username or payload.email or "").strip()
    if not name:
        raise ValidationError("Username or email is required")
    matches = users_by_username(db, name)
    if not matches:
        raise ValidationError(INVALID_LOGIN)
    if len(matches) > 1:
        logger.error("Duplicate username on login: %s", name)
        raise ValidationError("Duplicate username. Contact admin.")
    return matches[0].email


@router.post("/login", response_model=LoginResponse)
def login(payload: LoginRequest, request: Request, db: Session = Depends(get_db)):
    if not payload.password:
        raise ValidationError("Password is required")
    identifier = (payload.email or payload.username or "").strip().lower()
    if not identifier:
        raise ValidationError("Username or email is required")

    ip_address = _client_ip(request)
    rate_key = f"{ip_address}:{identifier}"
    if not LOGIN_LIMITER.allow(rate_key) or not LOGIN_IP_LIMITER.allow(ip_address):
        raise RateLimitedError("Too many login attempts")

    email = _resolve_login_email(db, payload)
    user = authenticate(db, email, payload.password)
    if not user:
        logger.warning("Login failed for %s", email)
        raise ValidationError(INVALID_LOGIN)

    LOGIN_LIMITER.reset(rate_key)
    tokens = _issue_tokens(user)
    return LoginResponse(
        token=tokens.token,
        refresh_token=tokens.refresh_token,
        user=UserOut.model_validate(user),
    )


@router.post("/refresh", response_model=TokenPair)
def refresh(payload: RefreshRequest, db: Session = Depends(get_db)):
    user_id = decode_token(
        payload.refresh_token,
        secret=settings.secret_key,
        alg=settings.jwt_alg,
        token_type=REFRESH_TOKEN,
    )
    user = get_user_by_id(db, user_id)
    if not user or not user.is_active:
        raise UnauthorizedError("Invalid user")
    return _issue_tokens(user)


@router.post("/forgot-password", response_model=ForgotPasswordResponse)
def forgot_password(payload: ForgotPasswordRequest, request: Request, db: Session = Depends(get_db)):
    email = normalize_email(payload.email) or None
    if not email and payload.username and payload.username.strip():
        matches = users_by_username(db, payload.username)
        if len(matches) != 1:
            raise ValidationError("Unknown user")
        email = matches[0].email
    if not email:
        raise ValidationError("Email or username is required")

    if not RESET_REQUEST_LIMITER.allow(f"{_client_ip(request)}:{email}"):
        raise RateLimitedError("Too many requests")

    token: str | None = None
    user = get_user_by_email(db, email)
    if user and user.is_active:
        token = generate_reset_token()
        expires_at = datetime.now(timezone.utc) + timedelta(minutes=settings.reset_token_expire_minutes)
        set_password_reset_token(db, user=user, token_hash=hash_reset_token(token), expires_at=expires_at)
        logger.info("Password reset issued for user id=%s", user.id)
    else:
        logger.info("Password reset requested for unknown email")
    return ForgotPasswordResponse(
        msg="Password recovery email sent",
        reset_token=token if settings.reset_token_debug else None,
    )


@router.post("/reset-password", response_model=ResetPasswordResponse)
def reset_password(
    payload: ResetPasswordRequest,
    db: Session = Depends(get_db),
    authorization: str | None = Header(default=None),
):
    if not payload.new_password:
        raise ValidationError("newPassword is required")
    token = (payload.token or "").strip()
    if not token and authorization and authorization.lower().startswith("bearer "):
        token = authorization.split(" ", 1)[1].strip()
    if not token:
        raise UnauthorizedError("Missing recovery token")

    user = reset_password_with_token(db, token_hash=hash_reset_token(token), new_password=payload.new_password)
    if not user:
        raise ValidationError("Session expired. Request a new recovery link.")
    logger.info("Password reset completed for user id=%s", user.id)
    return ResetPasswordResponse(success=True, message="Password reset successful")


@router.get("/me", response_model=CurrentUserOut)
def me(user: User = Depends(get_current_user)):
    return user
