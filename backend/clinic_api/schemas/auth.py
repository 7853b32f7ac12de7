from typing import Optional

from pydantic import BaseModel, Field

from clinic_api.schemas.common import CamelModel
from clinic_api.schemas.user import UserOut


class RegisterRequest(BaseModel):
    username: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    password: Optional[str] = None


class RegisteredUser(BaseModel):
    id: int
    email: str
    username: str
    phone: Optional[str] = None


class RegisterResponse(BaseModel):
    msg: str
    user: RegisteredUser


class LoginRequest(BaseModel):
    username: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


class LoginResponse(BaseModel):
    token: str
    refresh_token: str
    user: UserOut


class RefreshRequest(BaseModel):
    refresh_token: str = Field(min_length=1)


class TokenPair(BaseModel):
    token: str
    refresh_token: str


class ForgotPasswordRequest(BaseModel):
    email: Optional[str] = None
    username: Optional[str] = None


class ForgotPasswordResponse(BaseModel):
    msg: str
    reset_token: Optional[str] = None


class ResetPasswordRequest(CamelModel):
    token: Optional[str] = None
    new_password: Optional[str] = None


class ResetPasswordResponse(BaseModel):
    success: bool
    message: str
