from pydantic import BaseModel, ConfigDict

from clinic_api.models.user import Role as RoleEnum


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    username: str
    role: RoleEnum


class CurrentUserOut(UserOut):
    phone: str | None = None
    is_active: bool
