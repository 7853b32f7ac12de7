from datetime import date, datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from clinic_api.schemas.common import CamelModel


class CampSubmissionIn(CamelModel):
    name: Optional[str] = None
    dob: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    comments: Optional[str] = None
    institution: Optional[str] = None
    institution_type: Optional[str] = None


class CampSubmissionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    dob: Optional[date] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    comments: Optional[str] = None
    institution: Optional[str] = None
    institution_type: str
    created_by_user_id: int
    created_at: datetime
    updated_at: datetime


class CampSubmissionPage(BaseModel):
    limit: int
    offset: int
    total: int
    items: list[CampSubmissionOut]


class CampSubmissionDeleted(BaseModel):
    ok: bool = True
    deleted: CampSubmissionOut


class CampLogOut(BaseModel):
    """One "who verb whom" line, e.g. ``dr_rao Edited Asha K``."""

    id: int
    happened_at: datetime
    action: str
    verb: str
    who: Optional[str] = None
    actor_email: Optional[str] = None
    actor_id: Optional[int] = None
    target_id: str
    whom: Optional[str] = None
    old_row: Optional[dict[str, Any]] = None
    new_row: Optional[dict[str, Any]] = None


class CampLogPage(BaseModel):
    limit: int
    offset: int
    total: int
    items: list[CampLogOut]


class CampTargetLogPage(CampLogPage):
    target_id: str = Field(serialization_alias="targetId")
