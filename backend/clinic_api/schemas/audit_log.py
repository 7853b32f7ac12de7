from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict


class AuditEventOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    happened_at: datetime
    action: str
    table_name: str
    row_id: str
    actor_id: Optional[int] = None
    actor_email: Optional[str] = None
    request_id: Optional[str] = None
    old_data: Optional[dict] = None
    new_data: Optional[dict] = None


class AuditCounts(BaseModel):
    total_all: int
    total_insert: int
    total_update: int
    total_delete: int


class AuditPage(BaseModel):
    limit: int
    offset: int
    total: int
    items: list[AuditEventOut]
    meta: AuditCounts
