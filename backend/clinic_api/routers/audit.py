from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from clinic_api.db.session import get_db
from clinic_api.deps import get_current_user
from clinic_api.models.user import User
from clinic_api.schemas.audit_log import AuditPage
from clinic_api.services.audit import recent_events
from clinic_api.services.paging import clamp_page

router = APIRouter(prefix="/audit", tags=["audit"])


@router.get("/recent", response_model=AuditPage)
def recent_audit(
    db: Session = Depends(get_db),
    _user: User = Depends(get_current_user),
    action: str | None = Query(default=None),
    limit: int | None = Query(default=None),
    offset: int | None = Query(default=None),
):
    limit, offset = clamp_page(limit, offset, default=50)
    return recent_events(db, action=action, limit=limit, offset=offset)
