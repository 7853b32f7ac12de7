from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import func, inspect, select
from sqlalchemy.orm import Session

from clinic_api.models.audit_log import AuditAction, AuditEvent
from clinic_api.models.user import User


def _json_value(value: Any) -> Any:
    if hasattr(value, "value"):
        value = value.value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return float(value)
    return value


def snapshot_model(obj: Any | None) -> dict | None:
    if obj is None:
        return None
    data: dict[str, Any] = {}
    mapper = inspect(obj).mapper
    for column in mapper.columns:
        key = column.key
        data[key] = _json_value(getattr(obj, key))
    return data


def log_change(
    db: Session,
    *,
    actor: User | None,
    action: AuditAction,
    table_name: str,
    row_id: Any,
    before_obj: Any | None = None,
    after_obj: Any | None = None,
    before_data: dict | None = None,
    after_data: dict | None = None,
    request_id: str | None = None,
) -> AuditEvent:
    entry = AuditEvent(
        actor_id=actor.id if actor else None,
        actor_email=actor.email if actor else None,
        action=action.value,
        table_name=table_name,
        row_id=str(row_id),
        request_id=request_id,
        old_data=before_data if before_data is not None else snapshot_model(before_obj),
        new_data=after_data if after_data is not None else snapshot_model(after_obj),
    )
    db.add(entry)
    return entry


def recent_events(
    db: Session,
    *,
    action: str | None = None,
    limit: int = 50,
    offset: int = 0,
) -> dict[str, Any]:
    """Newest audit events plus per-action totals, so an empty page can be told apart from an empty log."""
    counts = dict(
        db.execute(select(AuditEvent.action, func.count(AuditEvent.id)).group_by(AuditEvent.action)).all()
    )
    meta = {
        "total_all": sum(counts.values()),
        "total_insert": counts.get(AuditAction.insert.value, 0),
        "total_update": counts.get(AuditAction.update.value, 0),
        "total_delete": counts.get(AuditAction.delete.value, 0),
    }

    stmt = select(AuditEvent)
    wanted = (action or "").strip().upper()
    if wanted in {member.value for member in AuditAction}:
        stmt = stmt.where(AuditEvent.action == wanted)
    total = db.scalar(select(func.count()).select_from(stmt.subquery())) or 0
    items = db.scalars(
        stmt.order_by(AuditEvent.happened_at.desc(), AuditEvent.id.desc()).offset(offset).limit(limit)
    )
    return {"limit": limit, "offset": offset, "total": total, "items": list(items.unique()), "meta": meta}
