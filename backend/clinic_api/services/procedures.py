"""Procedure lines stored in a visit's ``procedures`` JSON array.

Every mutation is a read-modify-write of the whole array. Index addressing is
kept for existing clients; deleting index ``i`` shifts every later element
down by one, so a caller holding a stale index edits the wrong line. Each line
also carries a stable ``id`` assigned on append, and the by-id operations are
not affected by that shift. Concurrent writers are caught by the visit's
version column.
"""

from __future__ import annotations

import re
import uuid
from datetime import date, datetime, timezone
from typing import Any

from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from clinic_api.core.errors import ConflictError, NotFoundError, ProcedureIndexError, ValidationError
from clinic_api.models.audit_log import AuditAction
from clinic_api.models.user import User
from clinic_api.models.visit import Visit, as_amount
from clinic_api.schemas.visit import ProcedureIn
from clinic_api.services.audit import log_change, snapshot_model

# upper and lower arches, right to left: 8..1 then 1..8
TEETH = (8, 7, 6, 5, 4, 3, 2, 1, 1, 2, 3, 4, 5, 6, 7, 8)

_VERSION_TAG = re.compile(r'^(?:W/)?"?(\d+)"?$')


def to_date_only(value: Any) -> str | None:
    """Return ``YYYY-MM-DD`` for a date-like value, ``None`` when it is not one."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        if value.tzinfo:
            value = value.astimezone(timezone.utc)
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    text = str(value).strip()
    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo:
        parsed = parsed.astimezone(timezone.utc)
    return parsed.date().isoformat()


def _text(value: Any) -> str:
    return "" if value is None else str(value).strip()


def sanitize_procedure(data: dict[str, Any], *, partial: bool = False) -> dict[str, Any]:
    """Coerce one procedure line.

    ``data`` is keyed by snake_case field name. With ``partial`` only the keys
    present in ``data`` are produced, so the result can be merged onto an
    existing line. Date keys are written in both camelCase and snake_case.
    """
    out: dict[str, Any] = {}
    for key in ("procedure", "notes"):
        if not partial or key in data:
            out[key] = _text(data.get(key))
    for snake, camel in (("visit_date", "visitDate"), ("next_appt_date", "nextApptDate")):
        if not partial or snake in data:
            out[camel] = out[snake] = to_date_only(data.get(snake))
    for key in ("total", "paid"):
        if not partial or key in data:
            out[key] = as_amount(data.get(key))
    return out


def new_procedure(data: dict[str, Any]) -> dict[str, Any]:
    return {"id": uuid.uuid4().hex, **sanitize_procedure(data)}


def _has_content(row: dict[str, Any]) -> bool:
    return any(_text(row.get(key)) for key in ("procedure", "visit_date", "next_appt_date", "total", "paid"))


def _fields(item: dict[str, Any]) -> dict[str, Any]:
    return ProcedureIn.model_validate(item).model_dump(exclude_unset=True)


def coerce_lines(items: list[Any] | None) -> list[dict[str, Any]]:
    """Sanitize a whole client-supplied array, keeping ids the lines already have."""
    lines = []
    for item in items or []:
        if not isinstance(item, dict):
            continue
        lines.append({"id": item.get("id") or uuid.uuid4().hex, **sanitize_procedure(_fields(item))})
    return lines


def procedure_rows(rows: list[Any] | None) -> list[dict[str, Any]] | None:
    """Lines from the registration form; rows with nothing filled in are dropped."""
    if not rows:
        return None
    parsed = [_fields(row) for row in rows if isinstance(row, dict)]
    cleaned = [new_procedure(row) for row in parsed if _has_content(row)]
    return cleaned or None


def findings_from_grids(
    upper_grades: list | None,
    lower_grades: list | None,
    upper_status: list | None,
    lower_status: list | None,
) -> dict[str, list[dict[str, Any]]]:
    def arch(grades: list | None, statuses: list | None) -> list[dict[str, Any]]:
        grades = grades or []
        statuses = statuses or []
        return [
            {
                "tooth": tooth,
                "grade": (grades[i] if i < len(grades) else "") or "",
                "status": (statuses[i] if i < len(statuses) else "") or "",
            }
            for i, tooth in enumerate(TEETH)
        ]

    return {"upper": arch(upper_grades, upper_status), "lower": arch(lower_grades, lower_status)}


def parse_index(index: str | int) -> int:
    try:
        idx = int(index)
    except (TypeError, ValueError):
        raise ProcedureIndexError("Invalid procedure index", status_code=400)
    if idx < 0:
        raise ProcedureIndexError("Invalid procedure index", status_code=400)
    return idx


def check_version(visit: Visit, if_match: str | None) -> None:
    if if_match is None or not if_match.strip():
        return
    match = _VERSION_TAG.match(if_match.strip())
    if not match:
        raise ValidationError("Invalid If-Match header")
    if int(match.group(1)) != visit.version:
        raise ConflictError("Visit was modified concurrently")


def load_visit(db: Session, visit_id: int) -> Visit:
    visit = db.get(Visit, visit_id)
    if not visit:
        raise NotFoundError("Visit not found")
    return visit


def _position_of(procedures: list[dict[str, Any]], procedure_id: str) -> int:
    for position, item in enumerate(procedures):
        if item.get("id") == procedure_id:
            return position
    raise NotFoundError("Procedure not found")


def _store(
    db: Session,
    visit: Visit,
    procedures: list[dict[str, Any]],
    *,
    actor: User,
    request_id: str | None,
) -> Visit:
    before_data = snapshot_model(visit)
    visit.procedures = procedures
    visit.updated_by_user_id = actor.id
    try:
        db.flush()
    except StaleDataError:
        db.rollback()
        raise ConflictError("Visit was modified concurrently")
    log_change(
        db,
        actor=actor,
        action=AuditAction.update,
        table_name="visits",
        row_id=visit.id,
        before_data=before_data,
        after_obj=visit,
        request_id=request_id,
    )
    db.commit()
    db.refresh(visit)
    return visit


def add_procedure(
    db: Session,
    *,
    actor: User,
    visit_id: int,
    data: dict[str, Any],
    if_match: str | None = None,
    request_id: str | None = None,
) -> Visit:
    visit = load_visit(db, visit_id)
    check_version(visit, if_match)
    procedures = list(visit.procedures or [])
    procedures.append(new_procedure(data))
    return _store(db, visit, procedures, actor=actor, request_id=request_id)


def _merge(existing: dict[str, Any], data: dict[str, Any]) -> dict[str, Any]:
    patch = sanitize_procedure(data, partial=True)
    merged = {**existing, **patch}
    for snake, camel in (("visit_date", "visitDate"), ("next_appt_date", "nextApptDate")):
        value = merged.get(camel, merged.get(snake))
        merged[camel] = merged[snake] = value
    return merged


def update_procedure_at(
    db: Session,
    *,
    actor: User,
    visit_id: int,
    index: str | int,
    data: dict[str, Any],
    if_match: str | None = None,
    request_id: str | None = None,
) -> Visit:
    idx = parse_index(index)
    visit = load_visit(db, visit_id)
    check_version(visit, if_match)
    procedures = list(visit.procedures or [])
    if idx >= len(procedures):
        raise ProcedureIndexError("Procedure index out of range")
    procedures[idx] = _merge(procedures[idx], data)
    return _store(db, visit, procedures, actor=actor, request_id=request_id)


def delete_procedure_at(
    db: Session,
    *,
    actor: User,
    visit_id: int,
    index: str | int,
    if_match: str | None = None,
    request_id: str | None = None,
) -> Visit:
    idx = parse_index(index)
    visit = load_visit(db, visit_id)
    check_version(visit, if_match)
    procedures = list(visit.procedures or [])
    if idx >= len(procedures):
        raise ProcedureIndexError("Procedure index out of range")
    del procedures[idx]
    return _store(db, visit, procedures, actor=actor, request_id=request_id)


def update_procedure_by_id(
    db: Session,
    *,
    actor: User,
    visit_id: int,
    procedure_id: str,
    data: dict[str, Any],
    if_match: str | None = None,
    request_id: str | None = None,
) -> Visit:
    visit = load_visit(db, visit_id)
    check_version(visit, if_match)
    procedures = list(visit.procedures or [])
    position = _position_of(procedures, procedure_id)
    procedures[position] = _merge(procedures[position], data)
    return _store(db, visit, procedures, actor=actor, request_id=request_id)


def delete_procedure_by_id(
    db: Session,
    *,
    actor: User,
    visit_id: int,
    procedure_id: str,
    if_match: str | None = None,
    request_id: str | None = None,
) -> Visit:
    visit = load_visit(db, visit_id)
    check_version(visit, if_match)
    procedures = list(visit.procedures or [])
    del procedures[_position_of(procedures, procedure_id)]
    return _store(db, visit, procedures, actor=actor, request_id=request_id)
