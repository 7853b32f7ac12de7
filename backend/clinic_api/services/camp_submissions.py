from __future__ import annotations

from datetime import date
from typing import Any

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from clinic_api.core.errors import ForbiddenError, NotFoundError, ValidationError
from clinic_api.models.audit_log import AuditAction, AuditEvent
from clinic_api.models.camp_submission import CampSubmission
from clinic_api.models.user import User
from clinic_api.schemas.camp_submission import CampSubmissionIn
from clinic_api.services.audit import log_change, snapshot_model
from clinic_api.services.paging import clamp_page
from clinic_api.services.procedures import to_date_only

TABLE = "user_submissions"
DEFAULT_INSTITUTION_TYPE = "Other"

SORTABLE = {
    "id": CampSubmission.id,
    "name": CampSubmission.name,
    "dob": CampSubmission.dob,
    "email": CampSubmission.email,
    "phone": CampSubmission.phone,
    "institution": CampSubmission.institution,
    "institution_type": CampSubmission.institution_type,
    "created_at": CampSubmission.created_at,
    "updated_at": CampSubmission.updated_at,
}

VERBS = {"INSERT": "Added", "UPDATE": "Edited", "DELETE": "Deleted"}
_ACTION_FOR_VERB = {verb: action for action, verb in VERBS.items()}


def parse_action(value: str | None) -> str | None:
    """``Added``/``Edited``/``Deleted`` or a raw action name; anything else means no filter."""
    text = (value or "").strip()
    if text in _ACTION_FOR_VERB:
        return _ACTION_FOR_VERB[text]
    if text.upper() in VERBS:
        return text.upper()
    return None


def _clean(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _submission_values(given: dict[str, Any]) -> dict[str, Any]:
    values: dict[str, Any] = {}
    for key, value in given.items():
        if key == "dob":
            day = to_date_only(value)
            values["dob"] = date.fromisoformat(day) if day else None
        elif key == "name":
            values["name"] = (value or "").strip()
        elif key == "comments":
            values["comments"] = value or None
        elif key == "institution_type":
            values["institution_type"] = value or DEFAULT_INSTITUTION_TYPE
        else:
            values[key] = _clean(value)
    return values


def list_submissions(
    db: Session,
    *,
    limit: int | None = None,
    offset: int | None = None,
    q: str | None = None,
    sort: str | None = None,
) -> dict[str, Any]:
    limit, offset = clamp_page(limit, offset, default=25)
    column_name, _, direction = (sort or "created_at.desc").partition(".")
    column = SORTABLE.get(column_name, CampSubmission.created_at)
    ordering = column.asc() if direction == "asc" else column.desc()

    stmt = select(CampSubmission)
    text = (q or "").strip()
    if text:
        like = f"%{text}%"
        stmt = stmt.where(
            or_(
                CampSubmission.name.ilike(like),
                CampSubmission.email.ilike(like),
                CampSubmission.institution.ilike(like),
            )
        )
    total = db.scalar(select(func.count()).select_from(stmt.subquery())) or 0
    items = db.scalars(stmt.order_by(ordering, CampSubmission.id.desc()).offset(offset).limit(limit))
    return {"limit": limit, "offset": offset, "total": total, "items": list(items.unique())}


def get_submission(db: Session, submission_id: int) -> CampSubmission:
    submission = db.get(CampSubmission, submission_id)
    if not submission:
        raise NotFoundError("Submission not found")
    return submission


def create_submission(
    db: Session,
    *,
    actor: User,
    payload: CampSubmissionIn,
    request_id: str | None = None,
) -> CampSubmission:
    values = _submission_values(payload.model_dump())
    if not values["name"]:
        raise ValidationError("Name is required")
    submission = CampSubmission(
        **values, created_by_user_id=actor.id, updated_by_user_id=actor.id
    )
    db.add(submission)
    db.flush()
    log_change(
        db,
        actor=actor,
        action=AuditAction.insert,
        table_name=TABLE,
        row_id=submission.id,
        after_obj=submission,
        request_id=request_id,
    )
    db.commit()
    db.refresh(submission)
    return submission


def update_submission(
    db: Session,
    *,
    actor: User,
    submission_id: int,
    payload: CampSubmissionIn,
    request_id: str | None = None,
) -> CampSubmission:
    given = payload.model_dump(exclude_unset=True)
    if "name" in given and not (given["name"] or "").strip():
        raise ValidationError("Name cannot be empty")
    values = _submission_values(given)
    if not values:
        raise ValidationError("No valid fields to update")
    submission = get_submission(db, submission_id)
    before_data = snapshot_model(submission)
    for key, value in values.items():
        setattr(submission, key, value)
    submission.updated_by_user_id = actor.id
    db.flush()
    log_change(
        db,
        actor=actor,
        action=AuditAction.update,
        table_name=TABLE,
        row_id=submission.id,
        before_data=before_data,
        after_obj=submission,
        request_id=request_id,
    )
    db.commit()
    db.refresh(submission)
    return submission


def delete_submission(
    db: Session,
    *,
    actor: User,
    submission_id: int,
    request_id: str | None = None,
) -> dict[str, Any]:
    """Delete and return the row as it was."""
    submission = get_submission(db, submission_id)
    if submission.created_by_user_id != actor.id:
        raise ForbiddenError("Only the creator can delete this submission")
    before_data = snapshot_model(submission)
    db.delete(submission)
    log_change(
        db,
        actor=actor,
        action=AuditAction.delete,
        table_name=TABLE,
        row_id=submission_id,
        before_data=before_data,
        request_id=request_id,
    )
    db.commit()
    return before_data


def _log_row(event: AuditEvent) -> dict[str, Any]:
    row = event.new_data or event.old_data or {}
    who = None
    if event.actor is not None:
        who = event.actor.username or event.actor.email
    return {
        "id": event.id,
        "happened_at": event.happened_at,
        "action": event.action,
        "verb": VERBS.get(event.action, event.action),
        "who": who or event.actor_email,
        "actor_email": event.actor_email,
        "actor_id": event.actor_id,
        "target_id": event.row_id,
        "whom": row.get("name"),
        "old_row": event.old_data,
        "new_row": event.new_data,
    }


def _matches(row: dict[str, Any], text: str) -> bool:
    needle = text.lower()
    return any(needle in (row.get(key) or "").lower() for key in ("who", "whom", "actor_email"))


def submission_logs(
    db: Session,
    *,
    limit: int | None = None,
    offset: int | None = None,
    action: str | None = None,
    q: str | None = None,
    target_id: int | None = None,
) -> dict[str, Any]:
    """Change history of camp submissions, newest first."""
    limit, offset = clamp_page(limit, offset, default=25)
    stmt = select(AuditEvent).where(AuditEvent.table_name == TABLE)
    db_action = parse_action(action)
    if db_action:
        stmt = stmt.where(AuditEvent.action == db_action)
    if target_id is not None:
        stmt = stmt.where(AuditEvent.row_id == str(target_id))
    stmt = stmt.order_by(AuditEvent.happened_at.desc(), AuditEvent.id.desc())

    rows = [_log_row(event) for event in db.scalars(stmt).unique()]
    text = (q or "").strip()
    if text:
        rows = [row for row in rows if _matches(row, text)]
    return {
        "limit": limit,
        "offset": offset,
        "total": len(rows),
        "items": rows[offset : offset + limit],
    }
