from __future__ import annotations

from datetime import date
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from clinic_api.core.errors import ConflictError, NotFoundError, ValidationError
from clinic_api.models.audit_log import AuditAction
from clinic_api.models.patient import Patient
from clinic_api.models.user import User
from clinic_api.models.visit import Visit
from clinic_api.schemas.visit import VisitIn
from clinic_api.services.audit import log_change, snapshot_model
from clinic_api.services.procedures import check_version, coerce_lines, load_visit, to_date_only

UNKNOWN_PATIENT = "Unknown Patient"


def _require_patient(db: Session, patient_id: int) -> Patient:
    patient = db.get(Patient, patient_id)
    if not patient:
        raise NotFoundError("Patient not found")
    return patient


def _visit_values(payload: VisitIn) -> dict[str, Any]:
    values = payload.model_dump(exclude_unset=True)
    if values.get("procedures") is None:
        values.pop("procedures", None)
    else:
        values["procedures"] = coerce_lines(values["procedures"])
    if values.get("trigger_factors") is None:
        values.pop("trigger_factors", None)
    if values.get("visit_at") is None:
        values.pop("visit_at", None)
    return values


def create_visit(
    db: Session,
    *,
    actor: User,
    patient_id: int,
    payload: VisitIn,
    request_id: str | None = None,
) -> Visit:
    _require_patient(db, patient_id)
    visit = Visit(
        patient_id=patient_id,
        created_by_user_id=actor.id,
        updated_by_user_id=actor.id,
        **_visit_values(payload),
    )
    db.add(visit)
    db.flush()
    log_change(
        db,
        actor=actor,
        action=AuditAction.insert,
        table_name="visits",
        row_id=visit.id,
        after_obj=visit,
        request_id=request_id,
    )
    db.commit()
    db.refresh(visit)
    return visit


def list_visits(db: Session, patient_id: int, *, limit: int = 100, offset: int = 0) -> list[Visit]:
    _require_patient(db, patient_id)
    stmt = (
        select(Visit)
        .where(Visit.patient_id == patient_id)
        .order_by(Visit.visit_at.desc(), Visit.id.desc())
        .offset(offset)
        .limit(limit)
    )
    return list(db.scalars(stmt).unique())


def update_visit(
    db: Session,
    *,
    actor: User,
    visit_id: int,
    payload: VisitIn,
    if_match: str | None = None,
    request_id: str | None = None,
) -> Visit:
    values = _visit_values(payload)
    if not values:
        raise ValidationError("No valid fields to update")
    visit = load_visit(db, visit_id)
    check_version(visit, if_match)
    before_data = snapshot_model(visit)
    for key, value in values.items():
        setattr(visit, key, value)
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


def delete_visit(
    db: Session, *, actor: User, visit_id: int, request_id: str | None = None
) -> None:
    visit = load_visit(db, visit_id)
    before_data = snapshot_model(visit)
    db.delete(visit)
    log_change(
        db,
        actor=actor,
        action=AuditAction.delete,
        table_name="visits",
        row_id=visit_id,
        before_data=before_data,
        request_id=request_id,
    )
    db.commit()


def _patient_name(visit: Visit) -> str:
    if visit.patient is None:
        return UNKNOWN_PATIENT
    return visit.patient.full_name or UNKNOWN_PATIENT


def upcoming_rows(visit: Visit, today: date | None = None) -> list[dict[str, Any]]:
    """One row per procedure whose next appointment is today or later, soonest first."""
    cutoff = (today or date.today()).isoformat()
    name = _patient_name(visit)
    rows = []
    for item in visit.procedures or []:
        when = to_date_only(item.get("nextApptDate") or item.get("next_appt_date"))
        if not when or when < cutoff:
            continue
        rows.append(
            {
                "patient_name": name,
                "date": when,
                "chief_complaint": visit.chief_complaint,
                "visit_id": visit.id,
                "patient_id": visit.patient_id,
                "procedure": item.get("procedure"),
            }
        )
    rows.sort(key=lambda row: row["date"])
    return rows


def next_appointment(db: Session, visit_id: int) -> dict[str, Any]:
    rows = upcoming_rows(load_visit(db, visit_id))
    if not rows:
        raise NotFoundError("No upcoming appointment found")
    first = dict(rows[0])
    first.pop("procedure")
    return first


def next_appointments(db: Session, visit_id: int) -> list[dict[str, Any]]:
    rows = upcoming_rows(load_visit(db, visit_id))
    if not rows:
        raise NotFoundError("No upcoming appointment found")
    return rows


def upcoming_appointments(db: Session, *, limit: int = 100, offset: int = 0) -> list[dict[str, Any]]:
    """Upcoming follow-ups across every visit, paged after sorting."""
    today = date.today()
    rows: list[dict[str, Any]] = []
    for visit in db.scalars(select(Visit)).unique():
        rows.extend(upcoming_rows(visit, today))
    if not rows:
        raise NotFoundError("No upcoming appointment found")
    rows.sort(key=lambda row: (row["date"], row["patient_id"], row["visit_id"]))
    return rows[offset : offset + limit]
