"""Appointment scheduling rules.

The API repeats the store's "Rescheduled needs both reschedule fields" check
so callers get a readable message instead of a constraint violation, and it
owns the promotion rule: once an appointment is rescheduled its canonical
``date``/``time_slot`` move to the new slot so day and range listings show it
there, while ``rescheduled_date``/``rescheduled_time`` are kept as history.
"""

from __future__ import annotations

import re
from calendar import monthrange
from datetime import date
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from clinic_api.core.errors import ForbiddenError, NotFoundError, ValidationError
from clinic_api.models.appointment import Appointment, AppointmentStatus
from clinic_api.models.audit_log import AuditAction
from clinic_api.models.user import User
from clinic_api.schemas.appointment import AppointmentCreate
from clinic_api.services.audit import log_change, snapshot_model

TABLE = "appointments"
DEFAULT_SERVICE_TYPE = "Checkup"

_HHMM = re.compile(r"(\d{1,2}):(\d{1,2})")


def as_hhmm(value: Any) -> Any:
    """Normalize ``H:M`` through ``HH:MM`` to zero-padded 24h ``HH:MM``.

    Hours clamp to 0-23 and minutes to 0-59. Values that do not look like a
    time are returned unchanged rather than rejected.
    """
    if value is None or value == "":
        return value
    match = _HHMM.fullmatch(str(value))
    if not match:
        return value
    hour = min(23, max(0, int(match.group(1))))
    minute = min(59, max(0, int(match.group(2))))
    return f"{hour:02d}:{minute:02d}"


def current_month_bounds(today: date | None = None) -> tuple[date, date]:
    today = today or date.today()
    last_day = monthrange(today.year, today.month)[1]
    return today.replace(day=1), today.replace(day=last_day)


def _is_rescheduled(status: Any) -> bool:
    return status == AppointmentStatus.rescheduled


def require_reschedule_fields(status: Any, rescheduled_date: Any, rescheduled_time: Any) -> None:
    if not _is_rescheduled(status):
        return
    if not rescheduled_date:
        raise ValidationError("rescheduled_date is required when status = Rescheduled")
    if not rescheduled_time:
        raise ValidationError("rescheduled_time is required when status = Rescheduled")


def build_patch(changes: dict[str, Any]) -> dict[str, Any]:
    """Turn the keys a client actually sent into column updates.

    Blank names/phones/time slots are ignored instead of clearing the column;
    ``rescheduled_*`` and ``notes`` may be cleared explicitly with null.
    """
    patch: dict[str, Any] = {}
    if changes.get("patient_id") is not None:
        patch["patient_id"] = changes["patient_id"]
    for key in ("patient_name", "phone"):
        value = changes.get(key)
        if value and str(value).strip():
            patch[key] = str(value).strip()
    if changes.get("date") is not None:
        patch["date"] = changes["date"]
    if changes.get("time_slot"):
        patch["time_slot"] = as_hhmm(changes["time_slot"])
    for key in ("service_type", "status"):
        if changes.get(key) is not None:
            patch[key] = changes[key]
    if "rescheduled_date" in changes:
        patch["rescheduled_date"] = changes["rescheduled_date"]
    if "rescheduled_time" in changes:
        value = changes["rescheduled_time"]
        patch["rescheduled_time"] = as_hhmm(value) if value else None
    if "notes" in changes:
        patch["notes"] = changes["notes"]
    return patch


def promote_reschedule(patch: dict[str, Any], current: dict[str, Any]) -> dict[str, Any]:
    """Copy the reschedule slot into ``date``/``time_slot`` unless the patch sets them."""
    merged = {**current, **patch}
    sets_rescheduled = _is_rescheduled(patch.get("status"))
    sets_date = bool(patch.get("rescheduled_date"))
    sets_time = "rescheduled_time" in patch and patch["rescheduled_time"] is not None

    promoted = dict(patch)
    if (sets_date or sets_rescheduled) and "date" not in patch:
        promoted["date"] = merged.get("rescheduled_date") or current.get("date")
    if (sets_time or sets_rescheduled) and "time_slot" not in patch:
        promoted["time_slot"] = as_hhmm(merged.get("rescheduled_time") or current.get("time_slot"))
    return promoted


def list_appointments(
    db: Session,
    *,
    on_date: date | None = None,
    date_from: date | None = None,
    date_to: date | None = None,
    limit: int | None = None,
    offset: int = 0,
) -> list[Appointment]:
    stmt = select(Appointment)
    if on_date:
        stmt = stmt.where(Appointment.date == on_date)
    elif date_from and date_to:
        stmt = stmt.where(Appointment.date >= date_from, Appointment.date <= date_to)
    else:
        first, last = current_month_bounds()
        stmt = stmt.where(Appointment.date >= first, Appointment.date <= last)
    stmt = stmt.order_by(Appointment.date.asc(), Appointment.time_slot.asc(), Appointment.id.asc())
    if limit:
        stmt = stmt.offset(offset or 0).limit(limit)
    return list(db.scalars(stmt))


def get_appointment(db: Session, appointment_id: int) -> Appointment:
    appt = db.get(Appointment, appointment_id)
    if not appt:
        raise NotFoundError("Appointment not found")
    return appt


def create_appointment(
    db: Session,
    *,
    actor: User,
    payload: AppointmentCreate,
    request_id: str | None = None,
) -> Appointment:
    patient_name = (payload.patient_name or "").strip()
    phone = (payload.phone or "").strip()
    slot_date = payload.date
    time_slot = as_hhmm(payload.time_slot or None)
    status = payload.status or AppointmentStatus.pending
    rescheduled_time = as_hhmm(payload.rescheduled_time) if payload.rescheduled_time else None

    if not patient_name:
        raise ValidationError("patient_name is required")
    if not phone:
        raise ValidationError("phone is required")
    if not slot_date:
        raise ValidationError("date is required")
    if not time_slot:
        raise ValidationError("time_slot is required")

    require_reschedule_fields(status, payload.rescheduled_date, rescheduled_time)
    if _is_rescheduled(status):
        slot_date = payload.rescheduled_date
        time_slot = as_hhmm(rescheduled_time)

    appt = Appointment(
        patient_id=payload.patient_id,
        patient_name=patient_name,
        phone=phone,
        date=slot_date,
        time_slot=time_slot,
        service_type=payload.service_type or DEFAULT_SERVICE_TYPE,
        status=status,
        rescheduled_date=payload.rescheduled_date,
        rescheduled_time=rescheduled_time,
        notes=payload.notes,
        created_by_user_id=actor.id,
        updated_by_user_id=actor.id,
    )
    db.add(appt)
    db.flush()
    log_change(
        db,
        actor=actor,
        action=AuditAction.insert,
        table_name=TABLE,
        row_id=appt.id,
        after_obj=appt,
        request_id=request_id,
    )
    db.commit()
    db.refresh(appt)
    return appt


def update_appointment(
    db: Session,
    *,
    actor: User,
    appointment_id: int,
    changes: dict[str, Any],
    request_id: str | None = None,
) -> Appointment:
    patch = build_patch(changes)
    if not patch:
        raise ValidationError("No fields to update")

    appt = get_appointment(db, appointment_id)
    before_data = snapshot_model(appt)
    current = {key: getattr(appt, key) for key in (
        "date",
        "time_slot",
        "status",
        "rescheduled_date",
        "rescheduled_time",
    )}
    merged = {**current, **patch}
    require_reschedule_fields(
        merged.get("status"), merged.get("rescheduled_date"), merged.get("rescheduled_time")
    )
    patch = promote_reschedule(patch, current)

    for key, value in patch.items():
        setattr(appt, key, value)
    appt.updated_by_user_id = actor.id
    try:
        db.flush()
    except StaleDataError:
        # Row deleted by someone else between the read and this write.
        db.rollback()
        raise NotFoundError("Appointment not found")
    log_change(
        db,
        actor=actor,
        action=AuditAction.update,
        table_name=TABLE,
        row_id=appt.id,
        before_data=before_data,
        after_obj=appt,
        request_id=request_id,
    )
    db.commit()
    db.refresh(appt)
    return appt


def delete_appointment(
    db: Session,
    *,
    actor: User,
    appointment_id: int,
    request_id: str | None = None,
) -> None:
    appt = get_appointment(db, appointment_id)
    if appt.created_by_user_id != actor.id:
        raise ForbiddenError("Only the creator can delete this appointment")
    before_data = snapshot_model(appt)
    db.delete(appt)
    log_change(
        db,
        actor=actor,
        action=AuditAction.delete,
        table_name=TABLE,
        row_id=appointment_id,
        before_data=before_data,
        request_id=request_id,
    )
    db.commit()
