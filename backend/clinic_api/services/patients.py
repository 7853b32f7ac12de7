from __future__ import annotations

import logging
from datetime import date
from typing import Any

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from clinic_api.core.errors import ForbiddenError, NotFoundError, ValidationError
from clinic_api.models.audit_log import AuditAction
from clinic_api.models.medical_history import MedicalHistory
from clinic_api.models.patient import Patient
from clinic_api.models.user import User
from clinic_api.models.visit import Visit
from clinic_api.schemas.medical_history import MedicalHistoryIn
from clinic_api.schemas.patient import PatientCreate, PatientFields, PatientPhotoUpdate, PatientUpdate
from clinic_api.schemas.visit import InitialVisitIn
from clinic_api.services import cdn
from clinic_api.services.audit import log_change, snapshot_model
from clinic_api.services.medical_history import history_values
from clinic_api.services.procedures import coerce_lines, findings_from_grids, procedure_rows, to_date_only

logger = logging.getLogger("dental_clinic.patients")

PROFILE_FIELDS = set(PatientFields.model_fields)
REQUIRED_MESSAGE = "Missing required patient fields (firstName, lastName, dob, gender, phone)"


def coerce_photo_url(src: Any) -> str | None:
    """Accept a URL string or an upload-widget result object."""
    if not src:
        return None
    if isinstance(src, str):
        return src
    if isinstance(src, dict):
        return src.get("url") or src.get("thumbnailUrl") or src.get("path") or None
    return None


def profile_values(given: dict[str, Any]) -> dict[str, Any]:
    """Columns for the profile keys present in ``given``."""
    values: dict[str, Any] = {}
    for key, value in given.items():
        if key in {"photo", "photo_url"}:
            continue
        if key == "dob":
            day = to_date_only(value)
            values["dob"] = date.fromisoformat(day) if day else None
        elif key == "email":
            values["email"] = value.strip().lower() if isinstance(value, str) else value
        elif isinstance(value, str):
            values[key] = value.strip()
        else:
            values[key] = value
    if "photo_url" in given:
        values["photo_url"] = given["photo_url"] or None
    elif "photo" in given:
        values["photo_url"] = coerce_photo_url(given["photo"])
    return values


def _lines_from(procedures: Any, rows: list | None) -> list[dict[str, Any]] | None:
    if isinstance(procedures, list):
        return coerce_lines(procedures)
    if isinstance(procedures, dict) and isinstance(procedures.get("rows"), list):
        return procedure_rows(procedures["rows"])
    if rows:
        return procedure_rows(rows)
    return None


def _findings(src: InitialVisitIn) -> dict[str, Any] | None:
    if src.findings:
        return src.findings
    if isinstance(src.upper_grades, list) or isinstance(src.lower_grades, list):
        return findings_from_grids(src.upper_grades, src.lower_grades, src.upper_status, src.lower_status)
    return None


def _trigger_factors(value: Any) -> list[str]:
    if isinstance(value, list):
        return [str(item) for item in value]
    if value:
        return [str(value)]
    return []


def initial_visit_values(payload: PatientCreate) -> dict[str, Any]:
    if payload.initial_visit is not None:
        src = payload.initial_visit
        procedures = _lines_from(src.procedures, src.rows)
    else:
        src = payload.dental_exam or InitialVisitIn()
        procedures = _lines_from(payload.procedures, payload.rows) or _lines_from(src.procedures, src.rows)
    values: dict[str, Any] = {
        "chief_complaint": (src.chief_complaint or "").strip() or None,
        "duration_onset": src.duration_onset,
        "trigger_factors": _trigger_factors(src.trigger_factors),
        "diagnosis_notes": src.diagnosis_notes,
        "treatment_plan_notes": src.treatment_plan_notes,
        "findings": _findings(src),
        "procedures": procedures or [],
    }
    if src.visit_at:
        values["visit_at"] = src.visit_at
    return values


def create_patient(
    db: Session,
    *,
    actor: User,
    payload: PatientCreate,
    request_id: str | None = None,
) -> Patient:
    """Create the patient, its medical history and its first visit in one transaction."""
    given = payload.model_dump(include=PROFILE_FIELDS, exclude_unset=True)
    if payload.patient_profile is not None:
        given.update(payload.patient_profile.model_dump(exclude_unset=True))
    if not given.get("photo_url") and "photo" in given:
        given["photo_url"] = coerce_photo_url(given["photo"])
    patient_values = profile_values(given)
    if not all(patient_values.get(key) for key in ("first_name", "last_name", "dob", "gender", "phone")):
        raise ValidationError(REQUIRED_MESSAGE)

    visit_values = initial_visit_values(payload)
    if not visit_values["chief_complaint"]:
        raise ValidationError("Missing chief complaint for initial visit")

    stamp = {"created_by_user_id": actor.id, "updated_by_user_id": actor.id}
    patient = Patient(**patient_values, **stamp)
    db.add(patient)
    db.flush()

    history = MedicalHistory(
        patient_id=patient.id,
        **history_values(payload.medical_history or MedicalHistoryIn(), complete=True),
        **stamp,
    )
    visit = Visit(patient_id=patient.id, **visit_values, **stamp)
    db.add_all([history, visit])
    db.flush()

    for table_name, row in (("patients", patient), ("medical_histories", history), ("visits", visit)):
        log_change(
            db,
            actor=actor,
            action=AuditAction.insert,
            table_name=table_name,
            row_id=row.id,
            after_obj=row,
            request_id=request_id,
        )
    db.commit()
    db.refresh(patient)
    logger.info("Patient %s registered by user %s", patient.id, actor.id)
    return patient


def list_patients(db: Session, *, limit: int = 100, offset: int = 0) -> list[Patient]:
    stmt = (
        select(Patient)
        .order_by(Patient.created_at.desc(), Patient.id.desc())
        .offset(offset)
        .limit(limit)
    )
    return list(db.scalars(stmt).unique())


def get_patient(db: Session, patient_id: int) -> Patient:
    patient = db.get(Patient, patient_id)
    if not patient:
        raise NotFoundError("Patient not found")
    return patient


def patient_detail(db: Session, patient_id: int) -> dict[str, Any]:
    patient = get_patient(db, patient_id)
    has_history = db.scalar(
        select(func.count(MedicalHistory.id)).where(MedicalHistory.patient_id == patient_id)
    )
    last_visit_at = db.scalar(select(func.max(Visit.visit_at)).where(Visit.patient_id == patient_id))
    return {
        "patient": patient,
        "meta": {"has_medical_history": bool(has_history), "last_visit_at": last_visit_at},
    }


def _apply(
    db: Session,
    patient: Patient,
    values: dict[str, Any],
    *,
    actor: User,
    prev_file_id: str | None,
    request_id: str | None,
) -> Patient:
    before_data = snapshot_model(patient)
    old_photo = patient.photo_url
    for key, value in values.items():
        setattr(patient, key, value)
    patient.updated_by_user_id = actor.id
    db.flush()
    log_change(
        db,
        actor=actor,
        action=AuditAction.update,
        table_name="patients",
        row_id=patient.id,
        before_data=before_data,
        after_obj=patient,
        request_id=request_id,
    )
    db.commit()
    db.refresh(patient)

    if "photo_url" in values and old_photo and old_photo != patient.photo_url and prev_file_id:
        cdn.delete_file_quietly(prev_file_id)
    return patient


def update_patient(
    db: Session,
    *,
    actor: User,
    patient_id: int,
    payload: PatientUpdate,
    request_id: str | None = None,
) -> Patient:
    patient = get_patient(db, patient_id)
    values = profile_values(payload.model_dump(include=PROFILE_FIELDS, exclude_unset=True))
    if not values:
        raise ValidationError("No valid fields to update")
    return _apply(
        db,
        patient,
        values,
        actor=actor,
        prev_file_id=payload.prev_image_kit_file_id or payload.delete_prev_image_kit_file_id,
        request_id=request_id,
    )


def update_photo(
    db: Session,
    *,
    actor: User,
    patient_id: int,
    payload: PatientPhotoUpdate,
    request_id: str | None = None,
) -> Patient:
    patient = get_patient(db, patient_id)
    if not payload.photo_url:
        raise ValidationError("photoUrl is required")
    return _apply(
        db,
        patient,
        {"photo_url": payload.photo_url},
        actor=actor,
        prev_file_id=payload.prev_image_kit_file_id or payload.delete_prev_image_kit_file_id,
        request_id=request_id,
    )


def delete_patient(
    db: Session, *, actor: User, patient_id: int, request_id: str | None = None
) -> None:
    patient = get_patient(db, patient_id)
    if patient.created_by_user_id != actor.id:
        raise ForbiddenError("Only the creator can delete this patient")
    before_data = snapshot_model(patient)
    # The ownership filter is repeated on the statement itself.
    result = db.execute(
        delete(Patient)
        .where(Patient.id == patient_id, Patient.created_by_user_id == actor.id)
        .execution_options(synchronize_session="fetch")
    )
    if result.rowcount == 0:
        db.rollback()
        raise NotFoundError("Patient not found or not deletable")
    log_change(
        db,
        actor=actor,
        action=AuditAction.delete,
        table_name="patients",
        row_id=patient_id,
        before_data=before_data,
        request_id=request_id,
    )
    db.commit()
    logger.info("Patient %s deleted by user %s", patient_id, actor.id)
