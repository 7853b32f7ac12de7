from __future__ import annotations

from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from clinic_api.core.errors import NotFoundError
from clinic_api.models.audit_log import AuditAction
from clinic_api.models.medical_history import PROBLEM_FLAGS, TRI_STATE_FIELDS, MedicalHistory
from clinic_api.models.patient import Patient
from clinic_api.models.user import User
from clinic_api.schemas.medical_history import MedicalHistoryIn
from clinic_api.services.audit import log_change, snapshot_model

DETAIL_FIELDS = (
    "surgery_details",
    "fever_details",
    "abnormal_bleeding_details",
    "medicine_details",
    "medication_allergy_details",
    "past_dental_history",
)

_YES = {"yes", "y", "true", "1"}
_NO = {"no", "n", "false", "0"}


def yes_no(value: Any) -> str:
    """Tri-state answer: ``"Yes"``, ``"No"`` or ``""`` when unknown."""
    if value is None or value == "":
        return ""
    if isinstance(value, bool):
        return "Yes" if value else "No"
    text = str(value).strip().lower()
    if text in _YES:
        return "Yes"
    if text in _NO:
        return "No"
    return ""


def history_values(payload: MedicalHistoryIn, *, complete: bool = False) -> dict[str, Any]:
    """Map a body onto columns.

    With ``complete`` every column gets a value (first save from the
    registration form); otherwise only what the body mentions. A ``problems``
    object always sets all fourteen flags, missing ones meaning ``False``.
    """
    given = payload.model_dump(exclude_unset=True)
    values: dict[str, Any] = {}
    for field in TRI_STATE_FIELDS:
        if complete or field in given:
            values[field] = yes_no(given.get(field))
    for field in DETAIL_FIELDS:
        if complete or field in given:
            values[field] = given.get(field)

    problems = given.get("problems")
    flags_source = problems if problems is not None else given
    for field in PROBLEM_FLAGS + ("other_problem",):
        if complete or problems is not None or field in given:
            values[field] = bool(flags_source.get(field))
    if complete or problems is not None or "other_problem_text" in given:
        values["other_problem_text"] = flags_source.get("other_problem_text")
    if "other_problem" in values and not values["other_problem"]:
        values["other_problem_text"] = None
    return values


def get_history(db: Session, patient_id: int) -> MedicalHistory:
    history = db.scalar(select(MedicalHistory).where(MedicalHistory.patient_id == patient_id))
    if not history:
        raise NotFoundError("Medical history not found")
    return history


def upsert_history(
    db: Session,
    *,
    actor: User,
    patient_id: int,
    payload: MedicalHistoryIn,
    request_id: str | None = None,
) -> MedicalHistory:
    if not db.get(Patient, patient_id):
        raise NotFoundError("Patient not found")
    history = db.scalar(select(MedicalHistory).where(MedicalHistory.patient_id == patient_id))
    if history is None:
        history = MedicalHistory(
            patient_id=patient_id,
            created_by_user_id=actor.id,
            updated_by_user_id=actor.id,
            **history_values(payload, complete=True),
        )
        db.add(history)
        db.flush()
        log_change(
            db,
            actor=actor,
            action=AuditAction.insert,
            table_name="medical_histories",
            row_id=history.id,
            after_obj=history,
            request_id=request_id,
        )
    else:
        before_data = snapshot_model(history)
        for key, value in history_values(payload).items():
            setattr(history, key, value)
        history.updated_by_user_id = actor.id
        db.flush()
        log_change(
            db,
            actor=actor,
            action=AuditAction.update,
            table_name="medical_histories",
            row_id=history.id,
            before_data=before_data,
            after_obj=history,
            request_id=request_id,
        )
    db.commit()
    db.refresh(history)
    return history
