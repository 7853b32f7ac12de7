from fastapi import APIRouter, Depends, Header
from sqlalchemy.orm import Session

from clinic_api.db.session import get_db
from clinic_api.deps import get_current_user
from clinic_api.models.user import User
from clinic_api.schemas.medical_history import MedicalHistoryIn, MedicalHistoryOut
from clinic_api.services import medical_history as history_service

router = APIRouter(prefix="/medicalhistory", tags=["medical-history"])


@router.get("/{patient_id}/medical-history", response_model=MedicalHistoryOut)
def get_medical_history(
    patient_id: int,
    db: Session = Depends(get_db),
    _user: User = Depends(get_current_user),
):
    return history_service.get_history(db, patient_id)


@router.put("/{patient_id}/medical-history", response_model=MedicalHistoryOut)
def save_medical_history(
    patient_id: int,
    payload: MedicalHistoryIn,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    request_id: str | None = Header(default=None, alias="x-request-id"),
):
    return history_service.upsert_history(
        db, actor=user, patient_id=patient_id, payload=payload, request_id=request_id
    )
