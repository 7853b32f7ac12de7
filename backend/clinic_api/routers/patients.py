from fastapi import APIRouter, Depends, Header, Query, status
from sqlalchemy.orm import Session

from clinic_api.db.session import get_db
from clinic_api.deps import get_current_user
from clinic_api.models.user import User
from clinic_api.schemas.common import MessageOut
from clinic_api.schemas.patient import (
    PatientCreate,
    PatientDetailOut,
    PatientOut,
    PatientPhotoUpdate,
    PatientUpdate,
)
from clinic_api.services import patients as patient_service

router = APIRouter(prefix="/patients", tags=["patients"])


@router.get("", response_model=list[PatientOut])
def list_patients(
    db: Session = Depends(get_db),
    _user: User = Depends(get_current_user),
    limit: int = Query(default=100, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
):
    return patient_service.list_patients(db, limit=limit, offset=offset)


@router.post("", response_model=PatientOut, status_code=status.HTTP_201_CREATED)
def create_patient(
    payload: PatientCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    request_id: str | None = Header(default=None, alias="x-request-id"),
):
    return patient_service.create_patient(db, actor=user, payload=payload, request_id=request_id)


@router.get("/{patient_id}", response_model=PatientDetailOut)
def get_patient(
    patient_id: int,
    db: Session = Depends(get_db),
    _user: User = Depends(get_current_user),
):
    return patient_service.patient_detail(db, patient_id)


@router.put("/{patient_id}", response_model=PatientOut)
def update_patient(
    patient_id: int,
    payload: PatientUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    request_id: str | None = Header(default=None, alias="x-request-id"),
):
    return patient_service.update_patient(
        db, actor=user, patient_id=patient_id, payload=payload, request_id=request_id
    )


@router.patch("/{patient_id}/photo", response_model=PatientOut)
def update_patient_photo(
    patient_id: int,
    payload: PatientPhotoUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    request_id: str | None = Header(default=None, alias="x-request-id"),
):
    return patient_service.update_photo(
        db, actor=user, patient_id=patient_id, payload=payload, request_id=request_id
    )


@router.delete("/{patient_id}", response_model=MessageOut)
def delete_patient(
    patient_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    request_id: str | None = Header(default=None, alias="x-request-id"),
):
    patient_service.delete_patient(db, actor=user, patient_id=patient_id, request_id=request_id)
    return {"message": "Patient deleted successfully"}
