from datetime import date

from fastapi import APIRouter, Depends, Header, Query, status
from sqlalchemy.orm import Session

from clinic_api.db.session import get_db
from clinic_api.deps import get_current_user
from clinic_api.models.user import User
from clinic_api.schemas.appointment import (
    AppointmentCreate,
    AppointmentOut,
    AppointmentUpdate,
)
from clinic_api.schemas.common import MessageOut
from clinic_api.services import scheduling

router = APIRouter(prefix="/appointments", tags=["appointments"])


@router.get("", response_model=list[AppointmentOut])
def list_appointments(
    db: Session = Depends(get_db),
    _user: User = Depends(get_current_user),
    date_filter: date | None = Query(default=None, alias="date"),
    from_date: date | None = Query(default=None, alias="from"),
    to_date: date | None = Query(default=None, alias="to"),
    limit: int | None = Query(default=None, ge=1, le=1000),
    offset: int = Query(default=0, ge=0),
):
    return scheduling.list_appointments(
        db,
        on_date=date_filter,
        date_from=from_date,
        date_to=to_date,
        limit=limit,
        offset=offset,
    )


@router.get("/{appointment_id}", response_model=AppointmentOut)
def get_appointment(
    appointment_id: int,
    db: Session = Depends(get_db),
    _user: User = Depends(get_current_user),
):
    return scheduling.get_appointment(db, appointment_id)


@router.post("", response_model=AppointmentOut, status_code=status.HTTP_201_CREATED)
def create_appointment(
    payload: AppointmentCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    request_id: str | None = Header(default=None, alias="x-request-id"),
):
    return scheduling.create_appointment(db, actor=user, payload=payload, request_id=request_id)


@router.patch("/{appointment_id}", response_model=AppointmentOut)
def update_appointment(
    appointment_id: int,
    payload: AppointmentUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    request_id: str | None = Header(default=None, alias="x-request-id"),
):
    return scheduling.update_appointment(
        db,
        actor=user,
        appointment_id=appointment_id,
        changes=payload.model_dump(exclude_unset=True),
        request_id=request_id,
    )


@router.delete("/{appointment_id}", response_model=MessageOut)
def delete_appointment(
    appointment_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    request_id: str | None = Header(default=None, alias="x-request-id"),
):
    scheduling.delete_appointment(
        db, actor=user, appointment_id=appointment_id, request_id=request_id
    )
    return {"message": "Appointment deleted successfully"}
