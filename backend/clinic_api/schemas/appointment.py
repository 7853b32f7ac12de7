import datetime as dt
from typing import Optional

from pydantic import BaseModel, ConfigDict

from clinic_api.models.appointment import AppointmentStatus


class AppointmentCreate(BaseModel):
    patient_id: Optional[int] = None
    patient_name: Optional[str] = None
    phone: Optional[str] = None
    date: Optional[dt.date] = None
    time_slot: Optional[str] = None
    service_type: Optional[str] = None
    status: Optional[AppointmentStatus] = None
    rescheduled_date: Optional[dt.date] = None
    rescheduled_time: Optional[str] = None
    notes: Optional[str] = None


class AppointmentUpdate(BaseModel):
    """Sparse patch: only keys present in the request body are applied."""

    patient_id: Optional[int] = None
    patient_name: Optional[str] = None
    phone: Optional[str] = None
    date: Optional[dt.date] = None
    time_slot: Optional[str] = None
    service_type: Optional[str] = None
    status: Optional[AppointmentStatus] = None
    rescheduled_date: Optional[dt.date] = None
    rescheduled_time: Optional[str] = None
    notes: Optional[str] = None


class AppointmentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    patient_id: Optional[int] = None
    patient_name: str
    phone: str
    date: dt.date
    time_slot: str
    service_type: str
    status: AppointmentStatus
    rescheduled_date: Optional[dt.date] = None
    rescheduled_time: Optional[str] = None
    notes: Optional[str] = None
    created_by_user_id: int
    created_at: dt.datetime
    updated_at: dt.datetime
