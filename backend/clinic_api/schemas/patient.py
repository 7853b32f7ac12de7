from datetime import date, datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict

from clinic_api.schemas.common import CamelModel
from clinic_api.schemas.medical_history import MedicalHistoryIn
from clinic_api.schemas.visit import InitialVisitIn


class PatientFields(CamelModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    dob: Optional[str] = None
    gender: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    address_line1: Optional[str] = None
    address_line2: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    pincode: Optional[str] = None
    occupation: Optional[str] = None
    emergency_contact: Optional[str] = None
    photo_url: Optional[str] = None
    photo: Any = None


class PatientCreate(PatientFields):
    """Registration body: profile plus the initial medical history and visit."""

    patient_profile: Optional[PatientFields] = None
    medical_history: Optional[MedicalHistoryIn] = None
    initial_visit: Optional[InitialVisitIn] = None
    dental_exam: Optional[InitialVisitIn] = None
    procedures: Any = None
    rows: Optional[list[dict[str, Any]]] = None


class PatientUpdate(PatientFields):
    prev_image_kit_file_id: Optional[str] = None
    delete_prev_image_kit_file_id: Optional[str] = None


class PatientPhotoUpdate(CamelModel):
    photo_url: Optional[str] = None
    prev_image_kit_file_id: Optional[str] = None
    delete_prev_image_kit_file_id: Optional[str] = None


class PatientOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    first_name: str
    last_name: str
    dob: Optional[date] = None
    gender: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    address_line1: Optional[str] = None
    address_line2: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    pincode: Optional[str] = None
    occupation: Optional[str] = None
    emergency_contact: Optional[str] = None
    photo_url: Optional[str] = None
    created_by_user_id: int
    created_at: datetime
    updated_at: datetime


class PatientMetaOut(CamelModel):
    has_medical_history: bool
    last_visit_at: Optional[datetime] = None


class PatientDetailOut(BaseModel):
    patient: PatientOut
    meta: PatientMetaOut
