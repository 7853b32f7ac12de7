from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict

from clinic_api.schemas.common import CamelModel


class ProcedureIn(CamelModel):
    """One procedure line. Dates and amounts are coerced by the service, not here."""

    procedure: Any = None
    notes: Any = None
    visit_date: Any = None
    next_appt_date: Any = None
    total: Any = None
    paid: Any = None


class VisitIn(CamelModel):
    chief_complaint: Optional[str] = None
    duration_onset: Optional[str] = None
    trigger_factors: Optional[list[str]] = None
    diagnosis_notes: Optional[str] = None
    treatment_plan_notes: Optional[str] = None
    findings: Optional[dict[str, Any]] = None
    procedures: Optional[list[dict[str, Any]]] = None
    visit_at: Optional[datetime] = None


class InitialVisitIn(CamelModel):
    """Visit captured during patient registration.

    Findings arrive either as a ``findings`` object or as four 16-slot grids;
    procedures either as a list or as ``rows`` from the tracking form.
    """

    chief_complaint: Optional[str] = None
    duration_onset: Optional[str] = None
    trigger_factors: Any = None
    diagnosis_notes: Optional[str] = None
    treatment_plan_notes: Optional[str] = None
    findings: Optional[dict[str, Any]] = None
    upper_grades: Optional[list[Any]] = None
    lower_grades: Optional[list[Any]] = None
    upper_status: Optional[list[Any]] = None
    lower_status: Optional[list[Any]] = None
    procedures: Any = None
    rows: Optional[list[dict[str, Any]]] = None
    visit_at: Optional[datetime] = None


class VisitOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    patient_id: int
    chief_complaint: Optional[str] = None
    duration_onset: Optional[str] = None
    trigger_factors: list[str] = []
    diagnosis_notes: Optional[str] = None
    treatment_plan_notes: Optional[str] = None
    findings: Optional[dict[str, Any]] = None
    procedures: list[dict[str, Any]] = []
    visit_at: datetime
    version: int
    created_by_user_id: int
    created_at: datetime
    updated_at: datetime


class NextApptOut(CamelModel):
    patient_name: str
    date: str
    chief_complaint: Optional[str] = None
    visit_id: int
    patient_id: int


class NextApptRow(NextApptOut):
    procedure: Optional[str] = None
