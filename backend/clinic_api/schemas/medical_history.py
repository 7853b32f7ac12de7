from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict

from clinic_api.schemas.common import CamelModel


class ProblemsIn(CamelModel):
    artificial_valves_pacemaker: Optional[bool] = None
    asthma: Optional[bool] = None
    allergy: Optional[bool] = None
    bleeding_tendency: Optional[bool] = None
    epilepsy_seizure: Optional[bool] = None
    heart_disease: Optional[bool] = None
    hyp_hypertension: Optional[bool] = None
    hormone_disorder: Optional[bool] = None
    jaundice_liver: Optional[bool] = None
    stomach_ulcer: Optional[bool] = None
    low_high_pressure: Optional[bool] = None
    arthritis_joint: Optional[bool] = None
    kidney_problems: Optional[bool] = None
    thyroid_problems: Optional[bool] = None
    other_problem: Optional[bool] = None
    other_problem_text: Optional[str] = None


class MedicalHistoryIn(ProblemsIn):
    """Medical history body.

    Tri-state answers take booleans or yes/no style strings. Problem flags may
    be nested under ``problems`` or, as the registration form sends them,
    given at the top level.
    """

    surgery_or_hospitalized: Any = None
    surgery_details: Optional[str] = None
    fever_cold_cough: Any = None
    fever_details: Optional[str] = None
    abnormal_bleeding_history: Any = None
    abnormal_bleeding_details: Optional[str] = None
    taking_medicine: Any = None
    medicine_details: Optional[str] = None
    medication_allergy: Any = None
    medication_allergy_details: Optional[str] = None
    past_dental_history: Optional[str] = None
    problems: Optional[ProblemsIn] = None


class MedicalHistoryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    patient_id: int
    surgery_or_hospitalized: str
    surgery_details: Optional[str] = None
    fever_cold_cough: str
    fever_details: Optional[str] = None
    abnormal_bleeding_history: str
    abnormal_bleeding_details: Optional[str] = None
    taking_medicine: str
    medicine_details: Optional[str] = None
    medication_allergy: str
    medication_allergy_details: Optional[str] = None
    past_dental_history: Optional[str] = None
    artificial_valves_pacemaker: bool
    asthma: bool
    allergy: bool
    bleeding_tendency: bool
    epilepsy_seizure: bool
    heart_disease: bool
    hyp_hypertension: bool
    hormone_disorder: bool
    jaundice_liver: bool
    stomach_ulcer: bool
    low_high_pressure: bool
    arthritis_joint: bool
    kidney_problems: bool
    thyroid_problems: bool
    other_problem: bool
    other_problem_text: Optional[str] = None
    created_by_user_id: int
    created_at: datetime
    updated_at: datetime
