from __future__ import annotations

from sqlalchemy import Boolean, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from clinic_api.models.base import AuditMixin, Base

TRI_STATE_FIELDS = (
    "surgery_or_hospitalized",
    "fever_cold_cough",
    "abnormal_bleeding_history",
    "taking_medicine",
    "medication_allergy",
)

PROBLEM_FLAGS = (
    "artificial_valves_pacemaker",
    "asthma",
    "allergy",
    "bleeding_tendency",
    "epilepsy_seizure",
    "heart_disease",
    "hyp_hypertension",
    "hormone_disorder",
    "jaundice_liver",
    "stomach_ulcer",
    "low_high_pressure",
    "arthritis_joint",
    "kidney_problems",
    "thyroid_problems",
)


class MedicalHistory(Base, AuditMixin):
    __tablename__ = "medical_histories"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    patient_id: Mapped[int] = mapped_column(
        ForeignKey("patients.id", ondelete="CASCADE"), unique=True, nullable=False
    )

    # "Yes" / "No" / "" (unset)
    surgery_or_hospitalized: Mapped[str] = mapped_column(String(3), default="", nullable=False)
    surgery_details: Mapped[str | None] = mapped_column(Text, nullable=True)
    fever_cold_cough: Mapped[str] = mapped_column(String(3), default="", nullable=False)
    fever_details: Mapped[str | None] = mapped_column(Text, nullable=True)
    abnormal_bleeding_history: Mapped[str] = mapped_column(String(3), default="", nullable=False)
    abnormal_bleeding_details: Mapped[str | None] = mapped_column(Text, nullable=True)
    taking_medicine: Mapped[str] = mapped_column(String(3), default="", nullable=False)
    medicine_details: Mapped[str | None] = mapped_column(Text, nullable=True)
    medication_allergy: Mapped[str] = mapped_column(String(3), default="", nullable=False)
    medication_allergy_details: Mapped[str | None] = mapped_column(Text, nullable=True)
    past_dental_history: Mapped[str | None] = mapped_column(Text, nullable=True)

    artificial_valves_pacemaker: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    asthma: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    allergy: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    bleeding_tendency: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    epilepsy_seizure: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    heart_disease: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    hyp_hypertension: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    hormone_disorder: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    jaundice_liver: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    stomach_ulcer: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    low_high_pressure: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    arthritis_joint: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    kidney_problems: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    thyroid_problems: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    other_problem: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    other_problem_text: Mapped[str | None] = mapped_column(Text, nullable=True)

    patient = relationship("Patient", back_populates="medical_history")
