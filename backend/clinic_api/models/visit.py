from __future__ import annotations

import math
from datetime import datetime
from typing import Any

from sqlalchemy import DateTime, ForeignKey, Integer, JSON, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from clinic_api.models.base import AuditMixin, Base


def as_amount(value: Any) -> int | float:
    """Coerce a money value to a finite number; anything else becomes 0."""
    if isinstance(value, bool) or value is None:
        return 0
    if isinstance(value, str):
        value = value.replace(",", "").strip()
        if not value:
            return 0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0
    if not math.isfinite(number):
        return 0
    return int(number) if number.is_integer() else number


def with_due(procedure: dict) -> dict:
    total = as_amount(procedure.get("total"))
    paid = as_amount(procedure.get("paid"))
    due = total - paid
    return {**procedure, "total": total, "paid": paid, "due": due if due > 0 else 0}


class Visit(Base, AuditMixin):
    __tablename__ = "visits"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    patient_id: Mapped[int] = mapped_column(
        ForeignKey("patients.id", ondelete="CASCADE"), nullable=False, index=True
    )
    chief_complaint: Mapped[str | None] = mapped_column(Text, nullable=True)
    duration_onset: Mapped[str | None] = mapped_column(Text, nullable=True)
    trigger_factors: Mapped[list] = mapped_column(JSON, default=list, nullable=False)
    diagnosis_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    treatment_plan_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    findings: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    procedures: Mapped[list] = mapped_column(JSON, default=list, nullable=False)
    visit_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False, index=True
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    patient = relationship("Patient", back_populates="visits", lazy="joined")

    __mapper_args__ = {"version_id_col": version}

    @validates("procedures")
    def _normalize_procedures(self, _key, procedures):
        # "due" is derived here on every write; a client-supplied value never survives.
        if not procedures:
            return []
        return [with_due(item) for item in procedures if isinstance(item, dict)]
