from __future__ import annotations

import enum
import datetime as dt

from sqlalchemy import CheckConstraint, Date, Enum, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from clinic_api.models.base import AuditMixin, Base


class AppointmentStatus(str, enum.Enum):
    pending = "Pending"
    confirmed = "Confirmed"
    cancelled = "Cancelled"
    completed = "Completed"
    no_show = "No Show"
    rescheduled = "Rescheduled"


class Appointment(Base, AuditMixin):
    __tablename__ = "appointments"
    # Mirrors require_reschedule_fields in services.scheduling; keep both.
    __table_args__ = (
        CheckConstraint(
            "status <> 'Rescheduled' OR "
            "(rescheduled_date IS NOT NULL AND rescheduled_time IS NOT NULL)",
            name="ck_appointments_rescheduled_fields",
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    patient_id: Mapped[int | None] = mapped_column(
        ForeignKey("patients.id", ondelete="SET NULL"), nullable=True
    )
    patient_name: Mapped[str] = mapped_column(String(200), nullable=False)
    phone: Mapped[str] = mapped_column(String(50), nullable=False)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False, index=True)
    time_slot: Mapped[str] = mapped_column(Text, nullable=False)
    service_type: Mapped[str] = mapped_column(String(120), default="Checkup", nullable=False)
    status: Mapped[AppointmentStatus] = mapped_column(
        Enum(
            AppointmentStatus,
            name="appointment_status",
            values_callable=lambda enum_cls: [member.value for member in enum_cls],
        ),
        default=AppointmentStatus.pending,
        nullable=False,
    )
    rescheduled_date: Mapped[dt.date | None] = mapped_column(Date, nullable=True)
    rescheduled_time: Mapped[str | None] = mapped_column(Text, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
