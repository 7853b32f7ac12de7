from datetime import date

import pytest
from sqlalchemy import Text, text
from sqlalchemy.exc import IntegrityError

from clinic_api.core.errors import NotFoundError
from clinic_api.models.appointment import Appointment, AppointmentStatus
from clinic_api.schemas.appointment import AppointmentCreate
from clinic_api.services.scheduling import create_appointment, update_appointment


def _book(db, actor, **overrides):
    payload = AppointmentCreate(
        **{
            "patient_name": "Jane Doe",
            "phone": "9876543210",
            "date": date(2025, 3, 1),
            "time_slot": "09:00",
            **overrides,
        }
    )
    return create_appointment(db, actor=actor, payload=payload)


def test_update_of_row_deleted_meanwhile_is_not_found(db_session, dentist):
    appt = _book(db_session, dentist)
    appt_id = appt.id
    assert appt.time_slot == "09:00"

    db_session.execute(text("DELETE FROM appointments WHERE id = :id"), {"id": appt_id})

    with pytest.raises(NotFoundError, match="Appointment not found"):
        update_appointment(
            db_session,
            actor=dentist,
            appointment_id=appt_id,
            changes={"notes": "moved"},
        )


def test_store_rejects_rescheduled_row_without_new_slot(db_session, dentist):
    db_session.add(
        Appointment(
            patient_name="Jane Doe",
            phone="9876543210",
            date=date(2025, 3, 1),
            time_slot="09:00",
            status=AppointmentStatus.rescheduled,
            rescheduled_date=date(2025, 3, 5),
            rescheduled_time=None,
            created_by_user_id=dentist.id,
        )
    )
    with pytest.raises(IntegrityError):
        db_session.commit()
    db_session.rollback()


def test_unparsed_slots_are_stored_whole(db_session, dentist):
    slot = "after lunch, call reception first"
    appt = _book(db_session, dentist, time_slot=slot)
    assert appt.time_slot == slot
    assert isinstance(Appointment.__table__.c.time_slot.type, Text)
    assert isinstance(Appointment.__table__.c.rescheduled_time.type, Text)
