from datetime import date

import pytest

from clinic_api.core.errors import ValidationError
from clinic_api.models.appointment import AppointmentStatus
from clinic_api.services.scheduling import (
    as_hhmm,
    build_patch,
    current_month_bounds,
    promote_reschedule,
    require_reschedule_fields,
)


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("9:5", "09:05"),
        ("9:0", "09:00"),
        ("09:30", "09:30"),
        ("25:99", "23:59"),
        ("bogus", "bogus"),
        ("9.30", "9.30"),
        ("", ""),
        (None, None),
    ],
)
def test_as_hhmm(raw, expected):
    assert as_hhmm(raw) == expected


def test_current_month_bounds_handles_short_months():
    assert current_month_bounds(date(2024, 2, 10)) == (date(2024, 2, 1), date(2024, 2, 29))
    assert current_month_bounds(date(2025, 12, 31)) == (date(2025, 12, 1), date(2025, 12, 31))


def test_rescheduled_needs_both_fields():
    with pytest.raises(ValidationError, match="rescheduled_date is required"):
        require_reschedule_fields(AppointmentStatus.rescheduled, None, "10:00")
    with pytest.raises(ValidationError, match="rescheduled_time is required"):
        require_reschedule_fields(AppointmentStatus.rescheduled, date(2025, 3, 5), "")
    require_reschedule_fields(AppointmentStatus.pending, None, None)


def test_build_patch_ignores_blank_required_text_and_normalizes_times():
    patch = build_patch(
        {
            "patient_name": "   ",
            "phone": " 98765 ",
            "time_slot": "7:5",
            "rescheduled_time": "",
            "notes": None,
        }
    )
    assert patch == {"phone": "98765", "time_slot": "07:05", "rescheduled_time": None, "notes": None}


def test_build_patch_of_empty_body_is_empty():
    assert build_patch({}) == {}


def test_promotion_copies_reschedule_slot_into_canonical_fields():
    current = {
        "date": date(2025, 3, 1),
        "time_slot": "09:00",
        "status": AppointmentStatus.pending,
        "rescheduled_date": None,
        "rescheduled_time": None,
    }
    patch = {
        "status": AppointmentStatus.rescheduled,
        "rescheduled_date": date(2025, 3, 5),
        "rescheduled_time": "14:30",
    }
    promoted = promote_reschedule(patch, current)
    assert promoted["date"] == date(2025, 3, 5)
    assert promoted["time_slot"] == "14:30"
    assert promoted["rescheduled_date"] == date(2025, 3, 5)


def test_promotion_keeps_explicit_date_in_patch():
    current = {"date": date(2025, 3, 1), "time_slot": "09:00", "rescheduled_date": None, "rescheduled_time": None}
    patch = {"rescheduled_date": date(2025, 3, 5), "date": date(2025, 3, 9)}
    promoted = promote_reschedule(patch, current)
    assert promoted["date"] == date(2025, 3, 9)
    assert "time_slot" not in promoted


def test_setting_status_alone_promotes_existing_reschedule_fields():
    current = {
        "date": date(2025, 3, 1),
        "time_slot": "09:00",
        "status": AppointmentStatus.pending,
        "rescheduled_date": date(2025, 4, 2),
        "rescheduled_time": "8:15",
    }
    promoted = promote_reschedule({"status": AppointmentStatus.rescheduled}, current)
    assert promoted["date"] == date(2025, 4, 2)
    assert promoted["time_slot"] == "08:15"
