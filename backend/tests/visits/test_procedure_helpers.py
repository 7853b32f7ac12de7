from datetime import date, datetime, timedelta, timezone
from types import SimpleNamespace

import pytest

from clinic_api.core.errors import ConflictError, ProcedureIndexError, ValidationError
from clinic_api.models.visit import as_amount, with_due
from clinic_api.services.procedures import (
    check_version,
    coerce_lines,
    findings_from_grids,
    parse_index,
    procedure_rows,
    sanitize_procedure,
    to_date_only,
)
from clinic_api.services.visits import upcoming_rows


@pytest.mark.parametrize(
    "value, expected",
    [
        ("2025-03-05", "2025-03-05"),
        ("2025-03-05T22:00:00Z", "2025-03-05"),
        ("2025-03-05T23:30:00-05:00", "2025-03-06"),
        (date(2024, 2, 29), "2024-02-29"),
        (datetime(2024, 1, 1, 1, 0, tzinfo=timezone(timedelta(hours=5, minutes=30))), "2023-12-31"),
        ("not a date", None),
        ("", None),
        (None, None),
    ],
)
def test_to_date_only(value, expected):
    assert to_date_only(value) == expected


@pytest.mark.parametrize(
    "value, expected",
    [
        ("1,500", 1500),
        ("12.5", 12.5),
        ("", 0),
        ("nan", 0),
        ("inf", 0),
        ("abc", 0),
        (None, 0),
        (True, 0),
        (300, 300),
    ],
)
def test_as_amount(value, expected):
    assert as_amount(value) == expected


def test_with_due_clamps_at_zero():
    assert with_due({"total": 100, "paid": 40})["due"] == 60
    assert with_due({"total": 100, "paid": 400})["due"] == 0
    assert with_due({"total": "bad", "paid": None, "due": 99})["due"] == 0


def test_sanitize_fills_every_field():
    line = sanitize_procedure({"procedure": "  Filling ", "next_appt_date": "2025-06-01T08:00:00Z"})
    assert line == {
        "procedure": "Filling",
        "notes": "",
        "visitDate": None,
        "visit_date": None,
        "nextApptDate": "2025-06-01",
        "next_appt_date": "2025-06-01",
        "total": 0,
        "paid": 0,
    }


def test_partial_sanitize_only_touches_given_keys():
    assert sanitize_procedure({"paid": "250"}, partial=True) == {"paid": 250}
    assert sanitize_procedure({"visit_date": None}, partial=True) == {"visitDate": None, "visit_date": None}


def test_coerce_lines_keeps_ids_and_drops_non_objects():
    lines = coerce_lines([{"id": "keep-me", "procedure": "X"}, "junk", {"procedure": "Y", "visitDate": "2025-01-02"}])
    assert [line["procedure"] for line in lines] == ["X", "Y"]
    assert lines[0]["id"] == "keep-me"
    assert lines[1]["id"] and lines[1]["id"] != "keep-me"
    assert lines[1]["visit_date"] == "2025-01-02"
    assert coerce_lines(None) == []


def test_procedure_rows_skips_blank_rows():
    rows = procedure_rows([{"procedure": "", "total": ""}, {"procedure": "RCT", "total": "3,000"}])
    assert len(rows) == 1
    assert rows[0]["procedure"] == "RCT"
    assert rows[0]["total"] == 3000
    assert procedure_rows([{"notes": "only notes"}]) is None
    assert procedure_rows([]) is None


def test_findings_from_grids_pads_to_sixteen_teeth():
    findings = findings_from_grids(["G1", "G2"], None, ["Caries"], [])
    assert len(findings["upper"]) == 16
    assert len(findings["lower"]) == 16
    assert findings["upper"][0] == {"tooth": 8, "grade": "G1", "status": "Caries"}
    assert findings["upper"][1] == {"tooth": 7, "grade": "G2", "status": ""}
    assert findings["upper"][8]["tooth"] == 1
    assert findings["lower"][15] == {"tooth": 8, "grade": "", "status": ""}


def test_parse_index():
    assert parse_index("0") == 0
    assert parse_index(4) == 4
    for bad in ("-1", "x", "1.5", None):
        with pytest.raises(ProcedureIndexError) as exc:
            parse_index(bad)
        assert exc.value.status_code == 400


def test_check_version():
    visit = SimpleNamespace(version=3)
    check_version(visit, None)
    check_version(visit, "  ")
    check_version(visit, "3")
    check_version(visit, 'W/"3"')
    with pytest.raises(ConflictError):
        check_version(visit, '"2"')
    with pytest.raises(ValidationError):
        check_version(visit, "v3")


def test_upcoming_rows_skip_past_and_undated_lines():
    visit = SimpleNamespace(
        id=7,
        patient_id=2,
        chief_complaint="Checkup",
        patient=None,
        procedures=[
            {"procedure": "past", "nextApptDate": "2025-01-01"},
            {"procedure": "undated", "nextApptDate": None},
            {"procedure": "today", "next_appt_date": "2025-01-10"},
            {"procedure": "later", "nextApptDate": "2025-02-01"},
        ],
    )
    rows = upcoming_rows(visit, today=date(2025, 1, 10))
    assert [row["procedure"] for row in rows] == ["today", "later"]
    assert rows[0]["patient_name"] == "Unknown Patient"
