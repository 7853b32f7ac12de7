from datetime import date


def _create(api_client, headers, **overrides):
    payload = {
        "patient_name": "Jane Doe",
        "phone": "9876543210",
        "date": "2025-03-01",
        "time_slot": "9:0",
        "status": "Pending",
        **overrides,
    }
    return api_client.post("/api/appointments", json=payload, headers=headers)


def test_requires_bearer_token(api_client):
    res = api_client.get("/api/appointments")
    assert res.status_code == 401
    assert res.json() == {"error": "Missing token"}


def test_create_normalizes_time_slot(api_client, auth_headers):
    res = _create(api_client, auth_headers)
    assert res.status_code == 201, res.text
    body = res.json()
    assert body["time_slot"] == "09:00"
    assert body["status"] == "Pending"
    assert body["service_type"] == "Checkup"
    assert body["date"] == "2025-03-01"


def test_create_requires_core_fields(api_client, auth_headers):
    res = _create(api_client, auth_headers, patient_name="  ")
    assert res.status_code == 400
    assert res.json() == {"error": "patient_name is required"}

    res = _create(api_client, auth_headers, time_slot="")
    assert res.status_code == 400
    assert res.json() == {"error": "time_slot is required"}


def test_create_rejects_unknown_status(api_client, auth_headers):
    res = _create(api_client, auth_headers, status="Maybe")
    assert res.status_code == 400
    assert "error" in res.json()


def test_create_rescheduled_promotes_slot(api_client, auth_headers):
    res = _create(
        api_client,
        auth_headers,
        status="Rescheduled",
        rescheduled_date="2025-03-07",
        rescheduled_time="4:30",
    )
    assert res.status_code == 201, res.text
    body = res.json()
    assert body["date"] == "2025-03-07"
    assert body["time_slot"] == "04:30"
    assert body["rescheduled_date"] == "2025-03-07"
    assert body["rescheduled_time"] == "04:30"


def test_create_rescheduled_without_fields_fails(api_client, auth_headers):
    res = _create(api_client, auth_headers, status="Rescheduled", rescheduled_date="2025-03-07")
    assert res.status_code == 400
    assert res.json() == {"error": "rescheduled_time is required when status = Rescheduled"}


def test_reschedule_update_promotes_and_keeps_history(api_client, auth_headers):
    appt_id = _create(api_client, auth_headers).json()["id"]

    res = api_client.patch(
        f"/api/appointments/{appt_id}",
        json={"status": "Rescheduled", "rescheduled_date": "2025-03-05", "rescheduled_time": "14:30"},
        headers=auth_headers,
    )
    assert res.status_code == 200, res.text
    body = res.json()
    assert body["date"] == "2025-03-05"
    assert body["time_slot"] == "14:30"
    assert body["status"] == "Rescheduled"
    assert body["rescheduled_date"] == "2025-03-05"
    assert body["rescheduled_time"] == "14:30"


def test_status_only_reschedule_is_rejected_without_changes(api_client, auth_headers):
    appt_id = _create(api_client, auth_headers).json()["id"]

    res = api_client.patch(
        f"/api/appointments/{appt_id}", json={"status": "Rescheduled"}, headers=auth_headers
    )
    assert res.status_code == 400
    assert res.json() == {"error": "rescheduled_date is required when status = Rescheduled"}

    unchanged = api_client.get(f"/api/appointments/{appt_id}", headers=auth_headers).json()
    assert unchanged["status"] == "Pending"
    assert unchanged["date"] == "2025-03-01"
    assert unchanged["time_slot"] == "09:00"


def test_empty_patch_fails_fast(api_client, auth_headers):
    res = api_client.patch("/api/appointments/999", json={}, headers=auth_headers)
    assert res.status_code == 400
    assert res.json() == {"error": "No fields to update"}


def test_update_missing_appointment(api_client, auth_headers):
    res = api_client.patch("/api/appointments/999", json={"notes": "x"}, headers=auth_headers)
    assert res.status_code == 404
    assert res.json() == {"error": "Appointment not found"}


def test_list_filters_and_orders(api_client, auth_headers):
    _create(api_client, auth_headers, time_slot="11:00")
    _create(api_client, auth_headers, time_slot="8:30")
    _create(api_client, auth_headers, date="2025-03-20", time_slot="10:00")
    _create(api_client, auth_headers, date="2025-04-02", time_slot="10:00")

    day = api_client.get("/api/appointments", params={"date": "2025-03-01"}, headers=auth_headers)
    assert day.status_code == 200
    assert [row["time_slot"] for row in day.json()] == ["08:30", "11:00"]

    span = api_client.get(
        "/api/appointments", params={"from": "2025-03-01", "to": "2025-03-31"}, headers=auth_headers
    )
    assert len(span.json()) == 3

    page = api_client.get(
        "/api/appointments",
        params={"from": "2025-03-01", "to": "2025-04-30", "limit": 2, "offset": 2},
        headers=auth_headers,
    )
    assert [row["date"] for row in page.json()] == ["2025-03-20", "2025-04-02"]


def test_list_defaults_to_current_month(api_client, auth_headers):
    today = date.today().isoformat()
    _create(api_client, auth_headers, date=today)
    _create(api_client, auth_headers, date="2001-01-01")

    res = api_client.get("/api/appointments", headers=auth_headers)
    assert [row["date"] for row in res.json()] == [today]


def test_only_creator_can_delete(api_client, auth_headers, other_headers):
    appt_id = _create(api_client, auth_headers).json()["id"]

    denied = api_client.delete(f"/api/appointments/{appt_id}", headers=other_headers)
    assert denied.status_code == 403
    assert denied.json() == {"error": "Only the creator can delete this appointment"}

    res = api_client.delete(f"/api/appointments/{appt_id}", headers=auth_headers)
    assert res.status_code == 200
    assert res.json() == {"message": "Appointment deleted successfully"}

    gone = api_client.delete(f"/api/appointments/{appt_id}", headers=auth_headers)
    assert gone.status_code == 404


def test_changes_are_audited(api_client, auth_headers):
    appt_id = _create(api_client, auth_headers).json()["id"]
    api_client.patch(
        f"/api/appointments/{appt_id}",
        json={"notes": "bring x-rays"},
        headers={**auth_headers, "x-request-id": "req-42"},
    )

    res = api_client.get("/api/audit/recent", headers=auth_headers)
    items = [item for item in res.json()["items"] if item["table_name"] == "appointments"]
    assert [item["action"] for item in items] == ["UPDATE", "INSERT"]
    assert items[0]["request_id"] == "req-42"
    assert items[0]["old_data"]["notes"] is None
    assert items[0]["new_data"]["notes"] == "bring x-rays"
