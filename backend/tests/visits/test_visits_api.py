from datetime import date, timedelta


def _day(offset: int) -> str:
    return (date.today() + timedelta(days=offset)).isoformat()


def test_visit_crud(api_client, auth_headers, create_patient):
    patient = create_patient()

    created = api_client.post(
        f"/api/visits/{patient['id']}/visits",
        json={
            "chiefComplaint": "Sensitivity",
            "triggerFactors": ["Cold", "Sweet"],
            "visitAt": "2025-02-01T10:00:00Z",
        },
        headers=auth_headers,
    )
    assert created.status_code == 201, created.text
    visit = created.json()
    assert visit["trigger_factors"] == ["Cold", "Sweet"]
    assert visit["procedures"] == []
    assert visit["version"] == 1

    listed = api_client.get(f"/api/visits/{patient['id']}/visits", headers=auth_headers)
    assert listed.status_code == 200
    complaints = [row["chief_complaint"] for row in listed.json()]
    # the registration visit is stamped now, so it sorts ahead of February
    assert complaints == ["Pain in lower left molar", "Sensitivity"]

    patched = api_client.patch(
        f"/api/visits/{visit['id']}",
        json={"diagnosisNotes": "Enamel wear"},
        headers=auth_headers,
    )
    assert patched.status_code == 200, patched.text
    assert patched.json()["diagnosis_notes"] == "Enamel wear"
    assert patched.json()["chief_complaint"] == "Sensitivity"
    assert patched.json()["version"] == 2

    deleted = api_client.delete(f"/api/visits/{visit['id']}", headers=auth_headers)
    assert deleted.status_code == 204
    assert api_client.get(f"/api/visits/{visit['id']}", headers=auth_headers).status_code == 404


def test_patch_without_fields(api_client, auth_headers, create_patient):
    patient = create_patient()
    visit_id = api_client.get(f"/api/visits/{patient['id']}/visits", headers=auth_headers).json()[0]["id"]

    res = api_client.patch(f"/api/visits/{visit_id}", json={"unknown": 1}, headers=auth_headers)
    assert res.status_code == 400
    assert res.json() == {"error": "No valid fields to update"}


def test_visits_for_unknown_patient(api_client, auth_headers):
    res = api_client.post("/api/visits/404/visits", json={"chiefComplaint": "x"}, headers=auth_headers)
    assert res.status_code == 404
    assert res.json() == {"error": "Patient not found"}


def test_next_appointment_views(api_client, auth_headers, create_patient):
    patient = create_patient()
    visit = api_client.post(
        f"/api/visits/{patient['id']}/visits",
        json={
            "chiefComplaint": "Root canal",
            "procedures": [
                {"procedure": "Old", "nextApptDate": _day(-3)},
                {"procedure": "Later", "nextApptDate": _day(10)},
                {"procedure": "Soon", "next_appt_date": _day(2)},
            ],
        },
        headers=auth_headers,
    ).json()

    nxt = api_client.get(f"/api/visits/{visit['id']}/next-appt", headers=auth_headers)
    assert nxt.status_code == 200, nxt.text
    assert nxt.json() == {
        "patientName": "Asha Kumar",
        "date": _day(2),
        "chiefComplaint": "Root canal",
        "visitId": visit["id"],
        "patientId": patient["id"],
    }

    upcoming = api_client.get(f"/api/visits/{visit['id']}/next-appts", headers=auth_headers)
    assert [row["procedure"] for row in upcoming.json()] == ["Soon", "Later"]

    overall = api_client.get("/api/visits/appointments/next", params={"limit": 1}, headers=auth_headers)
    assert overall.status_code == 200
    assert [row["date"] for row in overall.json()] == [_day(2)]


def test_no_upcoming_appointment(api_client, auth_headers, create_patient):
    patient = create_patient()
    visit_id = api_client.get(f"/api/visits/{patient['id']}/visits", headers=auth_headers).json()[0]["id"]

    res = api_client.get(f"/api/visits/{visit_id}/next-appt", headers=auth_headers)
    assert res.status_code == 404
    assert res.json() == {"error": "No upcoming appointment found"}

    overall = api_client.get("/api/visits/appointments/next", headers=auth_headers)
    assert overall.status_code == 404
