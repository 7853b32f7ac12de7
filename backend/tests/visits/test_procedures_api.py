import pytest


@pytest.fixture
def visit(api_client, auth_headers, create_patient):
    patient = create_patient()
    res = api_client.post(
        f"/api/visits/{patient['id']}/visits",
        json={
            "chiefComplaint": "Bleeding gums",
            "procedures": [
                {"procedure": "A", "total": 100},
                {"procedure": "B", "total": 200},
                {"procedure": "C", "total": 300},
            ],
        },
        headers=auth_headers,
    )
    assert res.status_code == 201, res.text
    return res.json()


def _names(visit):
    return [item["procedure"] for item in visit["procedures"]]


def test_delete_then_update_by_index_hits_the_shifted_element(api_client, auth_headers, visit):
    res = api_client.delete(f"/api/visits/{visit['id']}/procedures/1", headers=auth_headers)
    assert res.status_code == 200, res.text
    assert _names(res.json()) == ["A", "C"]

    res = api_client.patch(
        f"/api/visits/{visit['id']}/procedures/1",
        json={"notes": "edited"},
        headers=auth_headers,
    )
    assert res.status_code == 200, res.text
    updated = res.json()["procedures"]
    assert updated[1]["procedure"] == "C"
    assert updated[1]["notes"] == "edited"
    assert updated[1]["total"] == 300


def test_out_of_range_index_leaves_array_unchanged(api_client, auth_headers, visit):
    res = api_client.patch(
        f"/api/visits/{visit['id']}/procedures/3", json={"notes": "x"}, headers=auth_headers
    )
    assert res.status_code == 404
    assert res.json() == {"error": "Procedure index out of range"}

    res = api_client.delete(f"/api/visits/{visit['id']}/procedures/7", headers=auth_headers)
    assert res.status_code == 404

    current = api_client.get(f"/api/visits/{visit['id']}", headers=auth_headers).json()
    assert current["procedures"] == visit["procedures"]
    assert current["version"] == visit["version"]


@pytest.mark.parametrize("index", ["-1", "abc", "1.5"])
def test_malformed_index_is_rejected(api_client, auth_headers, visit, index):
    res = api_client.delete(f"/api/visits/{visit['id']}/procedures/{index}", headers=auth_headers)
    assert res.status_code == 400
    assert res.json() == {"error": "Invalid procedure index"}


def test_add_appends_without_moving_existing_lines(api_client, auth_headers, visit):
    before = visit["procedures"]
    res = api_client.post(
        f"/api/visits/{visit['id']}/procedures",
        json={"procedure": "Crown", "total": "5,000", "paid": 1200, "due": 1, "visitDate": "2025-03-05T22:00:00Z"},
        headers=auth_headers,
    )
    assert res.status_code == 200, res.text
    after = res.json()["procedures"]
    assert after[:3] == before
    crown = after[3]
    assert crown["procedure"] == "Crown"
    assert crown["total"] == 5000
    assert crown["paid"] == 1200
    assert crown["due"] == 3800
    assert crown["visitDate"] == crown["visit_date"] == "2025-03-05"
    assert crown["nextApptDate"] is None
    assert crown["id"]


def test_overpayment_never_produces_negative_due(api_client, auth_headers, visit):
    res = api_client.patch(
        f"/api/visits/{visit['id']}/procedures/0", json={"paid": 150}, headers=auth_headers
    )
    line = res.json()["procedures"][0]
    assert line["paid"] == 150
    assert line["due"] == 0


def test_by_id_routes_are_not_affected_by_index_shift(api_client, auth_headers, visit):
    ids = [item["id"] for item in visit["procedures"]]

    res = api_client.delete(
        f"/api/visits/{visit['id']}/procedures/by-id/{ids[0]}", headers=auth_headers
    )
    assert _names(res.json()) == ["B", "C"]

    res = api_client.patch(
        f"/api/visits/{visit['id']}/procedures/by-id/{ids[1]}",
        json={"notes": "still B"},
        headers=auth_headers,
    )
    assert res.status_code == 200, res.text
    lines = res.json()["procedures"]
    assert lines[0]["procedure"] == "B"
    assert lines[0]["notes"] == "still B"

    missing = api_client.delete(
        f"/api/visits/{visit['id']}/procedures/by-id/nope", headers=auth_headers
    )
    assert missing.status_code == 404
    assert missing.json() == {"error": "Procedure not found"}


def test_if_match_guards_against_lost_updates(api_client, auth_headers, visit):
    version = visit["version"]
    first = api_client.patch(
        f"/api/visits/{visit['id']}/procedures/0",
        json={"notes": "first"},
        headers={**auth_headers, "If-Match": str(version)},
    )
    assert first.status_code == 200, first.text
    assert first.json()["version"] == version + 1

    stale = api_client.patch(
        f"/api/visits/{visit['id']}/procedures/1",
        json={"notes": "second"},
        headers={**auth_headers, "If-Match": f'"{version}"'},
    )
    assert stale.status_code == 409
    assert stale.json() == {"error": "Visit was modified concurrently"}

    bad = api_client.post(
        f"/api/visits/{visit['id']}/procedures",
        json={"procedure": "X"},
        headers={**auth_headers, "If-Match": "yesterday"},
    )
    assert bad.status_code == 400
    assert bad.json() == {"error": "Invalid If-Match header"}


def test_unknown_visit(api_client, auth_headers):
    res = api_client.post("/api/visits/999/procedures", json={"procedure": "X"}, headers=auth_headers)
    assert res.status_code == 404
    assert res.json() == {"error": "Visit not found"}
