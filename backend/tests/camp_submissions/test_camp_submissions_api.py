import pytest

from clinic_api.services.camp_submissions import parse_action
from clinic_api.services.paging import clamp_page


def _submit(api_client, headers, **overrides):
    payload = {
        "name": "Asha K",
        "dob": "2001-05-06",
        "email": "asha@college.edu",
        "phone": "9800000001",
        "institution": "City College",
        **overrides,
    }
    return api_client.post("/api/camp-submissions", json=payload, headers=headers)


@pytest.mark.parametrize(
    "value, expected",
    [("Added", "INSERT"), ("Edited", "UPDATE"), ("Deleted", "DELETE"), ("update", "UPDATE"), ("all", None), (None, None)],
)
def test_parse_action(value, expected):
    assert parse_action(value) == expected


def test_clamp_page():
    assert clamp_page(None, None, default=25) == (25, 0)
    assert clamp_page(0, -5, default=25) == (25, 0)
    assert clamp_page(10_000, 3, default=25) == (200, 3)
    assert clamp_page(-4, None, default=50) == (1, 0)


def test_create_and_read(api_client, auth_headers):
    res = _submit(api_client, auth_headers, email="  ", institutionType="")
    assert res.status_code == 201, res.text
    body = res.json()
    assert body["name"] == "Asha K"
    assert body["dob"] == "2001-05-06"
    assert body["email"] is None
    assert body["institution_type"] == "Other"

    fetched = api_client.get(f"/api/camp-submissions/{body['id']}", headers=auth_headers)
    assert fetched.json() == body

    missing = api_client.get("/api/camp-submissions/999", headers=auth_headers)
    assert missing.status_code == 404
    assert missing.json() == {"error": "Submission not found"}


def test_create_requires_name(api_client, auth_headers):
    res = _submit(api_client, auth_headers, name="   ")
    assert res.status_code == 400
    assert res.json() == {"error": "Name is required"}


def test_list_search_and_sort(api_client, auth_headers):
    _submit(api_client, auth_headers, name="Zoya", institution="North School")
    _submit(api_client, auth_headers, name="Arun", institution="City College")
    _submit(api_client, auth_headers, name="Meena", email="meena@north.org")

    res = api_client.get("/api/camp-submissions", params={"sort": "name.asc"}, headers=auth_headers)
    assert res.status_code == 200
    page = res.json()
    assert page["total"] == 3
    assert page["limit"] == 25
    assert [item["name"] for item in page["items"]] == ["Arun", "Meena", "Zoya"]

    found = api_client.get("/api/camp-submissions", params={"q": "NORTH"}, headers=auth_headers).json()
    assert sorted(item["name"] for item in found["items"]) == ["Meena", "Zoya"]
    assert found["total"] == 2

    newest = api_client.get("/api/camp-submissions", params={"limit": 1}, headers=auth_headers).json()
    assert [item["name"] for item in newest["items"]] == ["Meena"]
    assert newest["total"] == 3


def test_update(api_client, auth_headers):
    sub_id = _submit(api_client, auth_headers).json()["id"]

    res = api_client.patch(
        f"/api/camp-submissions/{sub_id}", json={"comments": "Follow up"}, headers=auth_headers
    )
    assert res.status_code == 200, res.text
    assert res.json()["comments"] == "Follow up"
    assert res.json()["name"] == "Asha K"

    blank = api_client.patch(f"/api/camp-submissions/{sub_id}", json={"name": " "}, headers=auth_headers)
    assert blank.json() == {"error": "Name cannot be empty"}

    empty = api_client.patch(f"/api/camp-submissions/{sub_id}", json={}, headers=auth_headers)
    assert empty.json() == {"error": "No valid fields to update"}


def test_only_creator_can_delete(api_client, auth_headers, other_headers):
    sub_id = _submit(api_client, auth_headers).json()["id"]

    denied = api_client.delete(f"/api/camp-submissions/{sub_id}", headers=other_headers)
    assert denied.status_code == 403
    assert denied.json() == {"error": "Only the creator can delete this submission"}

    res = api_client.delete(f"/api/camp-submissions/{sub_id}", headers=auth_headers)
    assert res.status_code == 200, res.text
    assert res.json()["ok"] is True
    assert res.json()["deleted"]["id"] == sub_id
    assert res.json()["deleted"]["name"] == "Asha K"
    assert api_client.get(f"/api/camp-submissions/{sub_id}", headers=auth_headers).status_code == 404


def test_logs_read_as_who_verb_whom(api_client, auth_headers):
    sub_id = _submit(api_client, auth_headers).json()["id"]
    api_client.patch(f"/api/camp-submissions/{sub_id}", json={"phone": "9800000002"}, headers=auth_headers)
    other_id = _submit(api_client, auth_headers, name="Ravi").json()["id"]
    api_client.delete(f"/api/camp-submissions/{other_id}", headers=auth_headers)

    res = api_client.get("/api/camp-submissions/logs", headers=auth_headers)
    assert res.status_code == 200, res.text
    items = res.json()["items"]
    assert [(item["who"], item["verb"], item["whom"]) for item in items] == [
        ("dr_rao", "Deleted", "Ravi"),
        ("dr_rao", "Added", "Ravi"),
        ("dr_rao", "Edited", "Asha K"),
        ("dr_rao", "Added", "Asha K"),
    ]
    assert items[2]["old_row"]["phone"] == "9800000001"
    assert items[2]["new_row"]["phone"] == "9800000002"

    added = api_client.get("/api/camp-submissions/logs", params={"action": "Added"}, headers=auth_headers)
    assert added.json()["total"] == 2

    searched = api_client.get("/api/camp-submissions/logs", params={"q": "ravi"}, headers=auth_headers)
    assert searched.json()["total"] == 2

    target = api_client.get(f"/api/camp-submissions/{sub_id}/logs", headers=auth_headers)
    body = target.json()
    assert body["targetId"] == str(sub_id)
    assert [item["verb"] for item in body["items"]] == ["Edited", "Added"]
