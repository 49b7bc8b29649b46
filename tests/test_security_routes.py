from vms.db.models import VisitStatus
from vms.services import auth_service

from conftest import API, auth_header, fetch_visitor, make_visitor

UID = "SCSVMV246810O"


def gate_header(client) -> dict:
    token = client.post(f"{API}/security/session", json={"pin": "4321"}).json()["data"]["accessToken"]
    return {"Authorization": f"Bearer {token}"}


def test_pin_exchange(client):
    wrong = client.post(f"{API}/security/session", json={"pin": "0000"})
    assert wrong.status_code == 401
    assert wrong.json() == {"error": "Invalid Access PIN"}

    right = client.post(f"{API}/security/session", json={"pin": "4321"})
    assert right.status_code == 200
    assert right.json()["data"]["expiresInHours"] == 8


def test_pin_attempts_are_rate_limited(client):
    for _ in range(5):
        client.post(f"{API}/security/session", json={"pin": "0000"})

    response = client.post(f"{API}/security/session", json={"pin": "4321"})

    assert response.status_code == 429


def test_lookup_normalizes_uid(client):
    request_id = make_visitor(status=VisitStatus.approved, visitor_uid=UID)

    response = client.get(f"{API}/security/visitors/{UID.lower()}", headers=gate_header(client))

    assert response.status_code == 200
    assert response.json()["data"]["id"] == request_id


def test_lookup_unknown_uid(client):
    response = client.get(f"{API}/security/visitors/SCSVMV000000X", headers=gate_header(client))

    assert response.status_code == 404
    assert response.json() == {"error": "Visitor not found or invalid UID."}


def test_lookup_rejects_overlong_uid(client):
    response = client.get(f"{API}/security/visitors/{'A' * 21}", headers=gate_header(client))

    assert response.status_code == 400
    assert response.json() == {"error": "Invalid Visitor UID"}


def test_check_in_and_out_flow(client, guard):
    request_id = make_visitor(status=VisitStatus.approved, visitor_uid=UID)
    headers = auth_header(guard)

    checked_in = client.post(f"{API}/security/visitors/{request_id}/check-in", headers=headers)
    assert checked_in.json()["data"]["message"] == "Visitor checked in successfully."

    again = client.post(f"{API}/security/visitors/{request_id}/check-in", headers=headers)
    assert again.status_code == 409
    assert again.json() == {"error": "Visitor already checked in."}

    listing = client.get(f"{API}/security/checked-in", headers=headers).json()["data"]
    assert [row["id"] for row in listing] == [request_id]

    checked_out = client.post(f"{API}/security/visitors/{request_id}/check-out", headers=headers)
    assert checked_out.json()["data"]["message"] == "Visitor checked out successfully."

    row = fetch_visitor(request_id)
    assert row.status == VisitStatus.checked_out
    assert row.check_in_time <= row.check_out_time

    reused = client.post(f"{API}/security/visitors/{request_id}/check-in", headers=headers)
    assert reused.json() == {"error": "Visitor pass already used (checked out)."}


def test_check_out_before_check_in(client):
    request_id = make_visitor(status=VisitStatus.approved, visitor_uid=UID)

    response = client.post(f"{API}/security/visitors/{request_id}/check-out", headers=gate_header(client))

    assert response.status_code == 409
    assert response.json() == {"error": "Visitor has not checked in yet."}


def test_pending_visitor_cannot_enter(client):
    request_id = make_visitor()

    response = client.post(f"{API}/security/visitors/{request_id}/check-in", headers=gate_header(client))

    assert response.status_code == 409
    assert response.json() == {"error": "Cannot check in. Visitor status is 'pending'."}


def test_department_admin_has_no_desk_access(client, cse_admin):
    response = client.get(f"{API}/security/checked-in", headers=auth_header(cse_admin))

    assert response.status_code == 403


def test_super_admin_has_desk_access(client, super_admin):
    response = client.get(f"{API}/security/checked-in", headers=auth_header(super_admin))

    assert response.status_code == 200
    assert response.json() == {"data": []}


def test_unset_pin_is_a_configuration_error(client, monkeypatch):
    monkeypatch.setattr(auth_service.settings, "SECURITY_ACCESS_PIN", "")

    response = client.post(f"{API}/security/session", json={"pin": "4321"})

    assert response.status_code == 500
    assert response.json() == {"error": "Server Configuration Error: PIN not set."}


def test_non_ascii_pin_is_just_wrong(client):
    response = client.post(f"{API}/security/session", json={"pin": "४३२१"})

    assert response.status_code == 401
    assert response.json() == {"error": "Invalid Access PIN"}


def test_desk_logout_revokes_gate_token(client):
    headers = gate_header(client)
    assert client.get(f"{API}/security/checked-in", headers=headers).status_code == 200

    response = client.post(f"{API}/security/logout", headers=headers)

    assert response.status_code == 200
    refused = client.get(f"{API}/security/checked-in", headers=headers)
    assert refused.status_code == 401
    assert refused.json() == {"error": "Session has ended"}
    assert client.get(f"{API}/security/checked-in", headers=gate_header(client)).status_code == 200
