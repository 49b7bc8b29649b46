import re
from datetime import datetime, timedelta

from vms.db.models import VisitStatus
from vms.services import email_service, visitor_service

from conftest import API, auth_header, fetch_visitor, make_visitor


def test_pending_list_is_scoped_to_own_department(client, cse_admin):
    mine = make_visitor(department="CSE")
    make_visitor(department="ECE")
    make_visitor(department="CSE", status=VisitStatus.rejected)

    response = client.get(f"{API}/department/requests", headers=auth_header(cse_admin))

    assert response.status_code == 200
    assert [row["id"] for row in response.json()["data"]] == [mine]


def test_approve_issues_uid_and_emails_visitor(client, cse_admin, outbox):
    request_id = make_visitor(email="ravi@example.com")

    response = client.post(f"{API}/department/requests/{request_id}/approve", headers=auth_header(cse_admin))

    assert response.status_code == 200
    data = response.json()["data"]
    assert re.match(r"^SCSVMV\d{6}[A-Z]$", data["visitorUid"])
    assert data["message"] == f"Visitor approved with UID: {data['visitorUid']}"
    assert data["emailSent"] is True

    row = fetch_visitor(request_id)
    assert row.status == VisitStatus.approved
    assert row.visitor_uid == data["visitorUid"]
    assert row.reviewed_by_id == cse_admin.id

    assert len(outbox) == 1
    assert outbox[0]["To"] == "ravi@example.com"
    assert outbox[0]["Subject"] == "Visitor Pass Approved - SCSVMV"


def test_approval_stands_when_email_fails(client, cse_admin, monkeypatch):
    class BrokenMailer:
        async def send_message(self, message):
            raise ConnectionError("smtp down")

    monkeypatch.setattr(email_service, "get_mailer", lambda: BrokenMailer())
    request_id = make_visitor()

    response = client.post(f"{API}/department/requests/{request_id}/approve", headers=auth_header(cse_admin))

    assert response.status_code == 200
    assert response.json()["data"]["emailSent"] is False
    assert fetch_visitor(request_id).status == VisitStatus.approved


def test_approving_twice_conflicts(client, cse_admin):
    request_id = make_visitor()
    client.post(f"{API}/department/requests/{request_id}/approve", headers=auth_header(cse_admin))

    response = client.post(f"{API}/department/requests/{request_id}/approve", headers=auth_header(cse_admin))

    assert response.status_code == 409
    assert response.json() == {"error": "This request has already been processed."}


def test_other_department_cannot_act(client, ece_admin):
    request_id = make_visitor(department="CSE")

    response = client.post(f"{API}/department/requests/{request_id}/approve", headers=auth_header(ece_admin))

    assert response.status_code == 404
    assert response.json() == {"error": "Unauthorized or Request Not Found"}
    assert fetch_visitor(request_id).status == VisitStatus.pending


def test_reject_with_default_reason(client, cse_admin):
    request_id = make_visitor()

    response = client.post(f"{API}/department/requests/{request_id}/reject", headers=auth_header(cse_admin))

    assert response.status_code == 200
    assert response.json()["data"]["message"] == "Visitor request rejected."
    row = fetch_visitor(request_id)
    assert row.status == VisitStatus.rejected
    assert row.rejection_reason == "No reason provided"
    assert row.visitor_uid is None


def test_reject_with_reason(client, cse_admin):
    request_id = make_visitor()

    client.post(
        f"{API}/department/requests/{request_id}/reject",
        json={"reason": "Department closed that day"},
        headers=auth_header(cse_admin),
    )

    assert fetch_visitor(request_id).rejection_reason == "Department closed that day"


def test_approved_list_covers_last_thirty_days(client, cse_admin):
    recent = make_visitor(status=VisitStatus.approved, visitor_uid="SCSVMV100001J")
    make_visitor(
        status=VisitStatus.approved,
        visitor_uid="SCSVMV100002J",
        created_at=datetime.utcnow() - timedelta(days=45),
    )

    response = client.get(f"{API}/department/approved", headers=auth_header(cse_admin))

    assert [row["id"] for row in response.json()["data"]] == [recent]


def test_department_analytics(client, cse_admin):
    make_visitor()
    make_visitor(status=VisitStatus.checked_in, visitor_uid="SCSVMV100003J")
    make_visitor(department="ECE")

    data = client.get(f"{API}/department/analytics", headers=auth_header(cse_admin)).json()["data"]

    assert data["total"] == 2
    assert data["pending"] == 1
    assert data["checkedIn"] == 1
    assert data["todayVisitors"] == 2
    assert len(data["weeklyTrend"]) == 7
    assert data["weeklyTrend"][-1]["count"] == 2
    assert "byDepartment" not in data


def test_other_roles_are_forbidden(client, guard):
    response = client.get(f"{API}/department/requests", headers=auth_header(guard))

    assert response.status_code == 403
    assert response.json() == {"error": "Insufficient permissions"}


def test_missing_token(client):
    response = client.get(f"{API}/department/requests")

    assert response.status_code == 401
    assert response.json() == {"error": "Missing token"}


def test_uid_taken_at_commit_becomes_allocation_error(client, cse_admin, monkeypatch):
    make_visitor(status=VisitStatus.approved, visitor_uid="SCSVMV777777O")
    request_id = make_visitor()
    monkeypatch.setattr(visitor_service, "allocate_visitor_uid", lambda db: "SCSVMV777777O")

    response = client.post(f"{API}/department/requests/{request_id}/approve", headers=auth_header(cse_admin))

    assert response.status_code == 503
    assert response.json() == {"error": "Failed to generate unique UID. Please try again."}
    row = fetch_visitor(request_id)
    assert row.status == VisitStatus.pending
    assert row.visitor_uid is None
