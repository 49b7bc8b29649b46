from vms.db.models import UserRole

from conftest import API, PASSWORD, auth_header, make_user


def login(client, email, password=PASSWORD):
    return client.post(f"{API}/auth/login", json={"email": email, "password": password})


def test_login_returns_tokens_and_profile(client, cse_admin):
    response = login(client, "CSE.Admin@scsvmv.ac.in")

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["accessToken"] and data["refreshToken"]
    assert data["user"] == {
        "id": cse_admin.id,
        "email": "cse.admin@scsvmv.ac.in",
        "role": "department_admin",
        "department": "CSE",
    }

    me = client.get(f"{API}/auth/me", headers={"Authorization": f"Bearer {data['accessToken']}"})
    assert me.json()["data"]["email"] == "cse.admin@scsvmv.ac.in"


def test_bad_password(client, guard):
    response = login(client, guard.email, "wrong-password")

    assert response.status_code == 401
    assert response.json() == {"error": "Invalid credentials"}


def test_login_is_rate_limited_per_email(client, guard):
    for _ in range(5):
        login(client, guard.email, "wrong-password")

    blocked = login(client, guard.email)
    assert blocked.status_code == 429
    assert "Retry-After" in blocked.headers

    make_user(UserRole.security, "night@scsvmv.ac.in")
    assert login(client, "night@scsvmv.ac.in").status_code == 200


def test_refresh_rotates_and_logout_revokes(client, guard):
    refresh = login(client, guard.email).json()["data"]["refreshToken"]

    rotated = client.post(f"{API}/auth/refresh-token", json={"refreshToken": refresh})
    assert rotated.status_code == 200
    new_refresh = rotated.json()["data"]["refreshToken"]

    reused = client.post(f"{API}/auth/refresh-token", json={"refreshToken": refresh})
    assert reused.status_code == 401

    client.post(f"{API}/auth/logout", json={"refreshToken": new_refresh})
    assert client.post(f"{API}/auth/refresh-token", json={"refreshToken": new_refresh}).status_code == 401


def test_change_password(client, guard):
    headers = auth_header(guard)

    wrong = client.post(
        f"{API}/auth/change-password",
        json={"currentPassword": "nope", "newPassword": "brand-new-1"},
        headers=headers,
    )
    assert wrong.status_code == 400

    ok = client.post(
        f"{API}/auth/change-password",
        json={"currentPassword": PASSWORD, "newPassword": "brand-new-1"},
        headers=headers,
    )
    assert ok.status_code == 200
    assert login(client, guard.email, "brand-new-1").status_code == 200


def test_gate_token_is_not_a_user_token(client):
    token = client.post(f"{API}/security/session", json={"pin": "4321"}).json()["data"]["accessToken"]

    response = client.get(f"{API}/auth/me", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401
    assert response.json() == {"error": "Invalid token type"}
