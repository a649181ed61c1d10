"""
Test authentication endpoints: signup, login, refresh, logout
"""

from conftest import PASSWORD, auth_headers, login, signup


def test_signup_returns_tokens_and_learner_profile(client):
    data = signup(client, "Lin Learner", "Lin@Example.com")

    assert data["token_type"] == "bearer"
    assert data["access_token"]
    assert data["refresh_token"]
    assert data["user"]["email"] == "lin@example.com"
    assert data["user"]["role"] == "learner"
    assert data["user"]["points"] == 0


def test_signup_rejects_duplicate_email(client):
    signup(client, "Lin Learner", "lin@example.com")
    response = client.post(
        "/auth/signup",
        json={"name": "Lin Again", "email": "LIN@example.com", "password": PASSWORD},
    )
    assert response.status_code == 409


def test_signup_cannot_self_assign_admin(client):
    response = client.post(
        "/auth/signup",
        json={
            "name": "Mallory",
            "email": "mallory@example.com",
            "password": PASSWORD,
            "role": "admin",
        },
    )
    assert response.status_code == 422


def test_signup_rejects_short_password(client):
    response = client.post(
        "/auth/signup",
        json={"name": "Lin", "email": "lin@example.com", "password": "short"},
    )
    assert response.status_code == 422
    assert response.json()["error"] == "Validation error"


def test_login_and_me(client):
    signup(client, "Lin Learner", "lin@example.com")
    tokens = login(client, "lin@example.com")

    response = client.get("/auth/me", headers=auth_headers(tokens))
    assert response.status_code == 200
    assert response.json()["name"] == "Lin Learner"
    assert response.json()["last_login"] is not None


def test_login_with_wrong_password(client):
    signup(client, "Lin Learner", "lin@example.com")
    response = client.post(
        "/auth/login", json={"email": "lin@example.com", "password": "WrongPass123"}
    )
    assert response.status_code == 401


def test_me_requires_token(client):
    assert client.get("/auth/me").status_code == 401
    response = client.get("/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401


def test_refresh_rotates_tokens(client):
    tokens = signup(client, "Lin Learner", "lin@example.com")

    response = client.post("/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
    assert response.status_code == 200
    refreshed = response.json()
    assert refreshed["refresh_token"] != tokens["refresh_token"]

    # The old refresh token is spent
    response = client.post("/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
    assert response.status_code == 401


def test_access_token_cannot_refresh(client):
    tokens = signup(client, "Lin Learner", "lin@example.com")
    response = client.post("/auth/refresh", json={"refresh_token": tokens["access_token"]})
    assert response.status_code == 401


def test_logout_revokes_access_token(client):
    tokens = signup(client, "Lin Learner", "lin@example.com")
    headers = auth_headers(tokens)

    response = client.post("/auth/logout", headers=headers)
    assert response.status_code == 200
    assert response.json()["success"] is True

    assert client.get("/auth/me", headers=headers).status_code == 401


def test_deactivated_user_cannot_log_in(client, admin):
    user = signup(client, "Lin Learner", "lin@example.com")["user"]

    response = client.patch(
        f"/users/{user['id']}/status", json={"is_active": False}, headers=admin["headers"]
    )
    assert response.status_code == 200
    assert response.json()["is_active"] is False

    response = client.post(
        "/auth/login", json={"email": "lin@example.com", "password": PASSWORD}
    )
    assert response.status_code == 403


def test_admin_cannot_deactivate_self(client, admin):
    response = client.patch(
        f"/users/{admin['user']['id']}/status",
        json={"is_active": False},
        headers=admin["headers"],
    )
    assert response.status_code == 400


def test_health_endpoints(client):
    assert client.get("/").json()["status"] == "healthy"
    health = client.get("/health").json()
    assert health["database"] == "healthy"
    assert health["active_quiz_sessions"] == 0
