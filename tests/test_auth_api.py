from models import storage
from models.user import User

from conftest import bearer, login, register, response_cookies


def stored_user(app, username="alice"):
    with app.app_context():
        return storage.get_session().query(User).filter(User.username == username).first()


# --- register ---

def test_register_returns_sanitized_user(client, app, uploader):
    resp = register(client)
    assert resp.status_code == 201
    user = resp.get_json()["data"]
    assert user["username"] == "alice"
    assert user["email"] == "a@x.com"
    assert user["avatar"] == uploader.uploaded[0]
    assert user["coverImage"] == ""
    for secret in ("password", "password_hash", "refreshToken", "refresh_token"):
        assert secret not in user

    row = stored_user(app)
    assert row.password_hash != "p1"
    assert row.refresh_token is None


def test_register_lowercases_username_and_keeps_cover_image(client, app, uploader):
    resp = register(client, username="Alice", email="A@X.com", with_cover=True)
    assert resp.status_code == 201
    data = resp.get_json()["data"]
    assert data["username"] == "alice"
    assert data["email"] == "a@x.com"
    assert data["coverImage"] == uploader.uploaded[1]


def test_register_blank_field_is_rejected(client):
    resp = register(client, fullname="   ")
    assert resp.status_code == 400
    assert resp.get_json()["message"] == "All fields are required."


def test_register_requires_avatar(client):
    resp = register(client, with_avatar=False)
    assert resp.status_code == 400
    assert resp.get_json()["message"] == "Avatar file is required"


def test_register_failed_avatar_upload(client, uploader):
    uploader.fail = True
    resp = register(client)
    assert resp.status_code == 400
    assert resp.get_json()["message"] == "Avatar file is required"


def test_register_duplicate_email_conflicts(client, registered):
    resp = register(client, username="bob", email="A@x.COM")
    assert resp.status_code == 409
    assert resp.get_json()["error"] == "CONFLICT"


def test_register_duplicate_username_case_insensitive(client, registered):
    resp = register(client, username="ALICE", email="other@x.com")
    assert resp.status_code == 409


# --- login ---

def test_login_sets_cookies_and_stores_refresh_token(client, app, registered):
    resp = login(client)
    assert resp.status_code == 200
    data = resp.get_json()["data"]
    assert "password" not in data["user"] and "refreshToken" not in data["user"]

    cookies = response_cookies(resp)
    assert cookies["accessToken"][0] == data["accessToken"]
    assert cookies["refreshToken"][0] == data["refreshToken"]
    for _, header in cookies.values():
        assert "HttpOnly" in header
        assert "Secure" in header

    assert stored_user(app).refresh_token == data["refreshToken"]


def test_login_by_email(client, registered):
    resp = login(client, email="A@X.COM")
    assert resp.status_code == 200


def test_login_wrong_password(client, registered):
    resp = login(client, password="nope")
    assert resp.status_code == 401


def test_login_unknown_user(client, registered):
    resp = login(client, username="mallory")
    assert resp.status_code == 404


def test_login_requires_identifier_and_password(client, registered):
    assert client.post("/api/v1/auth/login", json={"password": "p1"}).status_code == 400
    assert client.post("/api/v1/auth/login", json={"username": "alice"}).status_code == 400


def test_second_login_invalidates_first_session(client, registered):
    first = login(client).get_json()["data"]
    login(client)
    resp = client.post("/api/v1/auth/refresh-token", json={"refreshToken": first["refreshToken"]})
    assert resp.status_code == 401


# --- refresh ---

def test_scenario_register_login_refresh_and_replay(client, app):
    assert register(client).status_code == 201

    first = login(client).get_json()["data"]

    resp = client.post("/api/v1/auth/refresh-token", json={"refreshToken": first["refreshToken"]})
    assert resp.status_code == 200
    rotated = resp.get_json()["data"]
    assert rotated["accessToken"] != first["accessToken"]
    assert rotated["refreshToken"] != first["refreshToken"]
    assert stored_user(app).refresh_token == rotated["refreshToken"]
    assert response_cookies(resp)["refreshToken"][0] == rotated["refreshToken"]

    replay = client.post("/api/v1/auth/refresh-token", json={"refreshToken": first["refreshToken"]})
    assert replay.status_code == 401


def test_refresh_reads_cookie(client, logged_in):
    resp = client.post(
        "/api/v1/auth/refresh-token",
        headers={"Cookie": f"refreshToken={logged_in['refreshToken']}"},
    )
    assert resp.status_code == 200


def test_refresh_cookie_wins_over_body(client, logged_in):
    resp = client.post(
        "/api/v1/auth/refresh-token",
        headers={"Cookie": f"refreshToken={logged_in['refreshToken']}"},
        json={"refreshToken": "garbage"},
    )
    assert resp.status_code == 200

    resp = client.post(
        "/api/v1/auth/refresh-token",
        headers={"Cookie": "refreshToken=garbage"},
        json={"refreshToken": resp.get_json()["data"]["refreshToken"]},
    )
    assert resp.status_code == 401


def test_refresh_without_token(client):
    resp = client.post("/api/v1/auth/refresh-token", json={})
    assert resp.status_code == 401


def test_refresh_ignores_non_object_body(client, logged_in):
    resp = client.post(
        "/api/v1/auth/refresh-token",
        headers={"Cookie": f"refreshToken={logged_in['refreshToken']}"},
        json=["x"],
    )
    assert resp.status_code == 200

    resp = client.post("/api/v1/auth/refresh-token", json=["x"])
    assert resp.status_code == 401
    assert resp.get_json()["error"] == "UNAUTHORIZED"

    resp = client.post("/api/v1/auth/refresh-token", json="just-a-string")
    assert resp.status_code == 401


def test_refresh_rejects_access_token(client, logged_in):
    resp = client.post("/api/v1/auth/refresh-token", json={"refreshToken": logged_in["accessToken"]})
    assert resp.status_code == 401


# --- logout ---

def test_logout_is_idempotent(client, app, logged_in):
    for _ in range(2):
        resp = client.post("/api/v1/auth/logout", headers=bearer(logged_in["accessToken"]))
        assert resp.status_code == 200
        assert resp.get_json()["data"] == {}
        cookies = response_cookies(resp)
        assert cookies["accessToken"][0] == ""
        assert cookies["refreshToken"][0] == ""
    assert stored_user(app).refresh_token is None


def test_logout_revokes_refresh_token(client, logged_in):
    client.post("/api/v1/auth/logout", headers=bearer(logged_in["accessToken"]))
    resp = client.post("/api/v1/auth/refresh-token", json={"refreshToken": logged_in["refreshToken"]})
    assert resp.status_code == 401


def test_logout_accepts_access_cookie(client, logged_in):
    resp = client.post(
        "/api/v1/auth/logout", headers={"Cookie": f"accessToken={logged_in['accessToken']}"}
    )
    assert resp.status_code == 200


def test_logout_requires_access_token(client):
    assert client.post("/api/v1/auth/logout").status_code == 401
    assert client.post("/api/v1/auth/logout", headers=bearer("not-a-jwt")).status_code == 401


# --- change password ---

def test_change_password(client, logged_in):
    resp = client.post(
        "/api/v1/auth/change-password",
        headers=bearer(logged_in["accessToken"]),
        json={"oldPassword": "p1", "newPassword": "p2", "confirmPassword": "p2"},
    )
    assert resp.status_code == 200
    assert login(client, password="p1").status_code == 401
    assert login(client, password="p2").status_code == 200


def test_change_password_mismatch_keeps_hash(client, app, logged_in):
    before = stored_user(app).password_hash
    resp = client.post(
        "/api/v1/auth/change-password",
        headers=bearer(logged_in["accessToken"]),
        json={"oldPassword": "p1", "newPassword": "p2", "confirmPassword": "p3"},
    )
    assert resp.status_code == 400
    assert stored_user(app).password_hash == before


def test_change_password_wrong_old_password(client, logged_in):
    resp = client.post(
        "/api/v1/auth/change-password",
        headers=bearer(logged_in["accessToken"]),
        json={"oldPassword": "wrong", "newPassword": "p2", "confirmPassword": "p2"},
    )
    assert resp.status_code == 401


def test_access_token_survives_password_change(client, logged_in):
    client.post(
        "/api/v1/auth/change-password",
        headers=bearer(logged_in["accessToken"]),
        json={"oldPassword": "p1", "newPassword": "p2", "confirmPassword": "p2"},
    )
    resp = client.get("/api/v1/users/me", headers=bearer(logged_in["accessToken"]))
    assert resp.status_code == 200
