from datetime import timedelta

import pytest

from api.errors import Unauthorized
from models.base_model import utcnow
from utils import security
from utils.decorators import has_role, resolve_identity

from helpers import PASSWORD, bearer


def _resolve(app, header):
    with app.app_context():
        return resolve_identity(header)


def _message(app, header):
    with pytest.raises(Unauthorized) as exc:
        _resolve(app, header)
    return exc.value.message


def test_guard_accepts_valid_token(app, registered):
    _, access, _ = registered

    user = _resolve(app, f"Bearer {access}")

    assert user.email == "a@x.com"


@pytest.mark.parametrize("header", [None, "", "Token abc", "Bearer ", "bearer abc"])
def test_guard_requires_bearer_token(app, header):
    assert _message(app, header) == "No authentication token provided"


def test_guard_rejects_malformed_token(app):
    assert _message(app, "Bearer not.a.jwt") == "Invalid token"


def test_guard_rejects_refresh_token(app, registered):
    _, _, refresh = registered

    assert _message(app, f"Bearer {refresh}") == "Invalid token"


def test_guard_rejects_expired_token(app, registered, load_user):
    user = load_user("a@x.com")
    with app.app_context():
        token = security._encode(
            {"id": user.id, "email": user.email},
            security.ACCESS,
            app.config["JWT_SECRET"],
            timedelta(seconds=-1),
        )

    assert _message(app, f"Bearer {token}") == "Token has expired"


def test_guard_rejects_deleted_account(app, client, registered, admin_token, load_user):
    _, access, _ = registered
    user_id = load_user("a@x.com").id
    assert client.delete(f"/api/users/{user_id}", headers=bearer(admin_token)).status_code == 204

    assert _message(app, f"Bearer {access}") == "User no longer exists"


def test_guard_rejects_deactivated_account(app, registered, set_fields):
    _, access, _ = registered
    set_fields("a@x.com", is_active=False)

    assert _message(app, f"Bearer {access}") == "User account is deactivated"


def test_guard_rejects_token_issued_before_password_change(app, registered, set_fields):
    _, access, _ = registered
    set_fields("a@x.com", password_changed_at=utcnow() + timedelta(seconds=1))

    assert _message(app, f"Bearer {access}") == "Password was changed. Please log in again"


def test_guard_accepts_token_issued_after_password_change(app, client, registered, set_fields):
    set_fields("a@x.com", password_changed_at=utcnow() - timedelta(minutes=1))
    access = client.post(
        "/api/auth/login", json={"email": "a@x.com", "password": PASSWORD}
    ).get_json()["data"]["accessToken"]

    assert _resolve(app, f"Bearer {access}").email == "a@x.com"


def test_has_role():
    admins = frozenset({"admin"})

    assert has_role("admin", admins)
    assert not has_role("user", admins)
    assert not has_role("moderator", admins)
    assert not has_role(None, admins)
    assert not has_role("admin", frozenset())


def test_roles_required_returns_403_after_authentication(client, registered):
    _, access, _ = registered

    resp = client.get("/api/users", headers=bearer(access))

    assert resp.status_code == 403
    assert resp.get_json() == {"status": "fail", "message": "You do not have permission to perform this action"}


def test_roles_required_checks_token_before_role(client):
    resp = client.get("/api/users")

    assert resp.status_code == 401


def test_root_is_anonymous_without_token(client):
    body = client.get("/").get_json()

    assert body["authenticated"] is False
    assert "user" not in body
    assert body["docs"] == "/apidocs/"


def test_root_ignores_bad_token(client):
    body = client.get("/", headers=bearer("garbage")).get_json()

    assert body["authenticated"] is False


def test_root_recognizes_caller(client, registered):
    _, access, _ = registered

    body = client.get("/", headers=bearer(access)).get_json()

    assert body["authenticated"] is True
    assert body["user"]["email"] == "a@x.com"
    assert body["user"]["role"] == "user"
