import pytest

from api import auth_service
from api.errors import BadRequest, Conflict, Unauthorized
from models import storage
from models.user import User

from helpers import PASSWORD


def test_register_then_login(app_ctx):
    user, tokens = auth_service.register("New@X.com", PASSWORD, "N", "U")

    assert user.email == "new@x.com"
    assert user.refresh_token == tokens["refreshToken"]

    same, fresh = auth_service.login("new@x.com", PASSWORD)
    assert same.id == user.id
    assert same.refresh_token == fresh["refreshToken"] != tokens["refreshToken"]
    assert same.last_login is not None


def test_register_race_on_unique_email_is_conflict(app_ctx, monkeypatch):
    auth_service.register("dup@x.com", PASSWORD, "D", "U")
    # pretend the pre-check ran before the other registration committed
    monkeypatch.setattr(auth_service, "_find_by_email", lambda email: None)

    with pytest.raises(Conflict, match="Email already registered"):
        auth_service.register("dup@x.com", PASSWORD, "D", "U")

    assert storage.count(User) == 1


def test_login_checks_password_before_activity(app_ctx):
    user, _ = auth_service.register("idle@x.com", PASSWORD, "I", "U")
    user.is_active = False
    storage.save()

    with pytest.raises(Unauthorized) as wrong:
        auth_service.login("idle@x.com", "Wrong1234")
    with pytest.raises(Unauthorized) as right:
        auth_service.login("idle@x.com", PASSWORD)

    assert wrong.value.message == auth_service.INVALID_CREDENTIALS
    assert right.value.message == auth_service.ACCOUNT_DEACTIVATED


def test_unknown_email_still_verifies_a_hash(app_ctx, monkeypatch):
    calls = []
    real = auth_service.verify_password

    def spy(password, password_hash):
        calls.append(password_hash)
        return real(password, password_hash)

    monkeypatch.setattr(auth_service, "verify_password", spy)

    with pytest.raises(Unauthorized, match=auth_service.INVALID_CREDENTIALS):
        auth_service.login("ghost@x.com", PASSWORD)
    assert calls == [None]


def test_refresh_only_accepts_the_stored_token(app_ctx):
    _, first = auth_service.register("r@x.com", PASSWORD, "R", "U")
    second = auth_service.refresh(first["refreshToken"])

    with pytest.raises(Unauthorized, match="Invalid refresh token"):
        auth_service.refresh(first["refreshToken"])
    with pytest.raises(Unauthorized, match="Invalid or expired refresh token"):
        auth_service.refresh(second["accessToken"])
    assert auth_service.refresh(second["refreshToken"])["refreshToken"] != second["refreshToken"]


def test_update_password_rotates_and_stamps_change(app_ctx):
    user, tokens = auth_service.register("p@x.com", PASSWORD, "P", "U")
    assert user.password_changed_at is None

    with pytest.raises(BadRequest, match="Current password is incorrect"):
        auth_service.update_password(user, "Wrong1234", "Newpass123")

    fresh = auth_service.update_password(user, PASSWORD, "Newpass123")
    assert user.password_changed_at is not None
    assert user.refresh_token == fresh["refreshToken"] != tokens["refreshToken"]


def test_logout_is_idempotent(app_ctx):
    user, _ = auth_service.register("l@x.com", PASSWORD, "L", "U")

    auth_service.logout(user)
    auth_service.logout(user)

    assert user.refresh_token is None


def test_password_property_is_write_only(app_ctx):
    user, _ = auth_service.register("w@x.com", PASSWORD, "W", "U")

    with pytest.raises(AttributeError):
        user.password
