import pytest

from api import create_app
from api.errors import GENERIC_ERROR_MESSAGE, flatten_messages
from models import storage


def test_unknown_route_envelope(client):
    resp = client.get("/api/nope")

    assert resp.status_code == 404
    assert resp.get_json() == {"status": "fail", "message": "Route /api/nope not found"}


def test_wrong_method_envelope(client):
    resp = client.get("/api/auth/login")

    assert resp.status_code == 405
    assert resp.get_json()["status"] == "fail"


def test_unexpected_error_is_generic(app, client, monkeypatch):
    def boom():
        raise RuntimeError("database password is hunter2")

    monkeypatch.setattr(storage, "ping", boom)

    resp = client.get("/api/health/ready")

    assert resp.status_code == 500
    assert resp.get_json() == {"status": "error", "message": GENERIC_ERROR_MESSAGE}


def test_non_json_body_is_a_validation_error(client):
    resp = client.post("/api/auth/login", data="email=a@x.com", content_type="text/plain")

    assert resp.status_code == 400
    fields = {e["field"] for e in resp.get_json()["errors"]}
    assert fields == {"email", "password"}


def test_request_id_is_echoed(client):
    resp = client.get("/api/health/live", headers={"X-Request-Id": "abc123"})

    assert resp.headers["X-Request-Id"] == "abc123"
    assert client.get("/api/health/live").headers["X-Request-Id"]


def test_flatten_messages_nested():
    messages = {
        "email": ["Not a valid email address."],
        "address": {"city": ["Missing data for required field."]},
        "_schema": ["At least one field is required to update"],
    }

    assert flatten_messages(messages, "query") == [
        {"field": "email", "message": "Not a valid email address.", "location": "query"},
        {"field": "address.city", "message": "Missing data for required field.", "location": "query"},
        {"field": "_schema", "message": "At least one field is required to update", "location": "query"},
    ]


def test_flatten_messages_plain_string():
    assert flatten_messages("bad") == [{"field": "_schema", "message": "bad", "location": "body"}]


def test_production_refuses_development_secrets(monkeypatch):
    monkeypatch.setattr("api.config.ProductionConfig.JWT_SECRET", "dev-access-token-secret-change-me-in-production")

    with pytest.raises(RuntimeError, match="JWT_SECRET"):
        create_app("prod")


@pytest.fixture
def raising_client(app):
    """Routes that raise lower-level errors straight into the translators."""
    import jwt
    from marshmallow import ValidationError
    from sqlalchemy.exc import IntegrityError

    errors = {
        "unique": IntegrityError("INSERT", {}, Exception("UNIQUE constraint failed: users.email")),
        "not-null": IntegrityError("INSERT", {}, Exception("NOT NULL constraint failed: users.email")),
        "expired": jwt.ExpiredSignatureError("Signature has expired"),
        "invalid": jwt.InvalidTokenError("Not enough segments"),
        "schema": ValidationError({"a": ["Missing data for required field."]}),
    }

    @app.get("/raise/<kind>")
    def raise_kind(kind):
        raise errors[kind]

    return app.test_client()


@pytest.mark.parametrize(
    "kind, code, message",
    [
        ("unique", 409, "Duplicate value. Please use another value."),
        ("not-null", 400, "Integrity error."),
        ("expired", 401, "Your token has expired. Please log in again."),
        ("invalid", 401, "Invalid token. Please log in again."),
    ],
)
def test_lower_level_errors_are_translated(raising_client, kind, code, message):
    resp = raising_client.get(f"/raise/{kind}")

    assert resp.status_code == code
    assert resp.get_json() == {"status": "fail", "message": message}


def test_raw_marshmallow_error_keeps_field_details(raising_client):
    resp = raising_client.get("/raise/schema")

    assert resp.status_code == 400
    assert resp.get_json() == {
        "status": "fail",
        "message": "Validation failed",
        "errors": [{"field": "a", "message": "Missing data for required field.", "location": "body"}],
    }
