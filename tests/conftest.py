# tests/conftest.py

import os

# Must be set before `models` is imported: it builds the storage singleton
os.environ["APP_ENV"] = "test"
os.environ.pop("DATABASE_URL", None)

import pytest

from api import create_app
from models import storage
from models.user import User

from helpers import PASSWORD, register_payload


@pytest.fixture
def app():
    app = create_app("test")
    storage.reset()
    yield app
    storage.close()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def app_ctx(app):
    with app.app_context():
        yield app


@pytest.fixture
def register(client):
    """Register through the API and return the response."""
    def _register(email="a@x.com", password=PASSWORD, **overrides):
        return client.post("/api/auth/register", json=register_payload(email, password, **overrides))

    return _register


@pytest.fixture
def registered(register):
    """A registered user: (email, access token, refresh token)."""
    resp = register()
    assert resp.status_code == 201, resp.get_json()
    data = resp.get_json()["data"]
    return "a@x.com", data["accessToken"], data["refreshToken"]


@pytest.fixture
def load_user(app):
    """Fetch a fresh copy of an account by email."""
    def _load(email):
        with app.app_context():
            return storage.get_session().query(User).filter_by(email=email).one_or_none()

    return _load


@pytest.fixture
def set_fields(app):
    """Write columns straight to the database, bypassing the API."""
    def _set(email, **fields):
        with app.app_context():
            user = storage.get_session().query(User).filter_by(email=email).one()
            for key, value in fields.items():
                setattr(user, key, value)
            storage.save()

    return _set


@pytest.fixture
def admin_token(client, register, set_fields):
    register(email="admin@x.com")
    set_fields("admin@x.com", role="admin")
    resp = client.post("/api/auth/login", json={"email": "admin@x.com", "password": PASSWORD})
    return resp.get_json()["data"]["accessToken"]
