"""
Endpoint wrappers on top of ApiClient. AuthService keeps the SessionStore in
step with the server: tokens and identity are stored on login/register and
cleared on logout.
"""
from __future__ import annotations

import logging
from typing import Optional

from .api import ApiClient
from .errors import ApiError

logger = logging.getLogger(__name__)


class AuthService:
    def __init__(self, api: ApiClient):
        self.api = api

    def _start_session(self, body: dict) -> dict:
        data = body["data"]
        self.api.session.set_tokens(data["accessToken"], data["refreshToken"])
        self.api.session.set_user(data.get("user"))
        return data

    def register(self, email: str, password: str, first_name: str, last_name: str) -> dict:
        body = self.api.post(
            "/auth/register",
            json={
                "email": email,
                "password": password,
                "confirmPassword": password,
                "firstName": first_name,
                "lastName": last_name,
            },
        )
        return self._start_session(body)

    def login(self, email: str, password: str) -> dict:
        body = self.api.post("/auth/login", json={"email": email, "password": password})
        return self._start_session(body)

    def me(self) -> dict:
        user = self.api.get("/auth/me")["data"]["user"]
        self.api.session.set_user(user)
        return user

    def update_password(self, current_password: str, new_password: str) -> None:
        body = self.api.patch(
            "/auth/update-password",
            json={
                "currentPassword": current_password,
                "newPassword": new_password,
                "confirmNewPassword": new_password,
            },
        )
        data = body["data"]
        self.api.session.set_tokens(data["accessToken"], data["refreshToken"])

    def logout(self) -> None:
        """Tell the server, then clear local state whatever it answered."""
        try:
            if self.api.session.is_authenticated:
                self.api.post("/auth/logout")
        except ApiError as exc:
            logger.info("Server-side logout failed: %s", exc.message)
        finally:
            self.api.logout_locally()


class UserService:
    def __init__(self, api: ApiClient):
        self.api = api

    def update_profile(self, **fields) -> dict:
        return self.api.patch("/users/profile", json=fields)["data"]["user"]

    def list_users(self, page: int = 1, limit: int = 10, sort_by: str = "createdAt",
                   sort_order: str = "desc", filters: Optional[dict] = None) -> dict:
        params = {"page": page, "limit": limit, "sortBy": sort_by, "sortOrder": sort_order}
        params.update(filters or {})
        body = self.api.get("/users", params=params)
        return {"users": body["data"], "pagination": body["pagination"]}

    def get_user(self, user_id: str) -> dict:
        return self.api.get(f"/users/{user_id}")["data"]["user"]

    def update_user(self, user_id: str, **fields) -> dict:
        return self.api.patch(f"/users/{user_id}", json=fields)["data"]["user"]

    def delete_user(self, user_id: str) -> None:
        self.api.delete(f"/users/{user_id}")

    def deactivate_user(self, user_id: str) -> dict:
        return self.api.patch(f"/users/{user_id}/deactivate")["data"]["user"]

    def activate_user(self, user_id: str) -> dict:
        return self.api.patch(f"/users/{user_id}/activate")["data"]["user"]
