"""
HTTP client with the token-refresh interceptor.

- every request carries `Authorization: Bearer <access token>` when one is stored
- a 401 on a request that has not been replayed yet triggers a single-flight
  refresh (see RefreshCoordinator) and one replay with the new token
- when the refresh fails the session is cleared (forced logout)
- any other error status is surfaced through `notify` and raised as ApiError
"""
from __future__ import annotations

import logging
from typing import Any, Callable, Optional

import requests

from .config import BASE_URL, REQUEST_TIMEOUT, SESSION_FILE
from .errors import ApiError, RefreshFailed
from .refresh import RefreshCoordinator
from .session import SessionStore

logger = logging.getLogger(__name__)

GENERIC_ERROR = "Something went wrong"
NETWORK_ERROR = "Unable to reach the server"
REFRESH_PATH = "/auth/refresh-token"


def _log_notification(message: str) -> None:
    logger.warning("%s", message)


def _body(resp) -> Any:
    try:
        return resp.json()
    except ValueError:
        return None


def _message(resp, body: Any) -> str:
    if resp.status_code >= 500:
        return GENERIC_ERROR
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return "An error occurred"


class ApiClient:
    def __init__(
        self,
        base_url: str = BASE_URL,
        session: Optional[SessionStore] = None,
        http: Optional[requests.Session] = None,
        timeout: float = REQUEST_TIMEOUT,
        notify: Callable[[str], None] = _log_notification,
        on_logout: Optional[Callable[[], None]] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.session = session if session is not None else SessionStore(SESSION_FILE)
        self.http = http if http is not None else requests.Session()
        self.timeout = timeout
        self.notify = notify
        self.on_logout = on_logout
        self.refresher = RefreshCoordinator(self._exchange_refresh_token, lambda: self.session.access_token)

    def _url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    def _send(self, method: str, path: str, token: Optional[str], **kwargs):
        headers = dict(kwargs.pop("headers", None) or {})
        headers.setdefault("Content-Type", "application/json")
        if token:
            headers["Authorization"] = f"Bearer {token}"
        try:
            return self.http.request(method, self._url(path), headers=headers, timeout=self.timeout, **kwargs)
        except requests.RequestException as exc:
            self.notify(NETWORK_ERROR)
            raise ApiError(NETWORK_ERROR) from exc

    def request(self, method: str, path: str, *, json: Any = None, params: Optional[dict] = None) -> Any:
        """Send a request and return the decoded JSON body (None for empty bodies)."""
        token = self.session.access_token
        resp = self._send(method, path, token, json=json, params=params)

        if resp.status_code == 401:
            new_token = self._refresh_after_401(token, resp)
            # replayed exactly once; a second 401 is final
            resp = self._send(method, path, new_token, json=json, params=params)

        body = _body(resp)
        if resp.status_code >= 400:
            message = _message(resp, body)
            if resp.status_code != 401:
                self.notify(message)
            raise ApiError(message, resp.status_code, body)
        return body

    def _refresh_after_401(self, token: Optional[str], resp) -> str:
        if token is None:
            # anonymous call (e.g. bad login credentials): nothing to refresh
            body = _body(resp)
            raise ApiError(_message(resp, body), 401, body)
        return self.refresher.refresh(token)

    def _exchange_refresh_token(self) -> str:
        refresh_token = self.session.refresh_token
        if refresh_token is None and self.session.access_token is None:
            # an earlier failed refresh already logged the session out
            raise RefreshFailed("Session has ended", 401)
        try:
            if not refresh_token:
                raise RefreshFailed("No refresh token available", 401)
            resp = self._send("POST", REFRESH_PATH, None, json={"refreshToken": refresh_token})
            body = _body(resp)
            if resp.status_code != 200 or not isinstance(body, dict):
                raise RefreshFailed(_message(resp, body), resp.status_code, body)
            data = body.get("data") or {}
            access, refresh = data.get("accessToken"), data.get("refreshToken")
            if not access or not refresh:
                raise RefreshFailed("Malformed refresh response", resp.status_code, body)
        except ApiError:
            self.logout_locally()
            raise
        self.session.set_tokens(access, refresh)
        logger.info("Access token refreshed")
        return access

    def logout_locally(self) -> None:
        self.session.clear()
        if self.on_logout is not None:
            self.on_logout()

    def get(self, path: str, **kwargs) -> Any:
        return self.request("GET", path, **kwargs)

    def post(self, path: str, **kwargs) -> Any:
        return self.request("POST", path, **kwargs)

    def patch(self, path: str, **kwargs) -> Any:
        return self.request("PATCH", path, **kwargs)

    def delete(self, path: str, **kwargs) -> Any:
        return self.request("DELETE", path, **kwargs)
