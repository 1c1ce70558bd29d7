# client/session.py
from __future__ import annotations

import json
import logging
import threading
from pathlib import Path
from typing import Optional

from .config import ACCESS_TOKEN_KEY, REFRESH_TOKEN_KEY

logger = logging.getLogger(__name__)


class SessionStore:
    """
    Client-side session: the token pair plus the identity of the logged-in user.

    Tokens are persisted as JSON under fixed keys when `path` is given; the
    identity only lives in memory. clear() is the forced-logout path.
    """

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path is not None else None
        self._lock = threading.Lock()
        self.access_token: Optional[str] = None
        self.refresh_token: Optional[str] = None
        self.user: Optional[dict] = None
        self._load()

    @property
    def is_authenticated(self) -> bool:
        return self.access_token is not None

    def _load(self) -> None:
        if self.path is None or not self.path.exists():
            return
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as exc:
            # an unreadable session file means no session
            logger.warning("Ignoring unreadable session file %s: %s", self.path, exc)
            return
        self.access_token = data.get(ACCESS_TOKEN_KEY)
        self.refresh_token = data.get(REFRESH_TOKEN_KEY)

    def _persist(self) -> None:
        if self.path is None:
            return
        if self.access_token is None and self.refresh_token is None:
            if self.path.exists():
                self.path.unlink()
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        data = {ACCESS_TOKEN_KEY: self.access_token, REFRESH_TOKEN_KEY: self.refresh_token}
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(data, f)

    def set_tokens(self, access_token: str, refresh_token: str) -> None:
        with self._lock:
            self.access_token = access_token
            self.refresh_token = refresh_token
            self._persist()

    def set_user(self, user: Optional[dict]) -> None:
        self.user = user

    def clear(self) -> None:
        with self._lock:
            self.access_token = None
            self.refresh_token = None
            self.user = None
            self._persist()
