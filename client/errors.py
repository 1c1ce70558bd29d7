from __future__ import annotations

from typing import Any, Optional


class ApiError(Exception):
    """
    Error raised by the client for any non-2xx answer or transport failure.
    status_code is None when no response was received.
    """

    def __init__(self, message: str, status_code: Optional[int] = None, payload: Any = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload

    def __repr__(self) -> str:
        return f"ApiError({self.status_code}, {self.message!r})"


class RefreshFailed(ApiError):
    """The refresh exchange failed; the local session has been cleared."""
