"""
Single-flight token refresh.

One RefreshCoordinator belongs to one ApiClient. However many requests hit a
401 at the same time, at most one refresh exchange is in transit: the first
caller runs it, the others wait on the same future and receive the same new
access token (or the same error).
"""
from __future__ import annotations

import logging
import threading
from concurrent.futures import Future
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class RefreshCoordinator:
    def __init__(self, do_refresh: Callable[[], str], current_token: Callable[[], Optional[str]]):
        """
        do_refresh: performs the exchange, stores the new pair and returns the new access token.
        current_token: reads the access token currently stored.
        """
        self._do_refresh = do_refresh
        self._current_token = current_token
        self._lock = threading.Lock()
        self._in_flight: Optional[Future] = None
        self.refresh_count = 0

    @property
    def in_flight(self) -> bool:
        with self._lock:
            return self._in_flight is not None

    def refresh(self, stale_token: Optional[str]) -> str:
        """
        Return an access token newer than `stale_token`, the one the failed request carried.
        """
        with self._lock:
            future = self._in_flight
            if future is None:
                current = self._current_token()
                if current is not None and current != stale_token:
                    # another refresh finished after this request was sent
                    return current
                future = Future()
                self._in_flight = future
                leader = True
            else:
                leader = False

        if not leader:
            logger.debug("Waiting on in-flight token refresh")
            return future.result()

        try:
            self.refresh_count += 1
            token = self._do_refresh()
        except BaseException as exc:
            future.set_exception(exc)
            raise
        else:
            future.set_result(token)
            return token
        finally:
            with self._lock:
                self._in_flight = None
