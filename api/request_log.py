"""
Per-request logging: assigns an X-Request-Id and logs method, path, status
and duration once the response is ready.
"""
import logging
import time
import uuid

from flask import g, request

logger = logging.getLogger("api.requests")


def register_request_logging(app):
    @app.before_request
    def _start_timer():
        g.request_id = request.headers.get("X-Request-Id") or uuid.uuid4().hex
        g.request_started = time.perf_counter()

    @app.after_request
    def _log_request(response):
        request_id = getattr(g, "request_id", None)
        if request_id:
            response.headers["X-Request-Id"] = request_id
        if app.config.get("TESTING"):
            return response

        duration_ms = (time.perf_counter() - getattr(g, "request_started", time.perf_counter())) * 1000
        user = getattr(g, "current_user", None)
        level = logging.WARNING if response.status_code >= 400 else logging.INFO
        if response.status_code >= 500:
            level = logging.ERROR
        logger.log(
            level,
            "%s %s %s - %.1fms%s",
            request.method,
            request.full_path.rstrip("?"),
            response.status_code,
            duration_ms,
            f" user={user.id}" if user is not None else "",
            extra={"request_id": request_id},
        )
        return response
