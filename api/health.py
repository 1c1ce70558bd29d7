import time
from datetime import datetime, timezone

from flask import Blueprint, current_app

from models import storage

bp = Blueprint("health", __name__, url_prefix="/health")

_STARTED = time.monotonic()


def _stamp() -> dict:
    return {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "uptime": round(time.monotonic() - _STARTED, 3),
    }


@bp.get("")
def health():
    """
    Health check
    ---
    tags:
      - Health
    responses:
      200:
        description: API is up
        schema:
          type: object
          properties:
            status:
              type: string
              example: ok
            version:
              type: string
              example: 1.0.0
    """
    return {"status": "ok", "version": current_app.config.get("API_VERSION", "1.0.0"), **_stamp()}, 200


@bp.get("/ready")
def ready():
    """
    Readiness check: the database answers a round-trip
    ---
    tags:
      - Health
    responses:
      200: { description: Ready }
      503: { description: Database unreachable }
    """
    if not storage.ping():
        return {"status": "not ready", "database": "disconnected"}, 503
    return {"status": "ready", "database": "connected"}, 200


@bp.get("/live")
def live():
    """
    Liveness check
    ---
    tags:
      - Health
    responses:
      200: { description: Alive }
    """
    return {"status": "alive"}, 200
