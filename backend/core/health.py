# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""
Service health report for GET /health.

The database is probed with ``SELECT 1`` and the round trip is timed:

* ``healthy``   – the probe succeeded within DEGRADED_AFTER_MS
* ``degraded``  – the probe succeeded but took longer
* ``unhealthy`` – the probe failed (the endpoint answers 503)
"""

import time
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from core.logger import get_logger

_log = get_logger("health")

HEALTHY = "healthy"
DEGRADED = "degraded"
UNHEALTHY = "unhealthy"

DEGRADED_AFTER_MS = 1000.0

_STARTED_AT = time.monotonic()


def check_database(db: Session) -> Optional[float]:
    """Round-trip time of ``SELECT 1`` in milliseconds, or None when it failed."""
    start = time.perf_counter()
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError:
        _log.exception("Database health check failed")
        return None
    return (time.perf_counter() - start) * 1000


def health_report(db: Session, version: str, environment: str) -> dict:
    response_ms = check_database(db)
    if response_ms is None:
        status = UNHEALTHY
    elif response_ms > DEGRADED_AFTER_MS:
        status = DEGRADED
        _log.warning("Database responding slowly: %.1fms", response_ms)
    else:
        status = HEALTHY

    return {
        "status": status,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "uptime_seconds": round(time.monotonic() - _STARTED_AT, 3),
        "version": version,
        "environment": environment,
        "database": {
            "connected": response_ms is not None,
            "response_time_ms": round(response_ms, 1) if response_ms is not None else None,
        },
    }
