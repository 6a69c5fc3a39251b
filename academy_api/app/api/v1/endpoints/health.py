"""Liveness check.  Public: served without a token.

Answers 503 with ``status: "unhealthy"`` when the database cannot be
queried.
"""

import logging
import sqlite3
from datetime import datetime, timezone

from fastapi import status
from fastapi.responses import JSONResponse

from academy_api.app.core.config import settings
from academy_api.app.core.db import get_connection

logger = logging.getLogger(__name__)


def _database_ok() -> bool:
    try:
        conn = get_connection()
        try:
            conn.execute("SELECT 1").fetchone()
        finally:
            conn.close()
    except sqlite3.Error as exc:
        logger.error("Health check failed: %s", exc)
        return False
    return True


async def health_check():
    healthy = _database_ok()
    body = {
        "success": healthy,
        "data": {
            "status": "ok" if healthy else "unhealthy",
            "database": "ok" if healthy else "unreachable",
            "service": settings.project_name,
            "version": settings.api_version,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
    }
    if healthy:
        return body
    body["error"] = "Database unavailable"
    return JSONResponse(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content=body)
