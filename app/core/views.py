"""
Core views providing infrastructure endpoints.

This module contains views that are not part of the business domain but are
essential for application infrastructure, such as health checks.
"""

import logging

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.core.cache import cache
from django.db import DatabaseError, connection
from django.http import JsonResponse

logger = logging.getLogger(__name__)


def health_check(request):
    """
    Health check endpoint for monitoring and orchestration.

    Returns:
        JsonResponse with status and component health:
        - status: "healthy" or "unhealthy"
        - database: "connected" or "disconnected"
        - cache: "connected" or "disconnected"
        - channel_layer: "connected" or "disconnected"

    HTTP Status Codes:
        200: Database reachable (cache and channel layer may be degraded)
        503: Database unreachable

    Example Response:
        {
            "status": "healthy",
            "database": "connected",
            "cache": "connected",
            "channel_layer": "connected"
        }
    """
    health_status = {
        "status": "healthy",
        "database": "unknown",
        "cache": "unknown",
        "channel_layer": "unknown",
    }
    is_healthy = True

    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
            cursor.fetchone()
        health_status["database"] = "connected"
    except DatabaseError:
        logger.exception("Health check: database unreachable")
        health_status["database"] = "disconnected"
        health_status["status"] = "unhealthy"
        is_healthy = False

    # Cache and channel layer failures degrade realtime features only
    try:
        cache.set("health_check", "ok", timeout=1)
        ok = cache.get("health_check") == "ok"
        health_status["cache"] = "connected" if ok else "disconnected"
    except Exception:
        logger.warning("Health check: cache unreachable", exc_info=True)
        health_status["cache"] = "disconnected"

    try:
        layer = get_channel_layer()
        if layer is None:
            health_status["channel_layer"] = "disconnected"
        else:
            async_to_sync(layer.send)("health.check", {"type": "health.check"})
            health_status["channel_layer"] = "connected"
    except Exception:
        logger.warning("Health check: channel layer unreachable", exc_info=True)
        health_status["channel_layer"] = "disconnected"

    status_code = 200 if is_healthy else 503

    return JsonResponse(health_status, status=status_code)
