"""
Core views providing infrastructure endpoints.

Views here are not part of the ledger domain but are needed to run the
service behind load balancers and orchestration.
"""

from django.db import connection
from django.http import JsonResponse


def health_check(request):
    """
    Health check endpoint for monitoring and orchestration.

    Returns:
        JsonResponse with status and component health:
        - status: "healthy" or "unhealthy"
        - database: "connected" or "disconnected"
        - cache: "connected" or "disconnected"

    HTTP Status Codes:
        200: Database reachable
        503: Database unreachable

    Note:
        The cache backs the payout distributed lock. A cache outage is
        reported but does not fail the check; payout authorization will
        answer 409 until it recovers.
    """
    health_status = {
        "status": "healthy",
        "database": "unknown",
        "cache": "unknown",
    }
    is_healthy = True

    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
            cursor.fetchone()
        health_status["database"] = "connected"
    except Exception:
        health_status["database"] = "disconnected"
        health_status["status"] = "unhealthy"
        is_healthy = False

    try:
        from django.core.cache import cache

        cache.set("health_check", "ok", timeout=1)
        if cache.get("health_check") == "ok":
            health_status["cache"] = "connected"
        else:
            health_status["cache"] = "disconnected"
    except Exception:
        health_status["cache"] = "disconnected"

    status_code = 200 if is_healthy else 503

    return JsonResponse(health_status, status=status_code)
