"""
RegFree Bridge - Health Check Endpoints

System health monitoring endpoints for load balancers, monitoring,
and operational visibility.
"""

from datetime import datetime

from fastapi import APIRouter, Request

router = APIRouter(prefix="/api/system", tags=["system"])


@router.get("/health")
async def health_check(request: Request) -> dict:
    """
    Overall system health check.

    Returns:
        - status: "healthy" or "degraded"
        - checks: Individual component statuses
        - timestamp: Current server time
    """
    state = request.app.state
    settings = state.settings
    checks = {}

    checks["device_store"] = {
        "status": "healthy",
        "devices": await state.store.count(),
    }

    checks["push"] = {
        "status": "healthy",
        "backend": state.push_provider.name,
    }

    checks["telephony"] = {
        "status": "healthy" if settings.telephony_api_key and settings.telephony_domain else "unconfigured",
        "api_host": settings.telephony_api_host,
    }

    # Outbound dialing is optional, an unconfigured client does not degrade the bridge
    return {
        "status": "healthy",
        "timestamp": datetime.utcnow().isoformat() + "Z",
        "version": request.app.version,
        "environment": settings.app_env,
        "checks": checks,
    }


@router.get("/ready")
async def readiness_check() -> dict:
    """
    Readiness probe for Kubernetes/container orchestration.

    Returns 200 if the service is ready to accept requests.
    """
    return {
        "ready": True,
        "timestamp": datetime.utcnow().isoformat() + "Z",
    }


@router.get("/live")
async def liveness_check() -> dict:
    """
    Liveness probe for Kubernetes/container orchestration.

    Returns 200 if the service is alive.
    """
    return {
        "alive": True,
        "timestamp": datetime.utcnow().isoformat() + "Z",
    }
