"""Health check endpoints for Kubernetes probes."""

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from ..errors import BackendUnavailableError
from ..services.todo_manager import get_todo_manager_client

router = APIRouter()

SERVICE = "api-server"


@router.get("/health")
async def health_check():
    """
    Health check endpoint for Kubernetes liveness probe.
    Returns 200 OK if the service is running.
    """
    return {"status": "healthy", "service": SERVICE}


@router.get("/ready")
async def readiness_check():
    """
    Readiness check endpoint for Kubernetes readiness probe.
    Returns 200 OK while the TodoManager channel can carry calls, 503 otherwise.
    """
    try:
        ready = get_todo_manager_client().is_ready()
    except BackendUnavailableError:
        ready = False
    if not ready:
        return JSONResponse(
            status_code=503,
            content={"status": "not ready", "service": SERVICE},
        )
    return {"status": "ready", "service": SERVICE}
