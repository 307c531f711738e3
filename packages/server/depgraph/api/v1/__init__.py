"""
API v1 Router
"""

from fastapi import APIRouter
from . import dependencies

router = APIRouter()

router.include_router(dependencies.router, tags=["Dependencies"])


@router.get("/", tags=["API"])
async def api_root():
    """API root: returns version and available endpoints."""
    return {
        "api": "v1",
        "version": "0.1.0",
        "endpoints": [
            "/tasks/{taskId}/dependencies",
            "/tasks/{taskId}/dependents",
            "/tasks/{taskId}/blocking",
            "/tasks/{taskId}/blocked",
            "/tasks/{taskId}/dependency-chain",
            "/dependencies/integrity",
        ],
    }
