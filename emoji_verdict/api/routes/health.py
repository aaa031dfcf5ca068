"""Health Probe - liveness endpoint for container orchestration.

Invariants:
    - GET /api/health/ always returns 200 if the process is up
    - Never calls upstream APIs (a provider outage must not restart the pod)
"""

from fastapi import APIRouter, status

from emoji_verdict import __version__

router = APIRouter(prefix="/api/health", tags=["health"])


@router.get("/", status_code=status.HTTP_200_OK)
async def health_check():
    """Basic liveness probe. Returns 200 if the process is up."""
    return {
        "status": "healthy",
        "service": "emoji-verdict-court",
        "version": __version__,
    }
