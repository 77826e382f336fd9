"""Health check endpoint.

Learn: Liveness only. It answers even when the database is down, so a
load balancer can tell "process up" apart from "dependencies healthy".
"""

from datetime import datetime, timezone

from fastapi import APIRouter

from nimbus import __version__

router = APIRouter()


@router.get("/health")
async def health_check():
    """Report that the server is running."""
    return {
        "status": "OK",
        "message": "Server is running",
        "version": __version__,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
