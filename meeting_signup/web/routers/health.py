"""
Health Check Router

Service liveness endpoint.
"""

from datetime import datetime

from fastapi import APIRouter, Request


router = APIRouter()


@router.get("/health")
async def health_check(request: Request):
    """
    Basic health check (no authentication required).

    Returns:
        Health status and active Slack transport
    """
    return {
        "status": "healthy",
        "timestamp": datetime.now().isoformat(),
        "service": "meeting-signup",
        "transport": request.app.state.transport,
    }
