"""Health endpoints."""

from __future__ import annotations

from fastapi import APIRouter, status

from ...config import settings
from ...services.routing.osrm_client import check_health

router = APIRouter(tags=["health"])


@router.get("/health", status_code=status.HTTP_200_OK)
def health_root() -> dict:
    """Simple health check endpoint that doesn't require any dependencies."""
    return {"status": "ok"}


@router.get("/health/osrm", status_code=status.HTTP_200_OK)
def health_osrm() -> dict:
    """Whether the trip optimizer answers; optimization still works locally when it does not."""
    healthy = check_health()
    return {
        "service": "osrm",
        "base_url": settings.osrm_base_url,
        "profile": settings.osrm_profile,
        "healthy": healthy,
        "fallback": None if healthy else "local",
    }


@router.get("/health/database", status_code=status.HTTP_200_OK)
def check_database() -> dict:
    """Check whether saved routes can be reached."""
    from ...db.supabase import get_supabase_client
    from ...persistence.database import ROUTES_TABLE

    supabase = get_supabase_client()
    if not supabase:
        return {
            "configured": False,
            "message": "Supabase not configured. Set RO_SUPABASE_URL and RO_SUPABASE_KEY environment variables.",
        }

    try:
        supabase.table(ROUTES_TABLE).select("id", count="exact").limit(1).execute()
        return {"configured": True, "connected": True, "message": "Database connected."}
    except Exception as exc:
        return {
            "configured": True,
            "connected": False,
            "error": str(exc),
            "message": f"Database connection error: {exc}",
        }
