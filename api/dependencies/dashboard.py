# File: api/dependencies/dashboard.py
from fastapi import HTTPException, Request, status

from services.dashboard_service import DashboardService, LoadStatus


def get_dashboard_service(request: Request) -> DashboardService:
    """The app-wide service; created by the lifespan handler in api/main.py."""
    service = getattr(request.app.state, "dashboard_service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Dataset is still loading",
        )
    return service


def get_ready_dashboard(request: Request) -> DashboardService:
    service = get_dashboard_service(request)

    if service.status is LoadStatus.FAILED:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Failed to load citation dataset",
        )
    if service.status is not LoadStatus.READY:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Dataset is still loading",
        )
    return service
