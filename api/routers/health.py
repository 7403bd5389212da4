# File: api/routers/health.py
from fastapi import APIRouter, Request


router = APIRouter()


@router.get("/health")
async def health_check(request: Request):
    service = getattr(request.app.state, "dashboard_service", None)
    dataset_status = service.status.value if service is not None else "loading"
    return {"status": "ok", "dataset": dataset_status}
