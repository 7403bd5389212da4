# File: api/routers/dashboard.py
from typing import Optional, Literal
from fastapi import APIRouter, HTTPException, Depends, Query

from api.dependencies.dashboard import get_ready_dashboard
from api.models.dashboard_models import (
    SelectionEventRequest,
    SelectionEventResponse,
    SelectionModel,
    ViewRequest,
)
from services.dashboard_service import DashboardService
from services.selection_service import apply_selection_event, describe_selection

import logging

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/nodes")
def get_nodes(service: DashboardService = Depends(get_ready_dashboard)):
    return service.nodes()


@router.get("/edges")
def get_edges(service: DashboardService = Depends(get_ready_dashboard)):
    return service.edges()


@router.get("/graph")
def get_graph(service: DashboardService = Depends(get_ready_dashboard)):
    """Node-link JSON of the bipartite topic graph."""
    return service.graph()


@router.get("/time-series")
def get_time_series(
    llm_topic: Optional[str] = Query(None, description="LLM cluster key; all topics when omitted"),
    service: DashboardService = Depends(get_ready_dashboard),
):
    return service.time_series(llm_topic)


@router.get("/time-series/{llm_topic}/by-psych-topic")
def get_multi_series(llm_topic: str, service: DashboardService = Depends(get_ready_dashboard)):
    return service.multi_series(llm_topic)


@router.get("/theories/{psych_topic}")
def get_theory_table(
    psych_topic: str,
    sort: Literal["subtopic", "citations"] = "subtopic",
    service: DashboardService = Depends(get_ready_dashboard),
):
    return service.theory_table(psych_topic, sort)


@router.get("/theory-distribution")
def get_theory_distribution(
    theory: str = Query(..., description="Theory name as it appears in the theory pool"),
    service: DashboardService = Depends(get_ready_dashboard),
):
    return service.theory_distribution(theory)


@router.get("/data-quality")
def get_data_quality(service: DashboardService = Depends(get_ready_dashboard)):
    """Join rows the views drop silently, for upstream data cleaning."""
    return service.join_report()


@router.post("/view")
def render_view(request: ViewRequest, service: DashboardService = Depends(get_ready_dashboard)):
    return service.render_view(request.state.to_state(), request.table_sort)


@router.post("/selection", response_model=SelectionEventResponse)
def apply_selection(request: SelectionEventRequest) -> SelectionEventResponse:
    try:
        new_state = apply_selection_event(request.state.to_state(), request.event, request.value)
    except ValueError as e:
        logger.warning(f"Rejected selection event: {e}")
        raise HTTPException(status_code=400, detail=str(e))

    return SelectionEventResponse(
        state=SelectionModel.from_state(new_state),
        phases=describe_selection(new_state),
    )
