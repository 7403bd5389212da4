# File: api/routers/relations.py
from fastapi import APIRouter, Depends

from api.dependencies.dashboard import get_ready_dashboard
from services.dashboard_service import DashboardService
from services.relation_sources import export_relations

router = APIRouter()


def _export(service: DashboardService, relation: str):
    return export_relations(service.dataset)[relation]


@router.get("/llm-topics")
def get_llm_topics(service: DashboardService = Depends(get_ready_dashboard)):
    return _export(service, "llm_topics")


@router.get("/psych-topics")
def get_psych_topics(service: DashboardService = Depends(get_ready_dashboard)):
    return _export(service, "psych_topics")


@router.get("/theory-pool")
def get_theory_pool(service: DashboardService = Depends(get_ready_dashboard)):
    return _export(service, "theory_pool")


@router.get("/secondary-clusters")
def get_secondary_clusters(service: DashboardService = Depends(get_ready_dashboard)):
    return _export(service, "secondary_clusters")


@router.get("/filtered-papers")
def get_filtered_papers(service: DashboardService = Depends(get_ready_dashboard)):
    """LLM papers with their psychology references."""
    return _export(service, "filtered_papers")


@router.get("/papers-info")
def get_papers_info(service: DashboardService = Depends(get_ready_dashboard)):
    """LLM paper metadata (publication dates) for the time series."""
    return _export(service, "papers_info")


@router.get("/refs-info")
def get_refs_info(service: DashboardService = Depends(get_ready_dashboard)):
    """Psychology paper metadata, used to resolve theory document titles."""
    return _export(service, "refs_info")
