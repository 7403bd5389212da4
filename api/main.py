# api/main.py
from dotenv import load_dotenv
import os

env = os.getenv("APP_ENV", "local")
if env == "local":
    load_dotenv(".env.local")
else:
    load_dotenv(".env")

from fastapi import FastAPI
from contextlib import asynccontextmanager
import logging
from fastapi.middleware.cors import CORSMiddleware

from api.routers import (
    health,
    relations,
    dashboard,
)
from services.dashboard_service import DashboardService, LoadStatus
from services.relation_sources import build_source_from_env

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"🚀 Starting Citation Atlas ({env}): loading relations")
    service = DashboardService()
    app.state.dashboard_service = service
    try:
        source = build_source_from_env()
    except ValueError as e:
        # Misconfiguration is reported like any other load failure
        logger.error(f"❌ Invalid relation source configuration: {e}")
        service.status = LoadStatus.FAILED
        service.error = str(e)
    else:
        if await service.load(source):
            logger.info("✅ Citation dataset ready")
        else:
            logger.error("❌ Citation dataset failed to load; dashboard routes will answer 503")
    yield
    logger.info("🛑 Shutting down Citation Atlas")


app = FastAPI(
    title="Citation Atlas - LLM/Psychology Citation Network API",
    version="1.0.0",
    description="Linked views over the citation graph between LLM research topics and psychology theories.",
    lifespan=lifespan
)

# CORS Configuration
origins = []
if env == "local":
    origins = ["http://localhost:3000", "http://localhost:5173"]  # Common dev ports
else:
    origins_str = os.getenv("ALLOWED_ORIGINS", "")
    origins = [origin.strip() for origin in origins_str.split(",") if origin.strip()]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)
app.include_router(health.router)
app.include_router(relations.router, prefix="/api", tags=["Relations"])
app.include_router(dashboard.router, prefix="/dashboard", tags=["Dashboard"])


@app.get("/")
async def root():
    return {"message": "Citation Atlas Backend Running"}
