# backend/ecomap/main.py
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI

from ecomap.core.config import settings
from ecomap.routers import eco
from ecomap.services.orchestrator import EcoScoreOrchestrator

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logging.basicConfig(level=settings.LOG_LEVEL)
    app.state.orchestrator = EcoScoreOrchestrator()
    source = "real proxies + simulation" if settings.BAND_SOURCE_URLS else "simulation only"
    logger.info(f"🚀 {settings.PROJECT_NAME} ready (strategy: {settings.SCORING_STRATEGY}, bands: {source})")
    yield


app = FastAPI(title=settings.PROJECT_NAME, lifespan=lifespan)

app.include_router(eco.router, tags=["eco"])


@app.get("/")
async def health_check():
    return {"status": "ok", "message": f"{settings.PROJECT_NAME} API is running"}
