# backend/ecomap/api/deps.py
from fastapi import Request

from ecomap.services.orchestrator import EcoScoreOrchestrator


def get_orchestrator(request: Request) -> EcoScoreOrchestrator:
    """
    One orchestrator per app (built in the lifespan), so caches live as long
    as the process and never leak between app instances.
    """
    orchestrator = getattr(request.app.state, "orchestrator", None)
    if orchestrator is None:
        orchestrator = EcoScoreOrchestrator()
        request.app.state.orchestrator = orchestrator
    return orchestrator
