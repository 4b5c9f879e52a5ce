"""Dashboard endpoints."""
from fastapi import APIRouter, Depends
from mediadash.api.deps import get_simulator
from mediadash.api.schemas.dashboard import Stats
from mediadash.services.simulator import MediaBackendSimulator

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("/stats", response_model=Stats)
def get_stats(sim: MediaBackendSimulator = Depends(get_simulator)) -> Stats:
    return sim.stats()
