"""Media listing and batch-processing endpoints."""
from fastapi import APIRouter, Depends, Path
from mediadash.api.deps import get_simulator
from mediadash.api.schemas.dashboard import MediaItem, ProcessAllResponse, ProgressState
from mediadash.services.simulator import MediaBackendSimulator

router = APIRouter(prefix="/media", tags=["media"])


@router.get("/latest/{limit}", response_model=list[MediaItem])
def latest_items(
    limit: int = Path(ge=1, le=100),
    sim: MediaBackendSimulator = Depends(get_simulator),
) -> list[MediaItem]:
    return sim.latest(limit)


@router.post("/process/all", response_model=ProcessAllResponse, status_code=202)
def process_all(sim: MediaBackendSimulator = Depends(get_simulator)) -> ProcessAllResponse:
    job = sim.start_job()
    return ProcessAllResponse(status="started", total=job.total)


@router.get("/process/progress", response_model=ProgressState)
def progress(sim: MediaBackendSimulator = Depends(get_simulator)) -> ProgressState:
    return sim.progress()
