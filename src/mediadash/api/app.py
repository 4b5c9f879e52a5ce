"""FastAPI application factory for the stub backend.

Run locally with ``uvicorn mediadash.api.app:create_app --factory``.
"""
from __future__ import annotations
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from mediadash.domain.exceptions import ConflictError
from mediadash.services.simulator import MediaBackendSimulator, seeded_simulator


def create_app(simulator: MediaBackendSimulator | None = None) -> FastAPI:
    app = FastAPI(
        title="Media Analysis Stub API",
        version="0.1.0",
    )
    app.state.simulator = simulator if simulator is not None else seeded_simulator()

    # Import routers inside create_app() to avoid circular imports at module load time
    from mediadash.api.routers.dashboard import router as dashboard_router
    from mediadash.api.routers.media import router as media_router

    app.include_router(dashboard_router)
    app.include_router(media_router)

    @app.exception_handler(ConflictError)
    def _conflict(request: Request, exc: ConflictError) -> JSONResponse:
        return JSONResponse(status_code=409, content={"detail": exc.message})

    return app
