"""FastAPI dependencies."""
from __future__ import annotations
from fastapi import Request
from mediadash.services.simulator import MediaBackendSimulator


def get_simulator(request: Request) -> MediaBackendSimulator:
    """Return the simulator owned by this app instance."""
    return request.app.state.simulator
