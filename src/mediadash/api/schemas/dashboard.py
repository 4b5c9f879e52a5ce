"""Dashboard DTOs: pure Pydantic, shared by the client and the stub backend."""
from __future__ import annotations
import math
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


class Stats(BaseModel):
    total_projects: int = Field(default=0, ge=0)
    total_items: int = Field(default=0, ge=0)
    awaiting: int = Field(default=0, ge=0)
    completed: int = Field(default=0, ge=0)


class MediaItem(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    id: int | str
    title: str
    media_source_name: str
    analysis_status: str


MediaItemList = TypeAdapter(list[MediaItem])


class ProgressState(BaseModel):
    """Live state of the backend batch job.

    Taken as reported: ``done`` is not checked against ``total`` and may go
    backwards between polls.
    """

    total: int = Field(default=0, ge=0)
    done: int = 0
    running: bool = False

    @property
    def percent(self) -> int:
        return progress_percent(self.total, self.done)


def progress_percent(total: int, done: int) -> int:
    """Whole-number completion percentage; 0 when there is nothing to do.

    Halves round up (``2.5`` -> ``3``), unlike the builtin ``round``.
    """
    if total <= 0:
        return 0
    return math.floor(100 * done / total + 0.5)


class ProcessAllResponse(BaseModel):
    model_config = ConfigDict(extra="allow")

    status: str = "started"
    total: int = 0
