"""In-memory stand-in for the media-analysis backend.

Backs the stub API in ``mediadash.api.app``.  A batch job walks the awaiting
items in order and completes one item per progress poll, so a client can watch
it finish without any real analysis running.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from threading import Lock

from mediadash.api.schemas.dashboard import MediaItem, ProgressState, Stats
from mediadash.domain.exceptions import ConflictError

AWAITING = "awaiting"
COMPLETED = "completed"


@dataclass
class _Job:
    item_ids: list
    done: int = 0

    @property
    def running(self) -> bool:
        return self.done < len(self.item_ids)


@dataclass
class MediaBackendSimulator:
    projects: int = 1
    items: list[MediaItem] = field(default_factory=list)
    _job: _Job | None = None
    _lock: Lock = field(default_factory=Lock, repr=False)

    def add_item(self, title: str, source: str, status: str = AWAITING) -> MediaItem:
        with self._lock:
            item = MediaItem(
                id=len(self.items) + 1,
                title=title,
                media_source_name=source,
                analysis_status=status,
            )
            self.items.append(item)
            return item

    def stats(self) -> Stats:
        with self._lock:
            awaiting = sum(1 for i in self.items if i.analysis_status == AWAITING)
            return Stats(
                total_projects=self.projects,
                total_items=len(self.items),
                awaiting=awaiting,
                completed=len(self.items) - awaiting,
            )

    def latest(self, limit: int) -> list[MediaItem]:
        """Newest first; items are appended in creation order."""
        with self._lock:
            return list(reversed(self.items))[:max(limit, 0)]

    def start_job(self) -> ProgressState:
        with self._lock:
            if self._job is not None and self._job.running:
                raise ConflictError("A processing job is already running")
            ids = [i.id for i in self.items if i.analysis_status == AWAITING]
            self._job = _Job(item_ids=ids)
            return self._progress_locked()

    def progress(self) -> ProgressState:
        """Report the job state, then advance the job by one item."""
        with self._lock:
            state = self._progress_locked()
            if self._job is not None and self._job.running:
                self._complete_locked(self._job.item_ids[self._job.done])
                self._job.done += 1
            return state

    def _progress_locked(self) -> ProgressState:
        if self._job is None:
            return ProgressState()
        return ProgressState(
            total=len(self._job.item_ids),
            done=self._job.done,
            running=self._job.running,
        )

    def _complete_locked(self, item_id) -> None:
        for idx, item in enumerate(self.items):
            if item.id == item_id:
                self.items[idx] = item.model_copy(update={"analysis_status": COMPLETED})
                return


def seeded_simulator() -> MediaBackendSimulator:
    sim = MediaBackendSimulator(projects=3)
    for n in range(1, 13):
        status = COMPLETED if n % 3 == 0 else AWAITING
        sim.add_item(f"Clip {n}", "Newsroom Archive" if n % 2 else "Field Uploads", status)
    return sim
