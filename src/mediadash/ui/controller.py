"""Dashboard controller: the refresh loop, the batch trigger and the progress loop.

All work runs on one asyncio event loop.  Two tasks may be alive at once:

* the refresh task, which lives as long as the controller is started, and
* the progress task, which lives for one batch run and ends itself.

``stop()`` tears the controller down for good.  Responses that arrive after
that point are dropped: no state is touched and no listener is called.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Optional

from mediadash.api.schemas.dashboard import MediaItem, ProgressState, Stats
from mediadash.config import settings
from mediadash.domain.exceptions import MediaDashError
from mediadash.ui.api_client import MediaDashClient

logger = logging.getLogger(__name__)


class BatchOutcome(str, Enum):
    COMPLETED = "completed"
    TRIGGER_FAILED = "trigger_failed"
    POLL_FAILED = "poll_failed"
    TIMED_OUT = "timed_out"


class NotificationKind(str, Enum):
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class Notification:
    kind: NotificationKind
    message: str
    outcome: Optional[BatchOutcome] = None


@dataclass
class DashboardState:
    stats: Stats = field(default_factory=Stats)
    latest_items: list[MediaItem] = field(default_factory=list)
    progress: ProgressState = field(default_factory=ProgressState)
    loading: bool = True
    processing: bool = False
    last_error: Optional[str] = None
    last_refreshed_at: Optional[datetime] = None

    @property
    def progress_percent(self) -> int:
        return self.progress.percent

    @property
    def show_progress(self) -> bool:
        return self.processing or self.progress.running


StateListener = Callable[[DashboardState], None]
NotificationListener = Callable[[Notification], None]


class DashboardController:
    """Owns the dashboard state and keeps it in step with the backend."""

    def __init__(
        self,
        client: MediaDashClient,
        *,
        state: DashboardState | None = None,
        refresh_interval: float | None = None,
        progress_interval: float | None = None,
        progress_max_polls: int | None = None,
        latest_limit: int | None = None,
        on_change: StateListener | None = None,
        on_notify: NotificationListener | None = None,
    ) -> None:
        self._client = client
        self._state = state if state is not None else DashboardState()
        self._refresh_interval = refresh_interval or settings.REFRESH_INTERVAL
        self._progress_interval = progress_interval or settings.PROGRESS_INTERVAL
        self._progress_max_polls = progress_max_polls or settings.PROGRESS_MAX_POLLS
        self._latest_limit = latest_limit or settings.LATEST_LIMIT
        self._on_change = on_change
        self._on_notify = on_notify

        self._closed = False
        self._refresh_task: asyncio.Task | None = None
        self._batch_task: asyncio.Task | None = None
        self._last_outcome: BatchOutcome | None = None

    @property
    def state(self) -> DashboardState:
        return self._state

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def running(self) -> bool:
        return self._refresh_task is not None and not self._refresh_task.done()

    @property
    def last_outcome(self) -> BatchOutcome | None:
        return self._last_outcome

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> DashboardController:
        self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    def start(self) -> None:
        """Refresh now, then every ``refresh_interval`` seconds until stopped."""
        if self._closed:
            raise RuntimeError("Dashboard controller has been stopped")
        if self.running:
            return
        self._refresh_task = asyncio.create_task(self._refresh_loop())

    def stop(self) -> None:
        """Cancel both loops.  The controller cannot be restarted."""
        if self._closed:
            return
        self._closed = True
        for task in (self._refresh_task, self._batch_task):
            if task is not None and not task.done():
                task.cancel()
        logger.debug("Dashboard controller stopped")

    async def aclose(self) -> None:
        self.stop()
        current = asyncio.current_task()
        tasks = [
            t for t in (self._refresh_task, self._batch_task)
            if t is not None and t is not current
        ]
        await asyncio.gather(*tasks, return_exceptions=True)

    # ------------------------------------------------------------------
    # Refresh
    # ------------------------------------------------------------------

    async def refresh(self) -> bool:
        """Fetch stats and the latest items; replace both on success.

        Failures are logged and leave the previous snapshot in place.
        """
        if self._closed:
            return False
        try:
            stats = await self._client.get_stats()
            items = await self._client.get_latest_items(self._latest_limit)
        except MediaDashError as exc:
            if self._closed:
                return False
            logger.warning("Dashboard refresh failed: %s", exc.message)
            self._state.last_error = exc.message
            self._state.loading = False
            self._changed()
            return False

        if self._closed:
            logger.debug("Dropping refresh result that arrived after stop")
            return False
        self._state.stats = stats
        self._state.latest_items = items
        self._state.loading = False
        self._state.last_error = None
        self._state.last_refreshed_at = datetime.now(timezone.utc)
        self._changed()
        return True

    async def _refresh_loop(self) -> None:
        while not self._closed:
            try:
                await self.refresh()
            except Exception:
                logger.exception("Unexpected error during dashboard refresh")
                if not self._closed and self._state.loading:
                    self._state.loading = False
                    self._changed()
            await asyncio.sleep(self._refresh_interval)

    # ------------------------------------------------------------------
    # Batch processing
    # ------------------------------------------------------------------

    async def process_all(self) -> bool:
        """Start the backend batch job and begin polling its progress.

        Returns False without contacting the backend while a batch is already
        being tracked, and False if the backend refused the trigger.
        """
        if self._closed:
            return False
        if self._state.processing:
            logger.warning("Batch processing already in progress; trigger ignored")
            return False

        self._state.processing = True
        self._last_outcome = None
        self._batch_task = None
        self._changed()

        try:
            await self._client.start_process_all()
        except MediaDashError as exc:
            if self._closed:
                return False
            logger.error("Failed to start batch processing: %s", exc.message)
            self._finish_batch(
                BatchOutcome.TRIGGER_FAILED,
                f"Could not start processing: {exc.message}",
            )
            return False
        except Exception as exc:
            if self._closed:
                return False
            logger.exception("Failed to start batch processing")
            self._finish_batch(
                BatchOutcome.TRIGGER_FAILED,
                f"Could not start processing: {exc!r}",
            )
            return False

        if self._closed:
            return False
        logger.info("Batch processing started; polling every %ss", self._progress_interval)
        self._batch_task = asyncio.create_task(self._progress_loop())
        return True

    async def wait_for_batch(self) -> BatchOutcome | None:
        """Wait for the current batch run to end and return how it ended.

        Returns None if the controller was stopped before the run ended.
        """
        task = self._batch_task
        if task is None:
            return self._last_outcome
        try:
            return await task
        except asyncio.CancelledError:
            if task.cancelled():
                return None
            raise

    async def poll_progress(self) -> ProgressState | None:
        """One progress tick: fetch, replace, notify.  None once stopped."""
        progress = await self._client.get_progress()
        if self._closed:
            return None
        self._state.progress = progress
        self._changed()
        return progress

    async def _progress_loop(self) -> BatchOutcome | None:
        polls = 0
        while True:
            await asyncio.sleep(self._progress_interval)
            polls += 1
            try:
                progress = await self.poll_progress()
            except MediaDashError as exc:
                if self._closed:
                    return None
                logger.error("Progress poll %d failed: %s", polls, exc.message)
                return self._finish_batch(
                    BatchOutcome.POLL_FAILED,
                    f"Lost track of processing: {exc.message}",
                )
            except Exception as exc:
                if self._closed:
                    return None
                logger.exception("Progress poll %d failed unexpectedly", polls)
                return self._finish_batch(
                    BatchOutcome.POLL_FAILED,
                    f"Lost track of processing: {exc!r}",
                )
            if progress is None:
                return None

            logger.debug(
                "Progress poll %d: %d/%d running=%s",
                polls, progress.done, progress.total, progress.running,
            )
            if not progress.running:
                outcome = self._finish_batch(BatchOutcome.COMPLETED, "Processing Complete!")
                try:
                    await self.refresh()
                except Exception:
                    logger.exception("Follow-up refresh after batch failed")
                return outcome
            if polls >= self._progress_max_polls:
                logger.error("Batch still running after %d polls; giving up", polls)
                return self._finish_batch(
                    BatchOutcome.TIMED_OUT,
                    f"Processing did not finish after {polls} progress checks",
                )

    def _finish_batch(self, outcome: BatchOutcome, message: str) -> BatchOutcome:
        self._state.processing = False
        self._last_outcome = outcome
        if outcome is BatchOutcome.COMPLETED:
            logger.info("Batch processing complete")
            kind = NotificationKind.SUCCESS
        else:
            self._state.last_error = message
            kind = NotificationKind.ERROR
        self._changed()
        self._notify(Notification(kind=kind, message=message, outcome=outcome))
        return outcome

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------

    def _changed(self) -> None:
        if self._closed or self._on_change is None:
            return
        try:
            self._on_change(self._state)
        except Exception:
            logger.exception("State listener failed")

    def _notify(self, notification: Notification) -> None:
        if self._closed or self._on_notify is None:
            return
        try:
            self._on_notify(notification)
        except Exception:
            logger.exception("Notification listener failed")
