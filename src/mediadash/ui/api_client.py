"""Typed HTTP client for the media-analysis backend.

Only imports from ``mediadash.api.schemas``, never the stub backend itself.
Instantiate via ``get_client()`` inside Streamlit pages; elsewhere construct
``MediaDashClient`` directly and close it with ``aclose()`` or ``async with``.
"""
from __future__ import annotations

from typing import Any

import httpx
from pydantic import ValidationError

from mediadash.api.schemas.dashboard import (
    MediaItem, MediaItemList, ProgressState, Stats,
)
from mediadash.config import settings
from mediadash.domain.exceptions import (
    APIError, BackendUnavailableError, InvalidResponseError,
)


class MediaDashClient:
    """One method per backend endpoint.  All return pure Pydantic DTOs."""

    def __init__(
        self,
        base_url: str | None = None,
        *,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._client = httpx.AsyncClient(
            base_url=base_url or settings.API_BASE_URL,
            timeout=timeout if timeout is not None else settings.HTTP_TIMEOUT,
            transport=transport,
        )

    async def __aenter__(self) -> MediaDashClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _request(self, method: str, path: str) -> httpx.Response:
        try:
            resp = await self._client.request(method, path)
        except httpx.DecodingError as exc:
            raise InvalidResponseError(f"{method} {path}: body could not be decoded: {exc}") from exc
        except httpx.RequestError as exc:
            raise BackendUnavailableError(f"{method} {path} failed: {exc!r}") from exc
        self._raise_for_status(resp)
        return resp

    def _raise_for_status(self, resp: httpx.Response) -> None:
        if resp.is_success:
            return
        try:
            detail = resp.json().get("detail", resp.text)
        except Exception:
            detail = resp.text
        raise APIError(resp.status_code, str(detail))

    def _json(self, resp: httpx.Response) -> Any:
        try:
            return resp.json()
        except ValueError as exc:
            raise InvalidResponseError(
                f"{resp.request.url.path}: response is not JSON"
            ) from exc

    # ------------------------------------------------------------------
    # Dashboard
    # ------------------------------------------------------------------

    async def get_stats(self) -> Stats:
        resp = await self._request("GET", "/dashboard/stats")
        try:
            return Stats.model_validate(self._json(resp))
        except ValidationError as exc:
            raise InvalidResponseError(f"/dashboard/stats: {exc}") from exc

    async def get_latest_items(self, limit: int | None = None) -> list[MediaItem]:
        limit = limit or settings.LATEST_LIMIT
        path = f"/media/latest/{limit}"
        resp = await self._request("GET", path)
        try:
            items = MediaItemList.validate_python(self._json(resp))
        except ValidationError as exc:
            raise InvalidResponseError(f"{path}: {exc}") from exc
        return items[:limit]

    # ------------------------------------------------------------------
    # Batch processing
    # ------------------------------------------------------------------

    async def start_process_all(self) -> None:
        """Ask the backend to process every awaiting item.

        The body is ignored; only the status code decides whether the job
        started.
        """
        await self._request("POST", "/media/process/all")

    async def get_progress(self) -> ProgressState:
        resp = await self._request("GET", "/media/process/progress")
        try:
            return ProgressState.model_validate(self._json(resp))
        except ValidationError as exc:
            raise InvalidResponseError(f"/media/process/progress: {exc}") from exc


# ------------------------------------------------------------------
# Streamlit helper: base URL per session
# ------------------------------------------------------------------

def get_client() -> MediaDashClient:
    """Return a fresh ``MediaDashClient`` for the current Streamlit session.

    A new client per script run: ``httpx.AsyncClient`` pools are bound to the
    event loop that opened them, and each rerun drives its own loop.
    """
    from mediadash.ui.state import get_api_url

    return MediaDashClient(base_url=get_api_url())
