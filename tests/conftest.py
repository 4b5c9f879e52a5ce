"""Shared test fixtures.

  backend      — scripted ``httpx.MockTransport`` backend; queue responses per route.
  stub_app     — the FastAPI stub backend over a small, known simulator.
  stub_client  — factory for clients wired to stub_app through ASGITransport.
  run          — run a coroutine to completion on a fresh event loop.
"""
import asyncio
from collections import Counter, defaultdict

import httpx
import pytest

from mediadash.api.app import create_app
from mediadash.services.simulator import COMPLETED, MediaBackendSimulator
from mediadash.ui.api_client import MediaDashClient

BASE_URL = "http://backend.test"


class ScriptedBackend:
    """Answer each route from a queue of scripted responses.

    A queued item may be a JSON-able value (sent with 200), an
    ``httpx.Response``, or an exception instance (raised as a transport
    failure).  The last item of a queue repeats forever.
    """

    def __init__(self) -> None:
        self._routes: dict[tuple[str, str], list] = defaultdict(list)
        self.calls: list[tuple[str, str]] = []

    def script(self, method: str, path: str, *responses) -> "ScriptedBackend":
        self._routes[(method, path)].extend(responses)
        return self

    def count(self, method: str, path: str) -> int:
        return Counter(self.calls)[(method, path)]

    def handler(self, request: httpx.Request) -> httpx.Response:
        key = (request.method, request.url.path)
        self.calls.append(key)
        queue = self._routes.get(key)
        if not queue:
            return httpx.Response(404, json={"detail": f"not scripted: {key}"})
        item = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(item, Exception):
            raise item
        if isinstance(item, httpx.Response):
            return item
        return httpx.Response(200, json=item)

    def client(self) -> MediaDashClient:
        return MediaDashClient(base_url=BASE_URL, transport=httpx.MockTransport(self.handler))


@pytest.fixture
def backend() -> ScriptedBackend:
    return ScriptedBackend()


@pytest.fixture
def run():
    return asyncio.run


@pytest.fixture
def simulator() -> MediaBackendSimulator:
    sim = MediaBackendSimulator(projects=2)
    sim.add_item("Morning bulletin", "Radio One")
    sim.add_item("Evening report", "TV Central")
    sim.add_item("Weekly recap", "Radio One", COMPLETED)
    return sim


@pytest.fixture
def stub_app(simulator):
    return create_app(simulator)


@pytest.fixture
def stub_client(stub_app):
    """Factory for clients wired to the stub app in-process."""
    def _make() -> MediaDashClient:
        return MediaDashClient(base_url=BASE_URL, transport=httpx.ASGITransport(app=stub_app))
    return _make
