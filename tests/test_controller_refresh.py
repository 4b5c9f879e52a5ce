"""Refresh loop: snapshot replacement, failure policy, teardown."""
import asyncio

import httpx

from mediadash.api.schemas.dashboard import Stats
from mediadash.ui.api_client import MediaDashClient
from mediadash.ui.controller import DashboardController


def _stats(n):
    return {"total_projects": n, "total_items": n * 10, "awaiting": n, "completed": n * 9}


def _items(tag, count=2):
    return [
        {"id": f"{tag}-{i}", "title": f"{tag} {i}", "media_source_name": "Radio", "analysis_status": "awaiting"}
        for i in range(count)
    ]


def test_refresh_replaces_snapshot(backend, run):
    backend.script("GET", "/dashboard/stats", _stats(1))
    backend.script("GET", "/media/latest/10", _items("a"))

    async def go():
        async with backend.client() as client:
            controller = DashboardController(client)
            ok = await controller.refresh()
            return ok, controller.state

    ok, state = run(go())
    assert ok is True
    assert state.stats == Stats(**_stats(1))
    assert [i.id for i in state.latest_items] == ["a-0", "a-1"]
    assert state.loading is False
    assert state.last_error is None
    assert state.last_refreshed_at is not None


def test_alternating_failures_keep_last_successful_snapshot(backend, run):
    backend.script(
        "GET", "/dashboard/stats",
        _stats(1),
        httpx.Response(500, json={"detail": "boom"}),
        _stats(3),
        httpx.ConnectError("down"),
    )
    # Items are only requested after stats succeed.
    backend.script("GET", "/media/latest/10", _items("first"), _items("third"))

    async def go():
        async with backend.client() as client:
            controller = DashboardController(client)
            seen = []
            for _ in range(4):
                ok = await controller.refresh()
                seen.append((ok, controller.state.stats.total_projects, controller.state.latest_items[0].id))
            return seen, controller.state

    seen, state = run(go())
    assert seen == [
        (True, 1, "first-0"),
        (False, 1, "first-0"),
        (True, 3, "third-0"),
        (False, 3, "third-0"),
    ]
    assert state.last_error is not None


def test_items_failure_does_not_apply_fresh_stats(backend, run):
    backend.script("GET", "/dashboard/stats", _stats(1), _stats(2))
    backend.script("GET", "/media/latest/10", _items("a"), httpx.Response(200, text="not json"))

    async def go():
        async with backend.client() as client:
            controller = DashboardController(client)
            await controller.refresh()
            ok = await controller.refresh()
            return ok, controller.state

    ok, state = run(go())
    assert ok is False
    assert state.stats.total_projects == 1


def test_first_failure_clears_loading(backend, run):
    backend.script("GET", "/dashboard/stats", httpx.ConnectError("down"))

    async def go():
        async with backend.client() as client:
            controller = DashboardController(client)
            assert controller.state.loading is True
            await controller.refresh()
            return controller.state

    state = run(go())
    assert state.loading is False
    assert state.stats == Stats()
    assert state.latest_items == []


def test_refresh_failure_is_logged(backend, run, caplog):
    backend.script("GET", "/dashboard/stats", httpx.Response(503, json={"detail": "maintenance"}))

    async def go():
        async with backend.client() as client:
            await DashboardController(client).refresh()

    with caplog.at_level("WARNING", logger="mediadash"):
        run(go())
    assert "Dashboard refresh failed" in caplog.text
    assert "maintenance" in caplog.text


def test_loop_refreshes_immediately_and_on_interval(backend, run):
    backend.script("GET", "/dashboard/stats", _stats(1))
    backend.script("GET", "/media/latest/10", _items("a"))

    async def go():
        async with backend.client() as client:
            ticks = []
            got_three = asyncio.Event()

            def on_change(state):
                ticks.append(state.stats.total_projects)
                if len(ticks) >= 3:
                    got_three.set()

            async with DashboardController(client, refresh_interval=0.01, on_change=on_change):
                await asyncio.wait_for(got_three.wait(), timeout=2)
            return ticks

    ticks = run(go())
    assert len(ticks) >= 3
    assert backend.count("GET", "/dashboard/stats") >= 3


def test_start_twice_runs_one_loop(backend, run):
    backend.script("GET", "/dashboard/stats", _stats(1))
    backend.script("GET", "/media/latest/10", _items("a"))

    async def go():
        async with backend.client() as client:
            controller = DashboardController(client, refresh_interval=60)
            controller.start()
            controller.start()
            await asyncio.sleep(0.05)
            await controller.aclose()

    run(go())
    assert backend.count("GET", "/dashboard/stats") == 1


def test_no_callbacks_after_stop(backend, run):
    backend.script("GET", "/dashboard/stats", _stats(1))
    backend.script("GET", "/media/latest/10", _items("a"))

    async def go():
        async with backend.client() as client:
            changes = []
            first = asyncio.Event()

            def on_change(state):
                changes.append(state.stats.total_projects)
                first.set()

            controller = DashboardController(client, refresh_interval=0.02, on_change=on_change)
            controller.start()
            await asyncio.wait_for(first.wait(), timeout=2)
            controller.stop()
            calls_at_stop = len(backend.calls)
            count_at_stop = len(changes)
            await asyncio.sleep(0.1)
            assert controller.running is False
            return count_at_stop, len(changes), calls_at_stop, len(backend.calls)

    count_at_stop, count_after, calls_at_stop, calls_after = run(go())
    assert count_after == count_at_stop
    assert calls_after == calls_at_stop


def test_response_arriving_after_stop_is_dropped(run):
    async def go():
        release = asyncio.Event()

        async def handler(request):
            await release.wait()
            if request.url.path == "/dashboard/stats":
                return httpx.Response(200, json=_stats(5))
            return httpx.Response(200, json=_items("late"))

        async with MediaDashClient(base_url="http://backend.test", transport=httpx.MockTransport(handler)) as client:
            changes = []
            controller = DashboardController(client, on_change=changes.append)
            pending = asyncio.create_task(controller.refresh())
            await asyncio.sleep(0.01)
            controller.stop()
            release.set()
            ok = await pending
            return ok, changes, controller.state

    ok, changes, state = run(go())
    assert ok is False
    assert changes == []
    assert state.stats == Stats()
    assert state.loading is True


def test_refresh_after_stop_is_a_no_op(backend, run):
    async def go():
        async with backend.client() as client:
            controller = DashboardController(client)
            controller.stop()
            return await controller.refresh()

    assert run(go()) is False
    assert backend.calls == []


def _corrupt_gzip():
    return httpx.Response(
        200, headers={"Content-Encoding": "gzip"}, stream=httpx.ByteStream(b"not-gzip"),
    )


def test_loop_survives_undecodable_response(backend, run):
    backend.script("GET", "/dashboard/stats", _corrupt_gzip(), _stats(2))
    backend.script("GET", "/media/latest/10", _items("a"))

    async def go():
        async with backend.client() as client:
            applied = asyncio.Event()

            def on_change(state):
                if state.stats.total_projects == 2:
                    applied.set()

            controller = DashboardController(client, refresh_interval=0.01, on_change=on_change)
            async with controller:
                await asyncio.wait_for(applied.wait(), timeout=2)
                return controller.running, controller.state

    running, state = run(go())
    assert running is True
    assert state.loading is False
    assert backend.count("GET", "/dashboard/stats") >= 2


class _FlakyClient:
    """Raises a non-client error on the first stats call, then succeeds."""

    def __init__(self):
        self.stats_calls = 0

    async def get_stats(self):
        self.stats_calls += 1
        if self.stats_calls == 1:
            raise RuntimeError("unexpected failure")
        return Stats(**_stats(4))

    async def get_latest_items(self, limit=None):
        return []


def test_loop_survives_unexpected_exception(run, caplog):
    client = _FlakyClient()

    async def go():
        applied = asyncio.Event()

        def on_change(state):
            if state.stats.total_projects == 4:
                applied.set()

        controller = DashboardController(client, refresh_interval=0.01, on_change=on_change)
        async with controller:
            await asyncio.wait_for(applied.wait(), timeout=2)
            return controller.running

    with caplog.at_level("ERROR", logger="mediadash"):
        assert run(go()) is True
    assert client.stats_calls >= 2
    assert "Unexpected error during dashboard refresh" in caplog.text
