import asyncio
import sys
import typer
from mediadash.config import settings
from mediadash.domain.exceptions import MediaDashError
from mediadash.logging import logger, get_run_id
from mediadash.ui import view
from mediadash.ui.api_client import MediaDashClient
from mediadash.ui.controller import (
    BatchOutcome, DashboardController, DashboardState, Notification, NotificationKind,
)

app = typer.Typer(no_args_is_help=True)

@app.callback()
def main(
    api_url: str = typer.Option(None, "--api-url", help="Backend base URL (overrides MEDIADASH_API_BASE_URL)"),
):
    """
    Media analysis dashboard CLI.
    """
    if api_url:
        settings.API_BASE_URL = api_url


def _print_snapshot(state: DashboardState) -> None:
    for card in view.stat_cards(state.stats, loading=state.loading):
        print(f"  {card.title + ':':<26} {card.value if card.value is not None else '…'}")
    print()
    rows = view.table_rows(state.latest_items)
    if not rows:
        print("  No media items.")
        return
    print(f"  {'Title':<40} {'Source':<24} Status")
    for row in rows:
        print(f"  {row['Title'][:40]:<40} {row['Source'][:24]:<24} {row['Status']}")


@app.command(name="doctor")
def doctor():
    """
    Check configuration and backend reachability.
    """
    logger.info("Running doctor check...")

    print("\n🩺 Media Dashboard Doctor\n")

    print("[Environment]")
    print(f"  Python: {sys.version.split()[0]}")
    print(f"  Run ID: {get_run_id()}")

    print("\n[Configuration]")
    print(f"  API_BASE_URL:        {settings.API_BASE_URL}")
    print(f"  HTTP_TIMEOUT:        {settings.HTTP_TIMEOUT}s")
    print(f"  REFRESH_INTERVAL:    {settings.REFRESH_INTERVAL}s")
    print(f"  PROGRESS_INTERVAL:   {settings.PROGRESS_INTERVAL}s")
    print(f"  PROGRESS_MAX_POLLS:  {settings.PROGRESS_MAX_POLLS}")

    async def _probe():
        async with MediaDashClient() as client:
            return await client.get_stats()

    print("\n[Backend]")
    try:
        stats = asyncio.run(_probe())
    except MediaDashError as e:
        print(f"  /dashboard/stats     ❌ {e.message}")
        print(f"\n{'─' * 50}")
        print("Result: backend unreachable\n")
        raise typer.Exit(code=1)

    print(f"  /dashboard/stats     ✅ {stats.total_items} items, {stats.awaiting} awaiting")
    print(f"\n{'─' * 50}")
    print("Result: all good ✅\n")


@app.command(name="snapshot")
def snapshot():
    """Fetch stats and the latest items once and print them."""
    async def _run() -> tuple[bool, DashboardState]:
        async with MediaDashClient() as client:
            controller = DashboardController(client)
            ok = await controller.refresh()
            return ok, controller.state

    ok, state = asyncio.run(_run())
    if not ok:
        print(f"❌ Failed: {state.last_error}")
        raise typer.Exit(code=1)
    _print_snapshot(state)


@app.command(name="watch")
def watch(
    ticks: int = typer.Option(0, help="Stop after this many refreshes (0 = until interrupted)"),
):
    """Refresh on the configured interval and print every snapshot."""
    async def _run() -> None:
        done = asyncio.Event()
        seen = 0

        def on_change(state: DashboardState) -> None:
            nonlocal seen
            seen += 1
            stamp = state.last_refreshed_at.strftime("%H:%M:%S") if state.last_refreshed_at else "--:--:--"
            print(f"\n[{stamp}]" + (f" ⚠️  {state.last_error}" if state.last_error else ""))
            _print_snapshot(state)
            if ticks and seen >= ticks:
                done.set()

        async with MediaDashClient() as client:
            async with DashboardController(client, on_change=on_change):
                await done.wait()

    try:
        asyncio.run(_run())
    except KeyboardInterrupt:
        print()


@app.command(name="process")
def process():
    """Process all awaiting items and follow the job until it ends."""
    last_label = None

    def on_change(state: DashboardState) -> None:
        nonlocal last_label
        label = view.progress_label(state.progress)
        if state.show_progress and label != last_label:
            last_label = label
            print(f"  {label}")

    def on_notify(notice: Notification) -> None:
        icon = "✅" if notice.kind is NotificationKind.SUCCESS else "❌"
        print(f"{icon} {notice.message}")

    async def _run():
        async with MediaDashClient() as client:
            controller = DashboardController(client, on_change=on_change, on_notify=on_notify)
            if await controller.process_all():
                return await controller.wait_for_batch()
            return controller.last_outcome

    outcome = asyncio.run(_run())
    if outcome is not BatchOutcome.COMPLETED:
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
