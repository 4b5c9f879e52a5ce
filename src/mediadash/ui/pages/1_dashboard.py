import asyncio

import streamlit as st

from mediadash.config import settings
from mediadash.logging import logger
from mediadash.ui import view
from mediadash.ui.api_client import get_client
from mediadash.ui.controller import DashboardController, NotificationKind
from mediadash.ui.state import get_dashboard_state, pop_notifications, push_notification

st.title("Dashboard")

state = get_dashboard_state()

for notice in pop_notifications():
    if notice.kind is NotificationKind.ERROR:
        st.error(notice.message)
    else:
        st.toast(notice.message)


def _chart_values(stats):
    data = view.chart_data(stats)
    dataset = data["datasets"][0]
    return [
        {"status": label, "count": count, "color": color}
        for label, count, color in zip(data["labels"], dataset["data"], dataset["backgroundColor"])
    ]


def _color_encoding() -> dict:
    return {
        "field": "status",
        "type": "nominal",
        "scale": {"domain": view.CHART_LABELS, "range": view.CHART_COLORS},
    }


async def _refresh() -> None:
    async with get_client() as client:
        await DashboardController(client, state=state).refresh()


async def _process_all(bar) -> None:
    def on_change(s):
        if s.show_progress:
            bar.progress(view.progress_fraction(s.progress), text=view.progress_label(s.progress))

    async with get_client() as client:
        controller = DashboardController(
            client, state=state, on_change=on_change, on_notify=push_notification,
        )
        if await controller.process_all():
            await controller.wait_for_batch()


# --- Process All ---
clicked = st.button(
    view.process_button_label(state.processing),
    disabled=state.processing,
    type="primary",
)
if clicked:
    logger.info("Process-all requested from dashboard page")
    bar = st.progress(0.0, text=view.progress_label(state.progress))
    asyncio.run(_process_all(bar))
    st.rerun()


@st.fragment(run_every=settings.REFRESH_INTERVAL)
def snapshot() -> None:
    asyncio.run(_refresh())

    # --- Status Cards ---
    for col, card in zip(st.columns(4), view.stat_cards(state.stats, loading=state.loading)):
        if card.value is None:
            col.metric(card.title, "…")
        else:
            col.metric(card.title, card.value)

    if state.last_error and not state.loading:
        st.caption(f"Showing last known data: {state.last_error}")

    st.divider()

    # --- Charts ---
    values = _chart_values(state.stats)
    c1, c2 = st.columns(2)
    with c1:
        st.subheader("Media Processing Overview")
        st.vega_lite_chart(
            {
                "data": {"values": values},
                "mark": "bar",
                "encoding": {
                    "x": {"field": "status", "type": "nominal", "sort": view.CHART_LABELS},
                    "y": {"field": "count", "type": "quantitative"},
                    "color": _color_encoding(),
                },
            },
            use_container_width=True,
        )
    with c2:
        st.subheader("Media Items Distribution")
        st.vega_lite_chart(
            {
                "data": {"values": values},
                "mark": "arc",
                "encoding": {
                    "theta": {"field": "count", "type": "quantitative"},
                    "color": _color_encoding(),
                },
            },
            use_container_width=True,
        )

    st.divider()

    # --- Latest Media ---
    st.subheader(f"Latest {settings.LATEST_LIMIT} Media Items")
    rows = view.table_rows(state.latest_items)
    if not rows:
        st.info("No media items yet.")
    else:
        st.dataframe(rows, hide_index=True, column_order=view.TABLE_COLUMNS, use_container_width=True)


snapshot()
