"""Pure view-model helpers for the dashboard page.

No Streamlit here, so the page logic can be tested without a browser.
"""
from __future__ import annotations

from dataclasses import dataclass

from mediadash.api.schemas.dashboard import MediaItem, ProgressState, Stats

CHART_LABELS = ["Awaiting", "Completed"]
CHART_COLORS = ["#A855F7", "#4ADE80"]
TABLE_COLUMNS = ["Title", "Source", "Status"]

PROCESS_BUTTON_IDLE = "Process All Awaiting Items"
PROCESS_BUTTON_BUSY = "Processing..."


@dataclass(frozen=True)
class Card:
    title: str
    value: str | None  # None while the first refresh is pending
    color: str


def stat_cards(stats: Stats, *, loading: bool = False) -> list[Card]:
    rows = [
        ("Total Projects", stats.total_projects, "#5E2B97"),
        ("Total Media Items", stats.total_items, "#8A2BE2"),
        ("Awaiting AI Processing", stats.awaiting, "#A553D6"),
        ("Completed Extractions", stats.completed, "#C084FC"),
    ]
    return [
        Card(title=title, value=None if loading else str(value), color=color)
        for title, value, color in rows
    ]


def chart_data(stats: Stats) -> dict:
    """Chart.js-shaped payload shared by the bar and the pie chart."""
    return {
        "labels": list(CHART_LABELS),
        "datasets": [
            {
                "label": "Count",
                "backgroundColor": list(CHART_COLORS),
                "data": [stats.awaiting, stats.completed],
            }
        ],
    }


def table_rows(items: list[MediaItem]) -> list[dict[str, str]]:
    return [
        {
            "Title": item.title,
            "Source": item.media_source_name,
            "Status": item.analysis_status,
        }
        for item in items
    ]


def progress_label(progress: ProgressState) -> str:
    return f"Processing: {progress.done}/{progress.total} ({progress.percent}%)"


def progress_fraction(progress: ProgressState) -> float:
    """Bar fill in [0, 1]; backend values outside the range are clipped."""
    return min(max(progress.percent, 0), 100) / 100


def process_button_label(processing: bool) -> str:
    return PROCESS_BUTTON_BUSY if processing else PROCESS_BUTTON_IDLE
