"""Session-state helpers for the Streamlit UI.

No HTTP here; only reads/writes ``st.session_state``.
"""
import streamlit as st
from typing import List, Optional

from mediadash.config import settings
from mediadash.ui.controller import DashboardState, Notification


def init_session() -> None:
    """Initialize session state variables."""
    if "dashboard_state" not in st.session_state:
        st.session_state["dashboard_state"] = DashboardState()
    if "notifications" not in st.session_state:
        st.session_state["notifications"] = []


def get_dashboard_state() -> DashboardState:
    """Dashboard snapshot kept across reruns; a failed refresh leaves it as is."""
    init_session()
    return st.session_state["dashboard_state"]


def push_notification(notification: Notification) -> None:
    init_session()
    st.session_state["notifications"].append(notification)


def pop_notifications() -> List[Notification]:
    """Return and clear pending notifications."""
    init_session()
    pending = st.session_state["notifications"]
    st.session_state["notifications"] = []
    return pending


def get_api_url() -> str:
    return st.session_state.get("mediadash_api_url", settings.API_BASE_URL)


def set_api_url(url: Optional[str]) -> None:
    """Point this session at another backend; ``None`` restores the default."""
    if url:
        st.session_state["mediadash_api_url"] = url
    else:
        st.session_state.pop("mediadash_api_url", None)
