"""Streamlit entry point: ``streamlit run src/mediadash/ui/app.py``."""
import streamlit as st

from mediadash.ui.state import get_api_url, init_session, set_api_url

st.set_page_config(page_title="Media Dashboard", layout="wide")
init_session()

st.title("Media Analysis")
st.write("Open **Dashboard** in the sidebar for live stats and batch processing.")

with st.sidebar:
    url = st.text_input("Backend URL", value=get_api_url())
    if url != get_api_url():
        set_api_url(url.strip() or None)
        st.rerun()
