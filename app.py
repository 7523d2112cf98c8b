"""
Mining Ledger: Streamlit UI entry point.
"""

import streamlit as st

# Load .env first so API_BASE_URL and friends are picked up
from src.utils.config import load_config, log_file, log_level, token_store_path
load_config()

from src.infrastructure.storage.token_store import FileTokenStore, MemoryTokenStore
from src.services.data_service import DataService
from src.services.session_manager import SessionState, build_session
from src.ui.views import PAGES, render_auth
from src.utils.logger import setup_logger, get_logger

setup_logger("mining_ledger", level=log_level(), log_file=log_file())
log = get_logger()

st.set_page_config(page_title="Mining Ledger", layout="wide")
st.title("Mining Ledger")

# One session manager and token store per browser session.
if "session" not in st.session_state:
    token_path = token_store_path()
    if token_path is not None:
        log.warning("AUTH_TOKEN_FILE is set; every visitor shares the token in %s", token_path)
        token_store = FileTokenStore(token_path)
    else:
        token_store = MemoryTokenStore()
    session, api = build_session(token_store=token_store)
    st.session_state.session = session
    st.session_state.data_service = DataService(api)
    with st.spinner("Checking your session…"):
        state = session.initialize()
    log.info("Session initialized: %s", state.value)

session = st.session_state.session
data_service = st.session_state.data_service

if session.state is not SessionState.AUTHENTICATED:
    render_auth(session)
    st.stop()

with st.sidebar:
    user = session.user
    st.caption(f"Signed in as **{user.name}** ({user.role})")
    page = st.radio("Go to", list(PAGES), label_visibility="collapsed")
    st.divider()
    if st.button("Sign out", use_container_width=True):
        session.logout()
        st.session_state.pop("password_reset", None)
        st.rerun()

PAGES[page](session, data_service)
