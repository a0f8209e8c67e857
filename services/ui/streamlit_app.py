from __future__ import annotations

import json
import logging

import streamlit as st

from nlq.client.http_client import NLQClient
from nlq.config import get_widget_config
from nlq.core.normalizer import GridStatus
from nlq.core.session import Lifecycle, QuerySessionController
from nlq.core.sql_tables import referenced_tables
from nlq.utils.formatting import grid_to_frame, grid_to_markdown, page_count

from nlq.utils.logging import setup_logging
setup_logging()
logger = logging.getLogger(__name__)

INPUT_KEY = "nlq_query_input"


# -----------------------------
# Helpers
# -----------------------------
def get_controller() -> QuerySessionController:
    """One controller per browser session; the catalog is loaded on first use."""
    if "nlq_controller" not in st.session_state:
        client = NLQClient.from_config(CONFIG)
        st.session_state.nlq_controller = QuerySessionController.mount(client)
        logger.info("Query widget mounted against %s", CONFIG.api_url)
    return st.session_state.nlq_controller


def on_example(text: str) -> None:
    st.session_state[INPUT_KEY] = text
    get_controller().select_example(text)


def reset_paging() -> None:
    st.session_state.pop("nlq_page", None)


def on_retry(text: str) -> None:
    st.session_state[INPUT_KEY] = text
    reset_paging()
    get_controller().retry_with_suggestion(text)


def on_dismiss_error() -> None:
    get_controller().dismiss_error()


def render_grid(grid) -> None:
    frame = grid_to_frame(grid)
    size = st.selectbox("Rows per page", [10, 20, 50, 100], index=_page_size_index(), key="nlq_page_size")
    pages = page_count(len(frame), size)
    page = 1
    if pages > 1:
        page = st.number_input("Page", min_value=1, max_value=pages, value=1, step=1, key="nlq_page")
    start = (int(page) - 1) * size
    st.dataframe(frame.iloc[start:start + size], use_container_width=True)
    st.caption(f"{len(frame)} rows")
    with st.expander("Copy as Markdown", expanded=False):
        st.code(grid_to_markdown(grid), language="markdown")


def _page_size_index() -> int:
    sizes = [10, 20, 50, 100]
    return sizes.index(CONFIG.page_size) if CONFIG.page_size in sizes else 0


def render_malformed(response) -> None:
    st.warning("Unexpected data format")
    suggestion = get_controller().mismatch_suggestion()
    if suggestion:
        st.write(suggestion.message)
        st.button(
            f'Retry with: "{suggestion.suggested_query}"',
            type="primary",
            on_click=on_retry,
            args=(suggestion.suggested_query,),
            key="nlq_retry",
        )
    st.markdown("The data returned may not match the expected format. Please check the raw response for details.")
    with st.expander("Show raw response", expanded=False):
        st.code(json.dumps(response.raw_payload, indent=2, default=str), language="json")


# -----------------------------
# UI config
# -----------------------------
CONFIG = get_widget_config()

st.set_page_config(page_title="Natural Language Query", layout="wide")
st.title("Natural Language Query")
st.markdown(
    "Ask questions about your data in plain English. "
    "The system will convert your query to SQL and execute it."
)

controller = get_controller()

st.sidebar.header("Backend")
st.sidebar.code(CONFIG.api_url)
show_sql = st.sidebar.checkbox("Show SQL", value=True)

if st.sidebar.button("Reload tables and examples"):
    logger.info("Reloading catalog")
    controller.refresh_catalog()

with st.sidebar.expander("API status", expanded=False):
    try:
        h = controller.client.health()
        st.write(h.model_dump(by_alias=True))
    except Exception as e:
        logger.error("API health check failed: %s", e, exc_info=True)
        st.error(f"API unreachable: {e}")


# -----------------------------
# Query input
# -----------------------------
if INPUT_KEY not in st.session_state:
    st.session_state[INPUT_KEY] = controller.query_text

# Ctrl+Enter inside the text area submits the form
with st.form("nlq_form", clear_on_submit=False):
    st.text_area(
        "Question",
        key=INPUT_KEY,
        placeholder="Ask me anything about your data... "
        "(e.g., 'Show all regions' or 'How many employees in each department?')",
        height=100,
    )
    submitted = st.form_submit_button("Ask", type="primary", disabled=controller.loading)

controller.set_query_text(st.session_state[INPUT_KEY])
if submitted:
    reset_paging()
    with st.spinner("Processing your query..."):
        controller.submit()


# -----------------------------
# Catalog
# -----------------------------
catalog = controller.catalog

if catalog.tables:
    st.markdown("**Available Tables:** " + " ".join(f"`{t}`" for t in catalog.tables))

if catalog.examples:
    st.markdown("**Try these examples:**")
    shown = catalog.examples[: CONFIG.max_examples]
    cols = st.columns(3)
    for idx, example in enumerate(shown):
        cols[idx % 3].button(
            example,
            key=f"nlq_example_{idx}",
            on_click=on_example,
            args=(example,),
            disabled=controller.loading,
            use_container_width=True,
        )


# -----------------------------
# Result
# -----------------------------
state = controller.state

if state.lifecycle is Lifecycle.FAILED and state.error_message:
    st.error(f"Error: {state.error_message}")
    st.button("Dismiss", key="nlq_dismiss", on_click=on_dismiss_error)

if state.lifecycle is Lifecycle.SUBMITTING:
    st.info("Processing your query...")

if state.lifecycle is Lifecycle.SUCCEEDED and state.response is not None:
    response = state.response
    st.success("Query executed successfully!")

    if response.sql and show_sql:
        st.subheader("Generated SQL")
        st.code(response.sql, language="sql")
        used = referenced_tables(response.sql)
        if used:
            st.caption("Tables referenced: " + ", ".join(used))

    st.subheader("Results")
    if response.grid_status is GridStatus.OK:
        render_grid(response.grid)
    elif response.grid_status is GridStatus.EMPTY:
        st.caption("No data available")
    else:
        render_malformed(response)

    if response.available_tables is not None:
        with st.expander("Debug Information", expanded=False):
            st.markdown("**Tables available to LLM:** `" + ", ".join(response.available_tables) + "`")
