"""
Per-browser identity for session storage.

Each browser gets a random id kept in its own localStorage. A small
component reads it back and hands it to the server through the page URL,
so stored sessions are scoped to the browser that created them.
"""

import json
import re
import secrets
from typing import Optional

import streamlit as st
import streamlit.components.v1 as components

from utils.logging_config import get_logger

BROWSER_ID_PARAM = "browser_id"
BROWSER_ID_STATE_KEY = "browser_id"
LOCAL_STORAGE_KEY = "carparking_browser_id"

_BROWSER_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]{22,64}$")

logger = get_logger(__name__)


def new_browser_id() -> str:
    return secrets.token_urlsafe(24)


def is_valid_browser_id(value: Optional[str]) -> bool:
    """Ids become directory names, so only url-safe tokens of sane length pass"""
    return bool(value) and _BROWSER_ID_PATTERN.match(value) is not None


def _restore_script(candidate_id: str) -> str:
    return f"""
    <script>
        try {{
            const key = {json.dumps(LOCAL_STORAGE_KEY)};
            let browserId = window.localStorage.getItem(key);
            if (!browserId || !/^[A-Za-z0-9_-]{{22,64}}$/.test(browserId)) {{
                browserId = {json.dumps(candidate_id)};
                window.localStorage.setItem(key, browserId);
            }}
            const url = new URL(window.parent.location.href);
            if (url.searchParams.get({json.dumps(BROWSER_ID_PARAM)}) !== browserId) {{
                url.searchParams.set({json.dumps(BROWSER_ID_PARAM)}, browserId);
                window.parent.location.replace(url.href);
            }}
        }} catch (e) {{
            console.error("Failed to restore browser id:", e);
        }}
    </script>
    """


def resolve_browser_id() -> Optional[str]:
    """
    Browser id of the current Streamlit session

    Returns None while the id is still on its way from the browser; the
    restore component has been rendered by then and reloads the page with
    the id in the URL.
    """
    browser_id = st.session_state.get(BROWSER_ID_STATE_KEY)
    if browser_id:
        return browser_id

    from_url = st.query_params.get(BROWSER_ID_PARAM)
    if is_valid_browser_id(from_url):
        st.session_state[BROWSER_ID_STATE_KEY] = from_url
        del st.query_params[BROWSER_ID_PARAM]
        logger.debug("Browser id restored from the page URL")
        return from_url

    if from_url:
        logger.warning("Ignoring malformed browser id in the page URL")
    components.html(_restore_script(new_browser_id()), height=0)
    return None
