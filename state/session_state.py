"""
Session State Utilities

Thin helpers over st.session_state used by the pages, plus "flash"
messages: a notice stored before st.rerun() and shown once on the next run.
"""

import streamlit as st
from typing import TypeVar, Any, Optional

T = TypeVar('T')

FLASH_KEY = "_flash_messages"
FLASH_LEVELS = ("success", "info", "warning", "error")


def ss_get(key: str, default: T = None) -> Optional[T]:
    """Value of key when present and not None, else default."""
    if key in st.session_state:
        val = st.session_state[key]
        if val is not None:
            return val
    return default


def ss_has(*keys: str) -> bool:
    """True when every key is present with a non-None value."""
    return all(
        key in st.session_state and st.session_state[key] is not None
        for key in keys
    )


def ss_init(defaults: dict[str, Any]) -> None:
    """Set each key to its default unless it is already present."""
    for key, default in defaults.items():
        if key not in st.session_state:
            st.session_state[key] = default


def ss_set(key: str, value: Any) -> None:
    st.session_state[key] = value


def ss_clear(*keys: str) -> None:
    """Remove the given keys; missing keys are ignored."""
    for key in keys:
        if key in st.session_state:
            del st.session_state[key]


def flash(message: str, level: str = "success") -> None:
    """Queue a message for the next run (after st.rerun())."""
    if level not in FLASH_LEVELS:
        raise ValueError(f"Unknown flash level: {level}")
    queue = list(st.session_state.get(FLASH_KEY, []))
    queue.append((level, message))
    st.session_state[FLASH_KEY] = queue


def show_flash() -> None:
    """Render and drop queued flash messages."""
    for level, message in st.session_state.pop(FLASH_KEY, []):
        if level == "success":
            st.toast(message, icon="✅")
        else:
            getattr(st, level)(message)
