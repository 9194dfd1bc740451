"""
Price Editor State

The session keeps, per product, the current PricingState and layout draft
plus the versions last loaded or published. Edits replace the current
value; nothing reaches the database until publish.
"""

from typing import Callable, Optional

import streamlit as st

from domain import MatrixLayout, PricingState

ACTIVE_PRODUCT_KEY = "active_product_id"


def _state_key(product_id: str) -> str:
    return f"pricing_state:{product_id}"


def _saved_key(product_id: str) -> str:
    return f"pricing_saved:{product_id}"


def _structure_key(product_id: str) -> str:
    return f"pricing_structure:{product_id}"


def get_active_product_id() -> Optional[str]:
    return st.session_state.get(ACTIVE_PRODUCT_KEY)


def set_active_product_id(product_id: Optional[str]) -> None:
    st.session_state[ACTIVE_PRODUCT_KEY] = product_id


def get_editor_state(product_id: str, loader: Callable[[], PricingState]) -> PricingState:
    """Current editor state, loading it with loader on first access."""
    key = _state_key(product_id)
    if key not in st.session_state:
        state = loader()
        st.session_state[key] = state
        st.session_state[_saved_key(product_id)] = state
    return st.session_state[key]


def set_editor_state(product_id: str, state: PricingState) -> None:
    st.session_state[_state_key(product_id)] = state


def mark_saved(product_id: str, state: PricingState) -> None:
    """Record state as the published baseline."""
    st.session_state[_state_key(product_id)] = state
    st.session_state[_saved_key(product_id)] = state


def is_dirty(product_id: str) -> bool:
    """True when the editor state differs from the last loaded or published one."""
    current = st.session_state.get(_state_key(product_id))
    saved = st.session_state.get(_saved_key(product_id))
    return current is not None and current != saved


def reset_editor(product_id: str) -> None:
    """Forget the product's editor state and layout draft; the next access reloads."""
    for key in (_state_key(product_id), _saved_key(product_id), _structure_key(product_id)):
        st.session_state.pop(key, None)


def get_structure_draft(product_id: str, loader: Callable[[], Optional[MatrixLayout]]) -> Optional[MatrixLayout]:
    key = _structure_key(product_id)
    if key not in st.session_state:
        st.session_state[key] = loader()
    return st.session_state[key]


def set_structure_draft(product_id: str, structure: Optional[MatrixLayout]) -> None:
    st.session_state[_structure_key(product_id)] = structure
