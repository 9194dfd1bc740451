"""
State Management Module

Centralized state management for Streamlit session state.
This module belongs in the presentation layer and provides:
- Session state utilities (ss_get, ss_has, ss_init, ss_set, ss_clear, flash)
- Service registry for singleton management (get_service, register_service, clear_services)
- Per-product price editor state (get_editor_state, set_editor_state, ...)

Usage:
    from state import ss_get, ss_init, flash
    from state import get_service
    from state import get_editor_state, set_editor_state
"""

from state.session_state import ss_get, ss_has, ss_init, ss_set, ss_clear, flash, show_flash
from state.service_registry import get_service, register_service, clear_services, has_service
from state.editor_state import (
    get_active_product_id,
    set_active_product_id,
    get_editor_state,
    set_editor_state,
    mark_saved,
    is_dirty,
    reset_editor,
    get_structure_draft,
    set_structure_draft,
)

__all__ = [
    # Session state utilities
    'ss_get',
    'ss_has',
    'ss_init',
    'ss_set',
    'ss_clear',
    'flash',
    'show_flash',
    # Service registry
    'get_service',
    'register_service',
    'clear_services',
    'has_service',
    # Editor state
    'get_active_product_id',
    'set_active_product_id',
    'get_editor_state',
    'set_editor_state',
    'mark_saved',
    'is_dirty',
    'reset_editor',
    'get_structure_draft',
    'set_structure_draft',
]
