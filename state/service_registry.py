"""
Service Registry

Session-scoped singletons for services and repositories. Repositories and
services call get_service() from their get_*() helpers instead of touching
st.session_state themselves.
"""

import streamlit as st
from typing import TypeVar, Callable

T = TypeVar('T')

SERVICE_PREFIX = "svc:"


def _key(service_name: str) -> str:
    return f"{SERVICE_PREFIX}{service_name}"


def get_service(service_name: str, factory: Callable[[], T]) -> T:
    """Return the session's instance of service_name, creating it with factory on first use.

    Example:
        def get_pricing_service() -> PricingService:
            from state import get_service
            return get_service('pricing_service', PricingService.create_default)
    """
    key = _key(service_name)
    if key not in st.session_state:
        st.session_state[key] = factory()
    return st.session_state[key]


def register_service(service_name: str, instance: T) -> T:
    """Install a pre-built instance, e.g. one wired to a test database."""
    st.session_state[_key(service_name)] = instance
    return instance


def clear_services(*service_names: str) -> None:
    """Drop the named instances; all registered services when no names are given."""
    names = service_names or [k[len(SERVICE_PREFIX):] for k in list(st.session_state.keys()) if str(k).startswith(SERVICE_PREFIX)]
    for name in names:
        st.session_state.pop(_key(name), None)


def has_service(service_name: str) -> bool:
    return _key(service_name) in st.session_state
