"""
Attribute Library Page

Manages attribute groups and their values, either in the shared library
or on a single product. Library groups can be copied into a product.

Uses AttributeService for all data operations.
"""

import streamlit as st

from domain import AttributeGroup, AttributeKind, PricingAdminError, UiMode
from logging_config import setup_logging
from repositories.product_repo import get_product_repository
from services import get_attribute_service
from state import flash, show_flash, ss_get, ss_init
from ui.formatters import group_label, value_label

logger = setup_logging(__name__, log_file="attribute_library.log")

service = get_attribute_service()

LIBRARY_OPTION = "__library__"
KIND_OPTIONS = list(AttributeKind)
UI_MODE_OPTIONS = list(UiMode)


def _run(action, success: str):
    """Run a service call, flash the outcome and rerun on success."""
    try:
        action()
    except PricingAdminError as e:
        st.error(str(e))
        return
    flash(success)
    st.rerun()


def render_group_settings(group: AttributeGroup, groups: list[AttributeGroup]):
    col1, col2, col3 = st.columns([0.4, 0.3, 0.3])
    with col1:
        name = st.text_input("Navn", value=group.name, key=f"grp_name_{group.id}")
    with col2:
        kind = st.selectbox(
            "Type",
            options=KIND_OPTIONS,
            index=KIND_OPTIONS.index(group.kind),
            format_func=lambda k: k.display_name,
            key=f"grp_kind_{group.id}",
        )
    with col3:
        ui_mode = st.selectbox(
            "Visning",
            options=UI_MODE_OPTIONS,
            index=UI_MODE_OPTIONS.index(group.ui_mode),
            format_func=lambda m: m.value,
            key=f"grp_ui_{group.id}",
        )

    b1, b2, b3, b4, b5 = st.columns(5)
    if b1.button("Gem", key=f"grp_save_{group.id}"):
        _run(lambda: service.update_group(group.id, name=name, kind=kind, ui_mode=ui_mode), f"{name} gemt")
    if b2.button("Op", key=f"grp_up_{group.id}", icon=":material/arrow_upward:"):
        _run(lambda: service.move_group(groups, group.id, -1), f"{group.name} flyttet")
    if b3.button("Ned", key=f"grp_down_{group.id}", icon=":material/arrow_downward:"):
        _run(lambda: service.move_group(groups, group.id, 1), f"{group.name} flyttet")
    if b4.button("Dupliker", key=f"grp_dup_{group.id}"):
        _run(lambda: service.duplicate_group(group.id), f"{group.name} duplikeret")
    if b5.button("Slet", key=f"grp_del_{group.id}", type="primary"):
        _run(lambda: service.delete_group(group.id), f"{group.name} slettet")


def render_values(group: AttributeGroup):
    if not group.values:
        st.caption("Gruppen har ingen værdier endnu.")

    for value in group.values:
        c1, c2, c3, c4, c5 = st.columns([0.5, 0.15, 0.1, 0.1, 0.15], vertical_alignment="center")
        with c1:
            st.markdown(value_label(value) if value.enabled else f"~~{value_label(value)}~~")
        with c2:
            enabled = st.toggle("Aktiv", value=value.enabled, key=f"val_en_{value.id}")
            if enabled != value.enabled:
                _run(lambda: service.set_value_enabled(value.id, enabled), f"{value.name} opdateret")
        if c3.button("", key=f"val_up_{value.id}", icon=":material/arrow_upward:"):
            _run(lambda: service.move_value(group, value.id, -1), f"{value.name} flyttet")
        if c4.button("", key=f"val_down_{value.id}", icon=":material/arrow_downward:"):
            _run(lambda: service.move_value(group, value.id, 1), f"{value.name} flyttet")
        if c5.button("Slet", key=f"val_del_{value.id}"):
            _run(lambda: service.delete_value(value.id), f"{value.name} slettet")

    with st.form(f"add_value_{group.id}", clear_on_submit=True):
        st.markdown("**Ny værdi**")
        c1, c2, c3, c4 = st.columns([0.4, 0.2, 0.2, 0.2])
        name = c1.text_input("Navn")
        key = c2.text_input("Nøgle", help="Valgfri maskinnøgle")
        width = c3.number_input("Bredde (mm)", min_value=0.0, value=0.0) if group.kind == AttributeKind.FORMAT else 0.0
        height = c4.number_input("Højde (mm)", min_value=0.0, value=0.0) if group.kind == AttributeKind.FORMAT else 0.0
        if st.form_submit_button("Tilføj"):
            _run(
                lambda: service.add_value(group.id, name, width_mm=width or None, height_mm=height or None, key=key),
                f"{name} tilføjet",
            )


def render_library_import(product_id: str):
    library = service.library_groups()
    if not library:
        st.info("Biblioteket er tomt.")
        return
    options = {g.id: g for g in library}
    selected = st.selectbox(
        "Biblioteksgruppe",
        options=list(options),
        format_func=lambda gid: f"{group_label(options[gid])} ({len(options[gid].values)} værdier)",
    )
    if st.button("Kopiér til produkt", icon=":material/content_copy:"):
        _run(lambda: service.add_from_library(product_id, selected), f"{options[selected].name} kopieret")


def main():
    ss_init({'al_owner': LIBRARY_OPTION})
    show_flash()

    st.title("Attributter")
    st.markdown(
        "Grupper af formater, materialer og efterbehandlinger. Biblioteket deles af alle produkter; "
        "en biblioteksgruppe kopieres ind på et produkt før den kan bruges i prismatricen."
    )

    products = get_product_repository().list_products()
    owner_options = [LIBRARY_OPTION] + [p.id for p in products]
    names = {p.id: p.name for p in products}
    current = ss_get('al_owner', LIBRARY_OPTION)
    owner = st.sidebar.selectbox(
        "Ejer",
        options=owner_options,
        index=owner_options.index(current) if current in owner_options else 0,
        format_func=lambda o: "Bibliotek" if o == LIBRARY_OPTION else names.get(o, o),
    )
    st.session_state.al_owner = owner
    product_id = None if owner == LIBRARY_OPTION else owner

    groups = service.library_groups() if product_id is None else service.product_groups(product_id)

    with st.expander("Ny gruppe", icon=":material/add:"):
        with st.form("new_group", clear_on_submit=True):
            name = st.text_input("Navn")
            kind = st.selectbox("Type", options=KIND_OPTIONS, format_func=lambda k: k.display_name)
            ui_mode = st.selectbox("Visning", options=UI_MODE_OPTIONS, format_func=lambda m: m.value)
            if st.form_submit_button("Opret"):
                _run(lambda: service.create_group(product_id, name, kind, ui_mode), f"{name} oprettet")

    if product_id is not None:
        with st.expander("Fra biblioteket", icon=":material/library_add:"):
            render_library_import(product_id)

    st.divider()
    if not groups:
        st.info("Ingen grupper endnu.")
        return

    for group in groups:
        title = group_label(group)
        if group.source == "library":
            title += " · fra bibliotek"
        with st.expander(f"{title} ({len(group.enabled_values)}/{len(group.values)})"):
            render_group_settings(group, groups)
            st.divider()
            render_values(group)


if __name__ == "__main__":
    main()
