"""
Template Bank Page

Named snapshots of a product's layout, editor state and prices. A
template is loaded into the price matrix editor and published from there.
"""

import pandas as pd
import streamlit as st

from domain import PricingAdminError, TemplateBankEntry
from logging_config import setup_logging
from repositories.product_repo import get_product_repository
from services import get_attribute_service, get_pricing_service
from state import (
    flash,
    get_active_product_id,
    get_editor_state,
    get_structure_draft,
    set_active_product_id,
    set_editor_state,
    set_structure_draft,
    show_flash,
)
from ui import get_template_column_config

logger = setup_logging(__name__, log_file="template_bank.log")

pricing = get_pricing_service()
attributes = get_attribute_service()


def templates_frame(entries: list[TemplateBankEntry], product_names: dict) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {
                "id": e.id,
                "name": e.name,
                "product_id": product_names.get(e.product_id, e.product_id or ""),
                "combinations": e.combination_count,
                "created_at": e.created_at,
            }
            for e in entries
        ],
        columns=["id", "name", "product_id", "combinations", "created_at"],
    )


def render_save(product_id: str):
    structure = get_structure_draft(product_id, lambda: pricing.load_structure(product_id))
    if structure is None:
        st.info("Produktet har intet layout endnu. Opret det under Prismatrix.")
        return
    state = get_editor_state(product_id, lambda: pricing.load_state(product_id))
    with st.form("save_template", clear_on_submit=True):
        name = st.text_input("Navn", placeholder="fx Julepriser 2026")
        if st.form_submit_button("Gem skabelon", icon=":material/save:"):
            try:
                pricing.save_template(product_id, name, state, structure, attributes.product_groups(product_id))
            except PricingAdminError as e:
                st.error(str(e))
                return
            flash(f"Skabelonen {name} er gemt")
            st.rerun()


def render_entry(entry: TemplateBankEntry, product_id: str):
    with st.expander(entry.name):
        st.caption(f"{entry.combination_count} prisrækker")
        new_name = st.text_input("Nyt navn", value=entry.name, key=f"tb_name_{entry.id}")
        col1, col2, col3 = st.columns(3)
        if col1.button("Indlæs i editor", key=f"tb_load_{entry.id}", type="primary"):
            try:
                structure, state = pricing.load_template(entry.id)
            except PricingAdminError as e:
                st.error(str(e))
                return
            if structure is not None:
                set_structure_draft(product_id, structure)
            set_editor_state(product_id, state)
            flash(f"{entry.name} indlæst. Publicér fra Prismatrix for at tage priserne i brug.")
            st.rerun()
        if col2.button("Omdøb", key=f"tb_rename_{entry.id}"):
            try:
                pricing.rename_template(entry.id, new_name)
            except PricingAdminError as e:
                st.error(str(e))
                return
            flash(f"Omdøbt til {new_name}")
            st.rerun()
        if col3.button("Slet", key=f"tb_delete_{entry.id}"):
            pricing.delete_template(entry.id)
            flash(f"{entry.name} slettet")
            st.rerun()


def main():
    show_flash()
    st.title("Skabelonbank")

    product_list = get_product_repository().list_products()
    if not product_list:
        st.info("Der er ingen produkter endnu.")
        return
    ids = [p.id for p in product_list]
    names = {p.id: p.name for p in product_list}
    current = get_active_product_id()
    product_id = st.sidebar.selectbox(
        "Produkt",
        options=ids,
        index=ids.index(current) if current in ids else 0,
        format_func=lambda pid: names[pid],
    )
    set_active_product_id(product_id)

    show_all = st.sidebar.toggle("Vis alle produkters skabeloner", value=False)

    st.subheader(f"Gem {names[product_id]} som skabelon")
    render_save(product_id)

    st.divider()
    entries = pricing.list_templates(None if show_all else product_id)
    if not entries:
        st.info("Ingen skabeloner endnu.")
        return

    st.dataframe(templates_frame(entries, names), column_config=get_template_column_config(), hide_index=True)
    for entry in entries:
        render_entry(entry, product_id)


if __name__ == "__main__":
    main()
