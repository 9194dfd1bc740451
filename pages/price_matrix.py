"""
Price Matrix Page

Editor for a product's price matrix:
- layout (vertical axis and sections) and the quantity set
- anchors per combination, row markups, product and master markup, rounding
- price curve chart and the full matrix of final prices
- CSV import/export and publish

Edits are kept in session state until published.
"""

from typing import Optional

import pandas as pd
import plotly.express as px
import streamlit as st

from domain import (
    AttributeGroup,
    MatrixLayout,
    PriceSource,
    PricingAdminError,
    PricingState,
    matrix_combinations,
)
from domain.interpolation import ROUNDING_UNITS
from logging_config import setup_logging
from repositories.product_repo import get_product_repository
from services import (
    anchor_frame,
    apply_anchor_edits,
    combination_label,
    compose_layout,
    curve_frame,
    get_attribute_service,
    get_pricing_service,
    price_matrix_frame,
    row_markup,
)
from state import (
    flash,
    get_active_product_id,
    get_editor_state,
    get_structure_draft,
    is_dirty,
    mark_saved,
    reset_editor,
    set_active_product_id,
    set_editor_state,
    set_structure_draft,
    show_flash,
    ss_get,
    ss_init,
)
from ui import get_anchor_column_config, get_matrix_column_config
from ui.formatters import format_final_price, format_price, format_quantity, source_badge, value_label

logger = setup_logging(__name__, log_file="price_matrix_page.log")

pricing = get_pricing_service()
attributes = get_attribute_service()
products = get_product_repository()


def _update_state(product_id: str, state: PricingState):
    set_editor_state(product_id, state)
    st.session_state.pm_editor_version = ss_get('pm_editor_version', 0) + 1
    st.rerun()


# =============================================================================
# Sidebar: product selection
# =============================================================================

def select_product() -> Optional[str]:
    st.sidebar.header("Produkt")
    product_list = products.list_products()
    ids = [p.id for p in product_list]
    names = {p.id: p.name for p in product_list}

    with st.sidebar.expander("Nyt produkt"):
        with st.form("new_product", clear_on_submit=True):
            name = st.text_input("Navn")
            if st.form_submit_button("Opret"):
                if not name.strip():
                    st.warning("Produktet skal have et navn")
                else:
                    product_id = products.create_product(name.strip())
                    set_active_product_id(product_id)
                    flash(f"{name} oprettet")
                    st.rerun()

    if not ids:
        return None
    current = get_active_product_id()
    selected = st.sidebar.selectbox(
        "Vælg produkt",
        options=ids,
        index=ids.index(current) if current in ids else 0,
        format_func=lambda pid: names.get(pid, pid),
    )
    set_active_product_id(selected)
    return selected


# =============================================================================
# Layout and quantities
# =============================================================================

def render_layout_editor(product_id: str, structure: Optional[MatrixLayout], groups: list[AttributeGroup], state: PricingState):
    axis_candidates = [g for g in groups if g.kind.can_be_vertical_axis]
    if not axis_candidates:
        st.info("Tilføj en format- eller materialegruppe under Attributter for at bygge en prismatrix.")
        return

    by_id = {g.id: g for g in groups}
    current_axis = structure.vertical_axis.group_id if structure else None
    axis_ids = [g.id for g in axis_candidates]
    axis_id = st.selectbox(
        "Lodret akse",
        options=axis_ids,
        index=axis_ids.index(current_axis) if current_axis in axis_ids else 0,
        format_func=lambda gid: by_id[gid].name,
        key=f"pm_axis_{product_id}",
    )
    axis_group = by_id[axis_id]
    axis_values = st.multiselect(
        f"Værdier for {axis_group.name}",
        options=[v.id for v in axis_group.values],
        default=_default_values(axis_group, structure.vertical_axis.value_ids if structure and current_axis == axis_id else None),
        format_func=lambda vid: value_label(axis_group.value_by_id(vid)),
        key=f"pm_axis_values_{product_id}_{axis_id}",
    )

    section_candidates = [g for g in groups if g.id != axis_id]
    current_sections = {c.group_id: c for c in structure.sections} if structure else {}
    section_ids = st.multiselect(
        "Sektioner",
        options=[g.id for g in section_candidates],
        default=[gid for gid in current_sections if gid in by_id and gid != axis_id],
        format_func=lambda gid: f"{by_id[gid].name} ({by_id[gid].kind.display_name})",
        key=f"pm_sections_{product_id}",
    )
    sections = []
    for gid in section_ids:
        group = by_id[gid]
        previous = current_sections.get(gid)
        chosen = st.multiselect(
            f"Værdier for {group.name}",
            options=[v.id for v in group.values],
            default=_default_values(group, previous.value_ids if previous else None),
            format_func=lambda vid, g=group: value_label(g.value_by_id(vid)),
            key=f"pm_section_values_{product_id}_{gid}",
        )
        sections.append((group, chosen))

    col1, col2 = st.columns(2)
    apply_clicked = col1.button("Anvend layout", key=f"pm_apply_layout_{product_id}")
    save_clicked = col2.button("Gem layout", key=f"pm_save_layout_{product_id}", type="primary")
    if apply_clicked or save_clicked:
        try:
            layout = compose_layout(structure, axis_group, axis_values, sections, state.quantities)
            if save_clicked:
                pricing.save_structure(product_id, layout)
        except PricingAdminError as e:
            st.error(str(e))
            return
        set_structure_draft(product_id, layout)
        flash("Layout gemt" if save_clicked else "Layout anvendt")
        st.rerun()


def _default_values(group: AttributeGroup, saved_ids) -> list[str]:
    ids = [v.id for v in group.values]
    if saved_ids is None:
        return [v.id for v in group.enabled_values]
    return [vid for vid in saved_ids if vid in ids]


def render_quantities(product_id: str, state: PricingState):
    col1, col2 = st.columns([0.7, 0.3], vertical_alignment="bottom")
    with col1:
        kept = st.multiselect(
            "Oplag",
            options=list(state.quantities),
            default=list(state.quantities),
            format_func=format_quantity,
            key=f"pm_quantities_{product_id}_{ss_get('pm_editor_version', 0)}",
        )
    with col2:
        with st.popover("Tilføj oplag"):
            new_quantity = st.number_input("Antal", min_value=1, value=1000, step=50, key=f"pm_new_qty_{product_id}")
            if st.button("Tilføj", key=f"pm_add_qty_{product_id}"):
                _update_state(product_id, state.with_quantity_added(int(new_quantity)))
    if set(kept) != set(state.quantities):
        if not kept:
            st.warning("Der skal være mindst ét oplag")
        else:
            _update_state(product_id, state.with_quantities(kept))


def render_global_settings(product_id: str, state: PricingState):
    col1, col2 = st.columns(2)
    with col1:
        master = st.number_input(
            "Mastertillæg %",
            min_value=-100.0,
            max_value=500.0,
            value=float(state.master_markup),
            step=1.0,
            help="Lægges oven på alle priser efter produkt-tillæg",
            key=f"pm_master_{product_id}",
        )
    with col2:
        rounding = st.radio(
            "Afrunding (kr.)",
            options=list(ROUNDING_UNITS),
            index=list(ROUNDING_UNITS).index(state.rounding),
            horizontal=True,
            key=f"pm_rounding_{product_id}",
        )
    if master != state.master_markup:
        _update_state(product_id, state.with_master_markup(master))
    if rounding != state.rounding:
        _update_state(product_id, state.with_rounding(rounding))


# =============================================================================
# Anchors for one combination
# =============================================================================

def create_curve_chart(curve_df: pd.DataFrame):
    """Final price per quantity; anchors and overrides marked."""
    if curve_df.empty or (curve_df['final'] <= 0).all():
        return None
    chart_df = curve_df.copy()
    chart_df['Kilde'] = chart_df['source'].map(lambda s: PriceSource(s).display_name or "Ingen pris")
    fig = px.line(
        chart_df,
        x='quantity',
        y='final',
        markers=True,
        hover_data={'base': ':.2f', 'unit_price': ':.2f', 'Kilde': True},
        labels={'quantity': 'Antal', 'final': 'Slutpris (kr.)', 'base': 'Grundpris', 'unit_price': 'Stk. pris'},
        title='Priskurve',
    )
    anchors = chart_df[chart_df['source'].isin([PriceSource.ANCHOR.value, PriceSource.OVERRIDE.value])]
    if not anchors.empty:
        fig.add_scatter(
            x=anchors['quantity'],
            y=anchors['final'],
            mode='markers',
            marker={'size': 12, 'symbol': 'diamond'},
            name='Ankre',
        )
    fig.update_layout(xaxis_type='log', height=400)
    return fig


def render_combination_editor(product_id: str, state: PricingState, structure: MatrixLayout, groups: list[AttributeGroup]):
    enabled = {v.id for g in groups for v in g.enabled_values}
    combos = matrix_combinations(structure, enabled)
    if not combos:
        st.info("Layoutet giver ingen kombinationer. Vælg værdier for aksen og sektionerne.")
        return

    labels = {c.context.key: combination_label(c, groups) for c in combos}
    keys = list(labels)
    ctx_key = st.selectbox(
        "Kombination",
        options=keys,
        index=keys.index(ss_get('pm_context_key')) if ss_get('pm_context_key') in keys else 0,
        format_func=lambda k: labels[k],
    )
    st.session_state.pm_context_key = ctx_key
    ctx = next(c.context for c in combos if c.context.key == ctx_key)

    col1, col2 = st.columns([0.6, 0.4])
    with col1:
        before = anchor_frame(state, ctx)
        edited = st.data_editor(
            before,
            column_config=get_anchor_column_config(),
            disabled=['quantity', 'source', 'final'],
            hide_index=True,
            key=f"pm_anchors_{product_id}_{ctx.key}_{ss_get('pm_editor_version', 0)}",
        )
        updated = apply_anchor_edits(state, ctx, before, edited)
        if updated != state:
            _update_state(product_id, updated)

        with st.popover("Rækketillæg"):
            quantity = st.selectbox("Oplag", options=list(state.quantities), format_func=format_quantity)
            point = state.price_point(ctx, quantity)
            label, color = source_badge(point.source)
            st.badge(label, color=color)
            markup = st.slider(
                "Tillæg %",
                min_value=-50.0,
                max_value=200.0,
                value=row_markup(state, ctx, quantity),
                step=0.5,
                key=f"pm_row_markup_{ctx.key}_{quantity}",
            )
            if st.button("Anvend tillæg"):
                _update_state(product_id, state.with_row_markup(ctx, quantity, markup))

        current_markup = state.product_markup_for(ctx)
        product_markup = st.number_input(
            "Produkttillæg % for format/materiale",
            min_value=-100.0,
            max_value=500.0,
            value=float(current_markup),
            step=1.0,
            key=f"pm_product_markup_{ctx.key}",
        )
        only_variant = st.checkbox("Kun denne variant", key=f"pm_markup_variant_{ctx.key}")
        if st.button("Anvend produkttillæg"):
            _update_state(product_id, state.with_product_markup(
                None if ctx.format_id == "none" else ctx.format_id,
                None if ctx.material_id == "none" else ctx.material_id,
                product_markup,
                variant_key=ctx.variant_key if only_variant else None,
            ))

        if st.button("Ryd kombination", icon=":material/delete_sweep:"):
            _update_state(product_id, state.without_context(ctx))

    with col2:
        curve_df = curve_frame(state, ctx)
        fig = create_curve_chart(curve_df)
        if fig is not None:
            st.plotly_chart(fig)
            render_curve_metrics(state, ctx, curve_df)
        else:
            st.caption("Indtast mindst én grundpris for at se priskurven.")


def render_curve_metrics(state: PricingState, ctx, curve_df: pd.DataFrame):
    priced = curve_df[curve_df['final'] > 0]
    largest = priced.iloc[-1]
    m1, m2, m3 = st.columns(3)
    m1.metric("Ankre", len(state.active_anchors(ctx)))
    m2.metric(f"Pris ved {format_quantity(int(largest['quantity']))}", format_price(largest['final']))
    m3.metric("Laveste stk. pris", format_final_price(priced['unit_price'].min()))


# =============================================================================
# CSV and publish
# =============================================================================

def render_csv(product_id: str, state: PricingState, structure: MatrixLayout, groups: list[AttributeGroup]):
    col1, col2 = st.columns(2)
    with col1:
        st.subheader("Eksport")
        mode = st.radio(
            "Indhold",
            options=["anchors", "final"],
            format_func=lambda m: "Grundpriser (kan genimporteres)" if m == "anchors" else "Slutpriser",
            horizontal=True,
        )
        try:
            csv_text = pricing.export_csv(state, structure, groups, mode=mode)
        except PricingAdminError as e:
            st.error(str(e))
        else:
            st.download_button(
                "Download CSV",
                data=csv_text.encode("utf-8-sig"),
                file_name=f"priser-{product_id}-{mode}.csv",
                mime="text/csv",
                icon=":material/download:",
            )
    with col2:
        st.subheader("Import")
        upload = st.file_uploader("CSV-fil", type=["csv", "txt"], key=f"pm_csv_{product_id}")
        if upload is not None and st.button("Importér priser"):
            text = upload.getvalue().decode("utf-8-sig", errors="replace")
            try:
                updated, result = pricing.import_csv(state, text, groups, structure)
            except PricingAdminError as e:
                st.error(str(e))
                return
            for warning in result.warnings:
                flash(warning, "warning")
            if result.price_count:
                flash(f"{result.price_count} priser importeret fra {result.rows_read} rækker")
                _update_state(product_id, updated)
            st.rerun()


def render_publish(product_id: str, state: PricingState, structure: MatrixLayout, groups: list[AttributeGroup]):
    col1, col2 = st.columns([0.7, 0.3], vertical_alignment="center")
    with col1:
        if is_dirty(product_id):
            st.warning("Der er ændringer der ikke er publiceret.")
        else:
            st.caption("Alle ændringer er publiceret.")
    with col2:
        if st.button("Fortryd ændringer", disabled=not is_dirty(product_id)):
            reset_editor(product_id)
            st.rerun()

    if st.button("Publicér priser", type="primary", icon=":material/publish:"):
        try:
            with st.spinner("Publicerer..."):
                result = pricing.publish(product_id, state, structure, groups)
        except PricingAdminError as e:
            logger.error(f"Publish of {product_id} failed: {e}")
            st.error(str(e))
            return
        mark_saved(product_id, state)
        set_structure_draft(product_id, structure.with_quantities(state.quantities))
        message = f"{result.rows_written} priser publiceret for {result.combinations} kombinationer"
        if result.empty_cells:
            message += f" ({result.empty_cells} felter uden pris)"
        flash(message)
        st.rerun()


def main():
    ss_init({'pm_editor_version': 0, 'pm_context_key': None})
    show_flash()

    st.title("Prismatrix")

    product_id = select_product()
    if product_id is None:
        st.info("Opret et produkt i sidepanelet for at komme i gang.")
        return

    groups = attributes.product_groups(product_id)
    structure = get_structure_draft(product_id, lambda: pricing.load_structure(product_id))
    state = get_editor_state(product_id, lambda: pricing.load_state(product_id))

    with st.expander("Layout", expanded=structure is None, icon=":material/grid_view:"):
        render_layout_editor(product_id, structure, groups, state)

    if structure is None:
        return

    render_quantities(product_id, state)
    render_global_settings(product_id, state)

    st.divider()
    render_combination_editor(product_id, state, structure, groups)

    st.divider()
    st.subheader("Alle priser")
    matrix_df = price_matrix_frame(state, structure, groups)
    matrix_df.columns = [str(c) for c in matrix_df.columns]
    st.dataframe(matrix_df, column_config=get_matrix_column_config(state.quantities), hide_index=True)

    st.divider()
    render_csv(product_id, state, structure, groups)

    st.divider()
    render_publish(product_id, state, structure, groups)


if __name__ == "__main__":
    main()
