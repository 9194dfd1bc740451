"""
Column Definitions for Streamlit DataFrames

Centralized Streamlit column_config definitions for the editors and
tables of the pricing admin.

Usage:
    from ui import get_anchor_column_config

    st.data_editor(
        anchor_df,
        column_config=get_anchor_column_config(),
        hide_index=True
    )
"""

import streamlit as st


def get_anchor_column_config() -> dict:
    """
    Column configuration for the per-combination anchor editor.

    Returns:
        Dict of column name -> st.column_config configuration
    """
    return {
        'quantity': st.column_config.NumberColumn(
            "Antal",
            help="Oplag",
            format="%d",
            width="small",
        ),
        'price': st.column_config.NumberColumn(
            "Grundpris",
            help="Pris før tillæg. Indtastning låser rækken som ankerpunkt.",
            min_value=0.0,
            step=1.0,
            format="%.2f",
        ),
        'markup_percent': st.column_config.NumberColumn(
            "Tillæg %",
            help="Lokalt tillæg for dette oplag. På beregnede rækker gøres rækken til en manuel pris.",
            min_value=-100.0,
            max_value=500.0,
            step=1.0,
            format="%.1f",
            width="small",
        ),
        'is_locked': st.column_config.CheckboxColumn(
            "Låst",
            help="Låste rækker bruges som ankerpunkter",
            width="small",
        ),
        'exclude_from_curve': st.column_config.CheckboxColumn(
            "Uden for kurve",
            help="Låst pris der ikke påvirker interpolationen",
            width="small",
        ),
        'source': st.column_config.TextColumn(
            "Kilde",
            width="small",
        ),
        'final': st.column_config.NumberColumn(
            "Slutpris",
            help="Efter produkt- og mastertillæg samt afrunding",
            format="%.2f",
        ),
    }


def get_matrix_column_config(quantities) -> dict:
    """Column configuration for the full price matrix; one column per quantity."""
    config = {
        'context_key': None,
        'label': st.column_config.TextColumn(
            "Kombination",
            width="large",
        ),
    }
    for quantity in quantities:
        config[str(quantity)] = st.column_config.NumberColumn(
            f"{quantity} stk.",
            format="%.0f",
        )
    return config


def get_invoice_line_column_config() -> dict:
    return {
        'description': st.column_config.TextColumn(
            "Beskrivelse",
            width="large",
            required=True,
        ),
        'quantity': st.column_config.NumberColumn(
            "Antal",
            min_value=1,
            step=1,
            format="%d",
            required=True,
        ),
        'unit_price': st.column_config.NumberColumn(
            "Stk. pris",
            min_value=0.0,
            format="%.2f",
            required=True,
        ),
    }


def get_template_column_config() -> dict:
    return {
        'id': None,
        'name': st.column_config.TextColumn("Navn", width="medium"),
        'product_id': st.column_config.TextColumn("Produkt", width="small"),
        'combinations': st.column_config.NumberColumn("Priser", help="Gemte prisrækker", width="small"),
        'created_at': st.column_config.DatetimeColumn("Oprettet", format="DD.MM.YYYY HH:mm"),
    }
