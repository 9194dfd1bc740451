"""
Pricing Admin entry point.

Run with:
    streamlit run app.py
"""

import streamlit as st

from init_db import init_db
from logging_config import setup_logging

logger = setup_logging(__name__, log_file="app.log")


@st.cache_resource
def ensure_database() -> bool:
    """Create missing tables once per server process."""
    ok = init_db()
    if not ok:
        logger.error("Database initialization failed")
    return ok


def main():
    st.set_page_config(page_title="Prisadministration", page_icon=":material/sell:", layout="wide")

    if not ensure_database():
        st.error("Databasen kunne ikke initialiseres. Se logs/init_db.log.")
        st.stop()

    pages = {
        "Priser": [
            st.Page("pages/price_matrix.py", title="Prismatrix", icon=":material/grid_on:", default=True),
            st.Page("pages/template_bank.py", title="Skabelonbank", icon=":material/inventory_2:"),
        ],
        "Katalog": [
            st.Page("pages/attribute_library.py", title="Attributter", icon=":material/tune:"),
            st.Page("pages/design_assets.py", title="Designbibliotek", icon=":material/palette:"),
        ],
        "Ordrer": [
            st.Page("pages/invoices.py", title="Faktura", icon=":material/receipt_long:"),
        ],
    }
    st.navigation(pages).run()


if __name__ == "__main__":
    main()
