"""
Invoices Page

Form for a customer invoice; renders it to PDF for download.
"""

from datetime import date

import pandas as pd
import streamlit as st

from domain import InvoiceParty, PricingAdminError
from domain.converters import format_dkk
from logging_config import setup_logging
from services import get_invoice_service, lines_from_frame
from state import ss_get, ss_init
from ui import get_invoice_line_column_config

logger = setup_logging(__name__, log_file="invoices.log")

service = get_invoice_service()

EMPTY_LINES = pd.DataFrame(
    [{"description": "", "quantity": 1, "unit_price": 0.0}],
)


def render_customer() -> InvoiceParty:
    st.subheader("Kunde")
    col1, col2 = st.columns(2)
    with col1:
        name = st.text_input("Navn / firma")
        address = st.text_input("Adresse")
        zip_code = st.text_input("Postnr.")
        city = st.text_input("By")
    with col2:
        email = st.text_input("E-mail")
        phone = st.text_input("Telefon")
        cvr = st.text_input("CVR")
        country = st.text_input("Land", value="Danmark")
    return InvoiceParty(
        name=name, email=email, phone=phone, address=address,
        zip=zip_code, city=city, country=country, cvr=cvr,
    )


def main():
    ss_init({'inv_pdf': None, 'inv_filename': None})

    st.title("Faktura")
    st.caption(f"Moms {service.tax_rate:g}% · betalingsfrist {service.payment_days} dage · {service.company.name}")

    col1, col2, col3 = st.columns(3)
    invoice_number = col1.text_input("Fakturanummer")
    order_number = col2.text_input("Ordrenummer")
    issue_date = col3.date_input("Fakturadato", value=date.today(), format="DD.MM.YYYY")

    customer = render_customer()

    st.subheader("Linjer")
    lines_df = st.data_editor(
        EMPTY_LINES,
        column_config=get_invoice_line_column_config(),
        num_rows="dynamic",
        hide_index=True,
        key="inv_lines",
    )

    notes = st.text_area("Bemærkninger", height=80)
    paid_col1, paid_col2 = st.columns(2)
    is_paid = paid_col1.checkbox("Betalt")
    paid_date = paid_col2.date_input("Betalt dato", value=issue_date, format="DD.MM.YYYY", disabled=not is_paid)

    if st.button("Opret PDF", type="primary", icon=":material/picture_as_pdf:"):
        try:
            invoice = service.create_invoice(
                invoice_number,
                customer,
                lines_from_frame(lines_df),
                order_number=order_number,
                issue_date=issue_date,
                notes=notes,
                is_paid=is_paid,
                paid_date=paid_date if is_paid else None,
            )
            pdf = service.render(invoice)
        except PricingAdminError as e:
            st.error(str(e))
            return
        logger.info(f"Rendered invoice {invoice.invoice_number}: total {invoice.total}")
        st.session_state.inv_pdf = pdf
        st.session_state.inv_filename = invoice.filename
        st.success(f"Faktura {invoice.invoice_number} på {format_dkk(invoice.total)} er klar")

    if ss_get('inv_pdf'):
        st.download_button(
            "Download PDF",
            data=ss_get('inv_pdf'),
            file_name=ss_get('inv_filename', "faktura.pdf"),
            mime="application/pdf",
            icon=":material/download:",
        )


if __name__ == "__main__":
    main()
