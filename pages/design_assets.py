"""
Design Assets Page

Upload, browse and delete design files (templates, material swatches,
finish samples and product images) stored in object storage.
"""

import streamlit as st

from domain import AssetKind, DesignAsset, PricingAdminError
from domain.converters import format_date_dk
from logging_config import setup_logging
from services import get_asset_service
from state import flash, show_flash

logger = setup_logging(__name__, log_file="design_assets.log")

service = get_asset_service()


def render_upload_form():
    with st.form("upload_asset", clear_on_submit=True):
        kind = st.selectbox("Type", options=AssetKind.display_order(), format_func=lambda k: k.display_name)
        name = st.text_input("Navn")
        description = st.text_area("Beskrivelse", height=80)
        upload = st.file_uploader("Fil")
        icon = st.file_uploader("Ikon (valgfri)", type=["png", "jpg", "jpeg", "svg", "webp"])
        submitted = st.form_submit_button("Upload", icon=":material/upload:")

    if not submitted:
        return
    if upload is None:
        st.warning("Vælg en fil at uploade.")
        return
    try:
        with st.spinner("Uploader..."):
            service.upload_asset(
                kind,
                name,
                upload.name,
                upload.getvalue(),
                description=description,
                icon=(icon.name, icon.getvalue()) if icon is not None else None,
            )
    except PricingAdminError as e:
        logger.error(f"Upload of {upload.name} failed: {e}")
        st.error(str(e))
        return
    flash(f"{name} uploadet")
    st.rerun()


def render_asset(asset: DesignAsset):
    col1, col2, col3 = st.columns([0.15, 0.65, 0.2], vertical_alignment="center")
    with col1:
        preview = asset.icon_url or (asset.file_url if asset.is_image else "")
        if preview:
            st.image(preview, width=64)
        else:
            st.markdown(":material/description:")
    with col2:
        st.markdown(f"**[{asset.name}]({asset.file_url})**")
        details = [asset.meta.get("filename", "")]
        if asset.created_at:
            details.append(format_date_dk(asset.created_at))
        st.caption(" · ".join(d for d in details if d))
        if asset.description:
            st.write(asset.description)
    with col3:
        if st.button("Slet", key=f"asset_del_{asset.id}", icon=":material/delete:"):
            try:
                service.delete_asset(asset.id)
            except PricingAdminError as e:
                st.error(str(e))
                return
            flash(f"{asset.name} slettet")
            st.rerun()


def main():
    show_flash()
    st.title("Designbibliotek")

    with st.expander("Upload ny fil", icon=":material/add:"):
        render_upload_form()

    grouped = service.assets_by_kind()
    tabs = st.tabs([f"{kind.display_name} ({len(grouped.get(kind, []))})" for kind in AssetKind.display_order()])
    for tab, kind in zip(tabs, AssetKind.display_order()):
        with tab:
            assets = grouped.get(kind, [])
            if not assets:
                st.info("Ingen filer.")
            for asset in assets:
                render_asset(asset)


if __name__ == "__main__":
    main()
