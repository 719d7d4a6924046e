"""
app.py - Main Streamlit interface for Market Share Reports.

Upload brokerage market share exports, review how each file was read,
and download the normalized data of the markets that can be reported.
"""

import logging

import pandas as pd
import streamlit as st

from marketshare.constants import (
    APP_ICON,
    APP_SUBTITLE,
    APP_TITLE,
    DEVELOPER_CONTACT_ACTION,
    DEVELOPER_CONTACT_MESSAGE,
    MAX_BROKERAGES_PREVIEW,
    STATUS_ICONS,
    VIEW_LABELS,
)
from marketshare.models import RecordStatus
from marketshare.processor import process_files
from marketshare.reports import (
    ReportUnavailableError,
    build_kpi_cards,
    build_report_context,
    format_brokerage_table,
    format_status_table,
    format_value,
    ready_markets,
)
from marketshare.export import (
    batch_export_name,
    export_csv,
    export_excel,
    export_markets_workbook,
    generate_file_name,
    safe_export_name,
)

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)

XLSX_MIME = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


# =============================================================================
# PAGE CONFIGURATION
# =============================================================================
st.set_page_config(
    page_title=APP_TITLE,
    page_icon=APP_ICON,
    layout="wide",
    initial_sidebar_state="expanded"
)

st.markdown("""
<style>
    .stDownloadButton > button {
        width: 100%;
    }
    .stTabs [data-baseweb="tab-list"] {
        gap: 24px;
    }
</style>
""", unsafe_allow_html=True)


# =============================================================================
# SESSION STATE
# =============================================================================
def get_markets():
    """Processed records of this session, in upload order."""
    return st.session_state.setdefault('markets', [])


def add_uploads(uploads):
    """Processes new uploads and appends them to the session."""
    files = [(u.name, u.getvalue()) for u in uploads]
    results = process_files(files)
    get_markets().extend(results)
    return results


def render_diagnostics(market):
    for error in market.errors:
        st.error(error)
    for warning in market.warnings:
        st.warning(warning)


# =============================================================================
# MAIN INTERFACE
# =============================================================================
def main():
    st.title(f"{APP_ICON} {APP_TITLE}")
    st.markdown(f"*{APP_SUBTITLE}*")
    st.markdown("---")

    # ==========================================================================
    # SIDEBAR - Upload
    # ==========================================================================
    with st.sidebar:
        st.header(":file_folder: Upload")

        uploads = st.file_uploader(
            "Market share exports",
            type=['xlsx', 'xls', 'csv'],
            accept_multiple_files=True,
            help="One file per market. Layouts with Market Share ($)/(#) or Mkt % headers."
        )

        process_clicked = st.button(
            ":gear: Process Files",
            type="primary",
            use_container_width=True,
            disabled=not uploads
        )

        if st.button(":wastebasket: Clear All", use_container_width=True):
            st.session_state['markets'] = []

    if process_clicked and uploads:
        with st.spinner("Processing files..."):
            results = add_uploads(uploads)
        failed = sum(1 for m in results if m.status is RecordStatus.ERROR)
        if failed:
            st.error(f":x: {failed} of {len(results)} files could not be used")
        else:
            st.success(f":white_check_mark: {len(results)} files processed")

    markets = get_markets()
    if not markets:
        st.info(":point_left: Upload one or more market share files in the sidebar to start.")
        return

    tab_files, tab_market, tab_export = st.tabs([
        ":clipboard: Files",
        ":bar_chart: Market",
        ":arrow_down: Export",
    ])

    # ==========================================================================
    # TAB: FILES
    # ==========================================================================
    with tab_files:
        st.subheader("Processed files")
        st.dataframe(format_status_table(markets), use_container_width=True, hide_index=True)

        for market in markets:
            icon = STATUS_ICONS.get(market.status.value, "")
            with st.expander(f"{icon} {market.title} ({market.source_file_name})"):
                render_diagnostics(market)
                if market.status is RecordStatus.READY:
                    st.success("Ready")

    # ==========================================================================
    # TAB: MARKET
    # ==========================================================================
    with tab_market:
        by_id = {m.id: m for m in markets}
        selected = st.selectbox(
            "Market",
            options=list(by_id.keys()),
            format_func=lambda i: f"{by_id[i].title} ({by_id[i].source_file_name})",
        )
        market = by_id[selected]

        new_title = st.text_input(
            "Report title",
            value=market.display_title_override or market.derived_market_name,
            key=f"title_{market.id}",
        )
        if new_title.strip() and new_title.strip() != market.derived_market_name:
            market.display_title_override = new_title.strip()
        else:
            market.display_title_override = None

        render_diagnostics(market)

        if market.brokerages:
            st.caption(
                f"Market total: {format_value(market.total_market_dollar, 'compact_currency')} "
                f"across {format_value(market.total_market_units, 'number')} sales"
            )

        if not market.can_generate_report:
            st.info("No report can be generated for this market.")
        else:
            view = st.radio(
                "Market share view",
                options=list(market.available_metric_views),
                format_func=lambda v: VIEW_LABELS[v.value],
                horizontal=True,
                key=f"view_{market.id}",
            )

            try:
                context = build_report_context(market, view, limit=MAX_BROKERAGES_PREVIEW)
            except ReportUnavailableError as e:
                st.error(str(e))
                context = None

            if context is not None:
                if context.requires_confirmation:
                    st.warning(f"{DEVELOPER_CONTACT_MESSAGE} {DEVELOPER_CONTACT_ACTION}")

                st.subheader(context.title)

                if context.kpis is not None:
                    cards = build_kpi_cards(context.kpis)
                    for col, card in zip(st.columns(len(cards)), cards):
                        with col:
                            st.metric(label=card['label'], value=card['value'])

                chart_df = pd.DataFrame({
                    'Brokerage': [b.name for b in context.brokerages],
                    'Share %': [b.share(context.view) for b in context.brokerages],
                }).set_index('Brokerage')
                st.bar_chart(chart_df)

                st.markdown(context.summary)

        st.markdown("---")
        df_table = format_brokerage_table(market)
        if not df_table.empty:
            st.dataframe(df_table, use_container_width=True, hide_index=True)

            col_dl1, col_dl2, _ = st.columns([1, 1, 2])
            base_name = safe_export_name(market.title) or "market"
            with col_dl1:
                st.download_button(
                    ":arrow_down: CSV",
                    data=export_csv(df_table),
                    file_name=generate_file_name(base_name, "csv"),
                    mime="text/csv",
                    key=f"dl_csv_{market.id}"
                )
            with col_dl2:
                st.download_button(
                    ":arrow_down: Excel",
                    data=export_excel(df_table, "Brokerages"),
                    file_name=generate_file_name(base_name, "xlsx"),
                    mime=XLSX_MIME,
                    key=f"dl_xlsx_{market.id}"
                )

    # ==========================================================================
    # TAB: EXPORT
    # ==========================================================================
    with tab_export:
        st.subheader("Batch export")

        reportable = ready_markets(markets)
        st.info(f"{len(reportable)} of {len(markets)} markets can produce a report.")

        with_warnings = [m for m in reportable if m.requires_confirmation]
        confirmed = True
        if with_warnings:
            st.warning(
                f"{len(with_warnings)} markets have warnings. {DEVELOPER_CONTACT_MESSAGE}"
            )
            confirmed = st.checkbox("I reviewed the warnings and want to export anyway")

        st.download_button(
            ":arrow_down: Workbook (all markets)",
            data=export_markets_workbook(markets),
            file_name=batch_export_name("xlsx"),
            mime=XLSX_MIME,
            disabled=not confirmed,
            key="dl_workbook"
        )


# =============================================================================
# EXECUTION
# =============================================================================
if __name__ == "__main__":
    main()
