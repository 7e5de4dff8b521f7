"""
Dealership Commission Reports - Streamlit Application
"""
import os
import tempfile
from pathlib import Path

import pandas as pd
import streamlit as st

from commission_report.collections_store import (
    CollectionsBonusStore,
    collections_bonus_options,
    collections_inputs,
    select_collections_bonus,
    set_collections_lock,
)
from commission_report.data_loader import SaleLoader
from commission_report.date_windows import (
    bonus_week_range,
    build_week_buckets,
    find_week_bucket,
    format_week_label,
    today_in_report_timezone,
)
from commission_report.manual_commissions import ManualCommissionStore, parse_manual_commissions
from commission_report.models import CommissionReportSnapshot, CommissionSalespersonSnapshot
from commission_report.report_generator import CommissionReportExporter
from commission_report.report_log import ReportLog
from commission_report.row_edits import collect_row_edits
from commission_report.snapshot_builder import build_snapshot
from config import COMPANY_NAME

NO_SELECTION = "Not selected"


# Initialize storage (cached across reruns)
@st.cache_resource
def _get_stores():
    return CollectionsBonusStore(), ManualCommissionStore(), ReportLog()


collections_store, manual_store, report_log = _get_stores()


def _load_sales():
    """Sales come from an uploaded export, or SALES_FILE when set."""
    if 'sales' not in st.session_state:
        st.session_state.sales = []
        default_file = os.environ.get('SALES_FILE')
        if default_file and Path(default_file).exists():
            st.session_state.sales = SaleLoader.load(default_file)

    uploaded = st.sidebar.file_uploader("Sales export", type=['csv', 'xlsx', 'json'])
    if uploaded is not None and st.session_state.get('sales_file') != uploaded.name:
        with tempfile.NamedTemporaryFile(suffix=Path(uploaded.name).suffix, delete=False) as tmp:
            tmp.write(uploaded.getvalue())
            tmp_path = tmp.name
        try:
            st.session_state.sales = SaleLoader.load(tmp_path)
            st.session_state.sales_file = uploaded.name
        except ValueError as e:
            st.sidebar.error(f"❌ {e}")
        finally:
            Path(tmp_path).unlink()

    return st.session_state.sales


def _notes_for_week(week_key: str) -> dict:
    notes = st.session_state.setdefault('notes', {})
    return notes.setdefault(week_key, {})


def _rows_dataframe(person: CommissionSalespersonSnapshot, manual: dict) -> pd.DataFrame:
    data = []
    for row in person.rows:
        data.append({
            'key': row.key,
            '#': row.sequence,
            'Date': row.sale_date_display,
            'Account': row.account_number,
            'Vehicle': row.vehicle,
            'VIN': row.vin_last4,
            'Type': row.sale_type,
            'Down Payment': row.true_down_payment,
            'Base': round(row.base_commission, 2),
            'Manual $': manual.get(row.key, ''),
            'Commission': row.adjusted_commission,
            'Override': row.override_details or '',
            'Notes': row.notes,
        })
    return pd.DataFrame(data)


def render_salesperson(person: CommissionSalespersonSnapshot, week_key: str, manual: dict, editable: bool):
    """Render one salesperson block; edits are written back to session/storage."""
    st.subheader(person.salesperson)

    if person.is_house:
        col1, col2, col3 = st.columns(3)
        col1.metric("Collections Bonus", f"${person.collections_bonus or 0:,.2f}")
        col2.metric("Weekly Sales", f"{person.weekly_sales_count or 0} deals",
                    f"{person.weekly_sales_count_over_threshold or 0} over 5")
        col3.metric("Weekly Sales Bonus", f"${person.weekly_sales_bonus or 0:,.2f}")

    df = _rows_dataframe(person, manual)
    column_config = {
        'key': None,
        'Down Payment': st.column_config.NumberColumn(format="$%.2f"),
        'Base': st.column_config.NumberColumn(format="$%.2f"),
        'Commission': st.column_config.NumberColumn(format="$%.2f"),
    }

    if editable:
        edited = st.data_editor(
            df,
            column_config=column_config,
            disabled=[c for c in df.columns if c not in ('Notes', 'Manual $')],
            hide_index=True,
            use_container_width=True,
            key=f"editor_{week_key}_{person.salesperson}",
        )
        notes = _notes_for_week(week_key)
        edits = collect_row_edits(person.rows, edited.to_dict(orient='records'), notes, manual)
        notes.update(edits.notes)
        for key, amount in edits.manual_commissions.items():
            manual_store.set_entry(week_key, key, amount)
        # Rerun only on stored changes; the editor resubmits its cells every run
        if edits.changed:
            st.rerun()
    else:
        st.dataframe(df, column_config=column_config, hide_index=True, use_container_width=True)

    st.markdown(f"**Total Commission:** ${person.total_adjusted_commission:,.2f}")
    if person.is_house:
        st.markdown(f"**Total Payout:** ${person.total_payout:,.2f}")
    st.markdown("---")


def _on_collections_change(week_key: str, widget_key: str):
    """Store the bonus only when the user picks a different option"""
    choice = st.session_state[widget_key]
    selected = None if choice == NO_SELECTION else float(choice)
    try:
        select_collections_bonus(collections_store, week_key, selected)
    except ValueError as e:
        st.sidebar.error(f"❌ {e}")


def render_collections_controls(week_key: str):
    """Collections bonus selection and lock for Key"""
    state = collections_store.get(week_key)
    st.sidebar.markdown("### 💰 Collections Bonus (Key)")

    options = [NO_SELECTION] + collections_bonus_options(state)
    index = options.index(state.value) if state.has_value else 0
    widget_key = f"collections_{week_key}"
    st.sidebar.selectbox(
        "Bonus",
        options,
        index=index,
        format_func=lambda option: option if option == NO_SELECTION else f"${option:,.0f}",
        disabled=state.locked,
        key=widget_key,
        on_change=_on_collections_change,
        args=(week_key, widget_key),
    )

    if state.locked:
        st.sidebar.caption("🔒 Locked for this period")
        if st.sidebar.button("🔓 Unlock", key=f"unlock_{week_key}"):
            set_collections_lock(collections_store, week_key, False)
            st.rerun()
    else:
        st.sidebar.caption("Unlocked" if state.has_value else "No bonus selected")
        if st.sidebar.button("🔒 Lock", key=f"lock_{week_key}"):
            try:
                set_collections_lock(collections_store, week_key, True)
                st.rerun()
            except ValueError as e:
                st.sidebar.error(f"❌ {e}")

    return state


def page_commission_report():
    """Live commission report for a commission week"""
    st.header("🧾 Commission Report")

    sales = _load_sales()
    buckets = build_week_buckets(sales, anchor=today_in_report_timezone())

    st.sidebar.markdown("### 📅 Reporting Window (Fri → Thu)")
    labels = {bucket.key: bucket.label for bucket in buckets}
    selected_key = st.sidebar.selectbox("Commission Week", list(labels), format_func=labels.get)
    week = find_week_bucket(buckets, selected_key)
    if week is None:
        st.info("📭 No sales data available to generate a commission report.")
        return

    state = render_collections_controls(week.key)
    selections, locks = collections_inputs(state)
    manual = manual_store.get(week.key)

    snapshot = build_snapshot(
        list(week.sales),
        _notes_for_week(week.key),
        week.start,
        week.end,
        collections_selections=selections,
        collections_locks=locks,
        all_sales=sales,
        manual_commissions=parse_manual_commissions(manual),
    )

    bonus_range = bonus_week_range(week.start)
    st.caption(f"Week: {week.label} · Bonus week: {format_week_label(bonus_range.start, bonus_range.end)}")

    if not snapshot.totals.collections_complete:
        st.warning("⚠️ Select and lock a collections bonus for Key before logging or exporting the commission report.")

    if not snapshot.salespeople:
        st.info("📭 No sales in this commission week.")

    for person in snapshot.salespeople:
        render_salesperson(person, week.key, manual, editable=True)

    render_report_actions(snapshot)


def render_report_actions(snapshot: CommissionReportSnapshot):
    col1, col2 = st.columns(2)
    complete = snapshot.totals.collections_complete

    with col1:
        if st.button("📝 Log Report", type="primary", disabled=not complete):
            try:
                report_log.log_report(snapshot)
                st.success("✅ Commission report logged successfully.")
            except ValueError as e:
                st.error(f"❌ {e}")

    with col2:
        if complete:
            with tempfile.NamedTemporaryFile(suffix='.xlsx', delete=False) as tmp:
                tmp_path = tmp.name
            CommissionReportExporter(snapshot).export_excel(tmp_path)
            data = Path(tmp_path).read_bytes()
            Path(tmp_path).unlink()
            st.download_button(
                "📥 Download Excel",
                data=data,
                file_name=f"commission-report-{snapshot.period_end}.xlsx",
                mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
            )


def page_report_log():
    """Archived (read-only) commission reports"""
    st.header("🗂️ Logged Reports")

    logs = report_log.get_all_logs()
    if not logs:
        st.info("📭 No commission reports logged yet.")
        return

    for entry in logs:
        snapshot = CommissionReportSnapshot.from_dict(entry['data'])
        title = f"{snapshot.period_start} → {snapshot.period_end} (logged {entry['logged_at'][:10]})"
        with st.expander(title):
            for person in snapshot.salespeople:
                render_salesperson(person, snapshot.period_start, {}, editable=False)
            if st.button("🗑️ Delete", key=f"delete_{entry['id']}"):
                report_log.delete_log(entry['id'])
                st.rerun()


def main():
    st.set_page_config(
        page_title=f"{COMPANY_NAME} - Commissions",
        page_icon="🚗",
        layout="wide"
    )

    # Sidebar navigation
    st.sidebar.title(f"🚗 {COMPANY_NAME}")

    page = st.sidebar.radio(
        "Navigation",
        ["🧾 Commission Report", "🗂️ Logged Reports"],
        label_visibility="collapsed"
    )

    st.sidebar.markdown("---")

    # Page routing
    if page == "🧾 Commission Report":
        page_commission_report()
    elif page == "🗂️ Logged Reports":
        page_report_log()


if __name__ == '__main__':
    main()
