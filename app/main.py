"""
Streamlit Frontend for Expense Tracker

The daily page: add or edit an expense, see today's and this month's
spend, the monthly budget bar, the category breakdown, and the list of
expenses with filters. Export and import live in the sidebar.

The UI holds no ledger logic. Every action goes through LedgerService,
and the "currently editing" expense is an EditSession kept in
st.session_state.

Run with:
    streamlit run app/main.py
"""

import asyncio
import tempfile
from datetime import date
from pathlib import Path

import streamlit as st

from expense_tracker.formatting import category_choices, format_money
from expense_tracker.models.expense import BudgetState, SortMode, ViewFilters
from expense_tracker.orchestrator import EditSession, LedgerService, create_ledger_service
from expense_tracker.services.storage import StorageError


st.set_page_config(
    page_title="Daily Expense Tracker",
    page_icon="💰",
    layout="wide",
)

SORT_LABELS = {
    SortMode.DATE_DESC: "Newest first",
    SortMode.DATE_ASC: "Oldest first",
    SortMode.AMOUNT_DESC: "Highest amount",
    SortMode.AMOUNT_ASC: "Lowest amount",
}

BAR_COLORS = {
    BudgetState.EXCEEDED: "#b91c1c",
    BudgetState.WARNING: "#b45309",
}


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@st.cache_resource
def get_service() -> LedgerService:
    """Get or create the ledger service (cached)."""
    return create_ledger_service()


def get_session() -> EditSession:
    if "edit_session" not in st.session_state:
        st.session_state.edit_session = EditSession()
    return st.session_state.edit_session


def render_form(service: LedgerService, session: EditSession):
    """Add / edit form."""
    editing = None
    if session.is_editing:
        editing = next(
            (e for e in service.list_expenses() if e.id == session.editing_id),
            None,
        )
        if editing is None:
            session.cancel()

    st.subheader("Edit Expense" if editing else "Add Expense")
    with st.form("expense_form", clear_on_submit=True):
        expense_date = st.date_input(
            "Date",
            value=date.fromisoformat(editing.date) if editing else date.today(),
        )
        amount = st.text_input("Amount", value=str(editing.amount) if editing else "")
        categories = category_choices(editing.category if editing else None)
        category = st.selectbox(
            "Category",
            categories,
            index=categories.index(editing.category) if editing else 0,
        )
        note = st.text_input("Note", value=editing.note if editing else "")
        submitted = st.form_submit_button("Save Changes" if editing else "Add Expense")

    if submitted:
        try:
            result = service.submit(session, expense_date.isoformat(), amount, category, note)
        except StorageError as e:
            st.error(f"Could not save: {e}")
            return
        if result.accepted:
            st.rerun()
        for message in result.messages:
            st.error(message)

    if editing and st.button("Cancel edit"):
        session.cancel()
        st.rerun()


def render_summary(dashboard):
    summary = dashboard.summary
    cols = st.columns(4)
    cols[0].metric("Today", format_money(summary.today_total))
    cols[1].metric("This month", format_money(summary.month_total))
    cols[2].metric("Transactions", str(summary.transaction_count))
    cols[3].metric("Avg / day", format_money(summary.avg_per_day))


def render_budget(service: LedgerService, dashboard):
    st.subheader("Monthly Budget")
    status = dashboard.budget
    current = service.get_budget()

    with st.form("budget_form"):
        value = st.text_input("Budget", value=str(current) if current else "")
        col_set, col_clear = st.columns(2)
        set_clicked = col_set.form_submit_button("Set budget")
        clear_clicked = col_clear.form_submit_button("Clear budget")

    try:
        if set_clicked:
            if service.set_budget(value):
                st.rerun()
            st.error("Budget must be a positive amount")
        if clear_clicked:
            service.clear_budget()
            st.rerun()
    except StorageError as e:
        st.error(f"Could not save the budget: {e}")

    color = BAR_COLORS.get(status.state, "linear-gradient(90deg, #1d9a90, #0f766e)")
    st.markdown(
        f"""
        <div style="background:#e5e7eb;border-radius:8px;height:14px;">
          <div style="width:{float(status.display_percent):.1f}%;height:14px;
                      border-radius:8px;background:{color};"></div>
        </div>
        """,
        unsafe_allow_html=True,
    )
    st.caption(status.label())


def render_breakdown(dashboard):
    st.subheader("This Month by Category")
    if not dashboard.breakdown:
        st.info("No expenses this month yet.")
        return
    for item in dashboard.breakdown:
        left, right = st.columns([3, 1])
        left.write(item.category)
        right.write(f"**{format_money(item.total)}**")


def render_list(service: LedgerService, session: EditSession):
    st.subheader("Expenses")
    col_date, col_search, col_sort = st.columns(3)
    filter_date = col_date.date_input("Filter by date", value=None)
    note_query = col_search.text_input("Search notes")
    sort_mode = col_sort.selectbox(
        "Sort by",
        list(SORT_LABELS),
        format_func=SORT_LABELS.get,
    )

    filters = ViewFilters(
        date=filter_date.isoformat() if filter_date else None,
        note_query=note_query,
    )
    dashboard = service.dashboard(filters=filters, sort_mode=sort_mode)

    if not dashboard.visible:
        st.info("No expenses to show.")

    for expense in dashboard.visible:
        main, edit_col, delete_col = st.columns([6, 1, 1])
        meta = expense.date + (f" | {expense.note}" if expense.note else "")
        main.markdown(f"**{format_money(expense.amount)}** - {expense.category}  \n{meta}")
        if edit_col.button("Edit", key=f"edit_{expense.id}"):
            session.begin(expense)
            st.rerun()
        if delete_col.button("Delete", key=f"delete_{expense.id}"):
            try:
                service.delete_expense(expense.id, session=session)
            except StorageError as e:
                st.error(f"Could not delete: {e}")
            else:
                st.rerun()

    return dashboard


def render_interchange(service: LedgerService):
    st.sidebar.subheader("Export / Import")
    st.sidebar.download_button(
        "Export CSV",
        data=service.export_text().encode("utf-8"),
        file_name=service.export_filename(),
        mime="text/csv",
    )

    uploaded = st.sidebar.file_uploader("Import CSV", type=["csv", "txt"])
    if uploaded is not None and st.sidebar.button("Import"):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "import.csv"
            path.write_bytes(uploaded.getvalue())
            try:
                result = run_async(service.import_file(path))
            except StorageError as e:
                st.sidebar.error(f"Import not saved: {e}")
                return
        if result.saved:
            st.sidebar.success(
                f"Imported {result.imported} expense(s), skipped {result.dropped_rows} row(s)."
            )
        else:
            st.sidebar.warning("Nothing to import from that file.")


def main():
    """Main application entry point."""
    service = get_service()
    session = get_session()

    st.title("💰 Daily Expense Tracker")

    left, right = st.columns([1, 2])
    with left:
        render_form(service, session)
    with right:
        dashboard = render_list(service, session)

    render_summary(dashboard)

    col_budget, col_breakdown = st.columns(2)
    with col_budget:
        render_budget(service, dashboard)
    with col_breakdown:
        render_breakdown(dashboard)

    render_interchange(service)


if __name__ == "__main__":
    main()
