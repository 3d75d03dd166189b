"""
Streamlit Frontend for Cashbook

This is the screen a small business owner uses every day to keep
their books: what came in, what went out, and what is on hand.

DESIGN PRINCIPLES:
1. Simple, clear interface
2. Explicit confirmation before anything is deleted
3. Store errors shown as they are, with the form left untouched
4. Every change followed by a fresh load, so the screen matches the books
5. No hidden actions

The UI is a thin shell: all state transitions live in the page flows
(cashbook.orchestrator), the UI only renders them and forwards clicks.
"""

import asyncio
from datetime import date
from uuid import UUID

import streamlit as st

from cashbook.ledger import EXPORT_MIME_TYPE, format_money
from cashbook.models.ledger import (
    BalanceKind,
    FormValidationResult,
    PaymentMethod,
    TransactionQuery,
    TransactionType,
)
from cashbook.orchestrator import (
    AppComponents,
    DashboardFlow,
    TransactionsFlow,
    create_app_components,
)
from cashbook.services.storage import StoreError


# Page configuration
st.set_page_config(
    page_title="Cashbook",
    page_icon="📒",
    layout="wide",
    initial_sidebar_state="expanded",
)

# Custom CSS for better UX
st.markdown("""
<style>
    .stButton>button {
        width: 100%;
    }
    .warning-box {
        padding: 20px;
        background-color: #fff3cd;
        border-radius: 10px;
        border-left: 5px solid #ffc107;
        margin: 10px 0;
    }
    .identity {
        color: #6c757d;
        font-size: 0.9em;
    }
</style>
""", unsafe_allow_html=True)


TYPE_LABELS = {t: t.value.title() for t in TransactionType}
METHOD_LABELS = {
    PaymentMethod.CASH: "Cash",
    PaymentMethod.GCASH: "GCash",
    PaymentMethod.BANK: "Bank",
}
KIND_LABELS = {
    BalanceKind.CASH: "Cash",
    BalanceKind.GCASH: "GCash",
    BalanceKind.BANK: "Bank",
    BalanceKind.CAPITAL: "Capital",
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
def get_components() -> AppComponents:
    """Get or create application components (cached)."""
    try:
        return create_app_components(use_storage=True)
    except Exception as e:
        st.error(f"Failed to initialize: {e}")
        return create_app_components(use_storage=False)


def get_dashboard_flow(components: AppComponents) -> DashboardFlow:
    if "dashboard_flow" not in st.session_state:
        st.session_state.dashboard_flow = components.dashboard_flow()
    return st.session_state.dashboard_flow


def get_transactions_flow(components: AppComponents) -> TransactionsFlow:
    if "transactions_flow" not in st.session_state:
        st.session_state.transactions_flow = components.transactions_flow()
    return st.session_state.transactions_flow


def show_issues(result: FormValidationResult) -> None:
    for issue in result.issues:
        if issue.severity == "error":
            st.error(f"{issue.field}: {issue.message}")
        else:
            st.warning(f"{issue.field}: {issue.message}")


def main():
    """Main application entry point."""
    components = get_components()
    symbol = components.settings.currency_symbol

    # Sidebar navigation
    st.sidebar.title("📒 Cashbook")
    st.sidebar.markdown("---")

    page = st.sidebar.radio(
        "Navigate to:",
        ["📊 Dashboard", "🧾 Transactions", "⚙️ Settings"],
        index=0,
    )

    if page == "⚙️ Settings":
        render_settings_page(components)
        return

    # Auth gate: nothing below renders for an anonymous session
    dashboard_flow = get_dashboard_flow(components)
    try:
        user = run_async(dashboard_flow.identify())
    except StoreError as e:
        user = None
        st.error(f"Load failed: {e.message}")

    if user is None:
        st.markdown("""
        <div class="warning-box">
            <h4>🔒 Not signed in</h4>
            <p>Connect the app to your Google account on the Settings page to see your books.</p>
        </div>
        """, unsafe_allow_html=True)
        st.stop()

    st.sidebar.markdown("---")
    st.sidebar.markdown(
        f'<p class="identity">Signed in as<br><strong>{user.display_identity}</strong></p>',
        unsafe_allow_html=True,
    )

    if page == "📊 Dashboard":
        render_dashboard_page(dashboard_flow, symbol)
    elif page == "🧾 Transactions":
        render_transactions_page(get_transactions_flow(components), symbol)


# =============================================================================
# Dashboard
# =============================================================================

def render_dashboard_page(flow: DashboardFlow, symbol: str):
    """Render the dashboard: five headline numbers and the balances list."""
    st.title("📊 Dashboard")

    try:
        snapshot = run_async(flow.load())
    except StoreError as e:
        st.error(f"Load failed: {e.message}")
        snapshot = flow.snapshot

    col1, col2, col3, col4, col5 = st.columns(5)
    col1.metric("Income", format_money(snapshot.ledger_totals.income, symbol))
    col2.metric("Expense", format_money(snapshot.ledger_totals.expense, symbol))
    col3.metric("Net", format_money(snapshot.ledger_totals.net, symbol))
    col4.metric("Cash on hand", format_money(snapshot.balance_totals.cash_on_hand, symbol))
    col5.metric("Capital", format_money(snapshot.balance_totals.capital, symbol))

    st.markdown("---")
    st.subheader("💼 Balances")

    with st.expander("➕ Add balance"):
        render_balance_form(flow, key="balance_new")

    if not snapshot.balances:
        st.info("No balances yet. Add your cash drawer, GCash wallet, bank account or capital.")
        return

    for balance in snapshot.balances:
        col1, col2, col3, col4 = st.columns([3, 2, 2, 1])
        col1.markdown(f"**{balance.label}**")
        col2.markdown(KIND_LABELS[balance.kind])
        col3.markdown(format_money(balance.balance, symbol))
        with col4:
            if st.button("🗑️", key=f"balance_delete_{balance.id}"):
                st.session_state.pending_balance_delete = balance.id
                st.rerun()

        if st.session_state.get("pending_balance_delete") == balance.id:
            st.warning(f"Delete balance '{balance.label}'?")
            yes, no = st.columns(2)
            if yes.button("Yes, delete", key=f"balance_confirm_{balance.id}", type="primary"):
                st.session_state.pending_balance_delete = None
                try:
                    run_async(flow.delete_balance(balance.id, confirmed=True))
                    st.rerun()
                except StoreError as e:
                    st.error(f"Delete failed: {e.message}")
            if no.button("Keep", key=f"balance_keep_{balance.id}"):
                st.session_state.pending_balance_delete = None
                st.rerun()

        with st.expander(f"✏️ Edit {balance.label}"):
            render_balance_form(
                flow,
                key=f"balance_edit_{balance.id}",
                balance_id=balance.id,
                defaults={
                    "label": balance.label,
                    "kind": balance.kind,
                    "balance": float(balance.balance),
                },
            )


def render_balance_form(flow: DashboardFlow, key: str, balance_id: UUID = None, defaults: dict = None):
    defaults = defaults or {}
    kinds = list(BalanceKind)

    with st.form(key):
        label = st.text_input("Label *", value=defaults.get("label", ""))
        kind = st.selectbox(
            "Kind",
            options=kinds,
            index=kinds.index(defaults.get("kind", BalanceKind.CASH)),
            format_func=lambda k: KIND_LABELS[k],
        )
        amount = st.number_input(
            "Balance",
            value=defaults.get("balance", 0.0),
            step=0.01,
            format="%.2f",
            help="May be negative, e.g. an overdrawn account",
        )
        submitted = st.form_submit_button("Save", type="primary")

    if submitted:
        try:
            result = run_async(flow.save_balance(
                {"label": label, "kind": kind.value, "balance": f"{amount:.2f}"},
                balance_id=balance_id,
            ))
        except StoreError as e:
            st.error(f"Save failed: {e.message}")
            return
        if result.is_valid:
            st.rerun()
        show_issues(result)


# =============================================================================
# Transactions
# =============================================================================

def render_transactions_page(flow: TransactionsFlow, symbol: str):
    """Render the transactions page: add, filter, list, edit, delete, export."""
    st.title("🧾 Transactions")

    if "transactions_loaded" not in st.session_state:
        try:
            run_async(flow.start())
            st.session_state.transactions_loaded = True
        except StoreError as e:
            st.error(f"Load failed: {e.message}")

    render_add_form(flow)
    st.markdown("---")
    render_filters(flow)

    totals = flow.totals
    col1, col2, col3 = st.columns(3)
    col1.metric("Income", format_money(totals.income, symbol))
    col2.metric("Expense", format_money(totals.expense, symbol))
    col3.metric("Net", format_money(totals.net, symbol))

    if flow.truncated:
        st.markdown(f"""
        <div class="warning-box">
            <h4>⚠️ Showing the newest {flow.limit} matches only</h4>
            <p>Older entries may be missing. Narrow the type or method filter to see them.</p>
        </div>
        """, unsafe_allow_html=True)

    st.download_button(
        "⬇️ Download CSV",
        data=flow.export(),
        file_name=flow.export_filename,
        mime=EXPORT_MIME_TYPE,
        on_click=lambda: run_async(flow.record_export()),
    )

    if flow.editor.is_editing():
        render_edit_panel(flow)

    render_table(flow, symbol)


def render_add_form(flow: TransactionsFlow):
    # A new key after each successful save gives a blank form;
    # after a failure the same key keeps what the user typed.
    form_version = st.session_state.setdefault("add_form_version", 0)
    types = list(TransactionType)
    methods = list(PaymentMethod)

    with st.form(f"add_transaction_{form_version}"):
        st.subheader("➕ New entry")
        col1, col2, col3 = st.columns(3)
        with col1:
            entry_date = st.date_input("Date", value=date.today())
            entry_type = st.selectbox("Type", options=types, format_func=lambda t: TYPE_LABELS[t])
        with col2:
            category = st.text_input("Category", placeholder="e.g. Sales, Rent, Supplies")
            method = st.selectbox("Method", options=methods, format_func=lambda m: METHOD_LABELS[m])
        with col3:
            amount = st.number_input("Amount", min_value=0.0, step=0.01, format="%.2f")
            notes = st.text_input("Notes")
        submitted = st.form_submit_button("Save", type="primary")

    if submitted:
        raw = {
            "date": entry_date,
            "type": entry_type.value,
            "category": category,
            "method": method.value,
            "amount": f"{amount:.2f}",
            "notes": notes,
        }
        try:
            result = run_async(flow.add(raw))
        except StoreError as e:
            st.error(f"Save failed: {e.message}")
            return
        if result.is_valid:
            st.session_state.add_form_version = form_version + 1
            st.rerun()
        show_issues(result)


def render_filters(flow: TransactionsFlow):
    query = flow.query
    types = [None] + list(TransactionType)
    methods = [None] + list(PaymentMethod)

    with st.form("filters"):
        col1, col2, col3 = st.columns([3, 1, 1])
        text = col1.text_input(
            "Search",
            value=query.text,
            placeholder="Category or notes contain…",
        )
        type_filter = col2.selectbox(
            "Type",
            options=types,
            index=types.index(query.type),
            format_func=lambda t: "All" if t is None else TYPE_LABELS[t],
        )
        method_filter = col3.selectbox(
            "Method",
            options=methods,
            index=methods.index(query.method),
            format_func=lambda m: "All" if m is None else METHOD_LABELS[m],
        )
        applied = st.form_submit_button("🔍 Apply")

    if applied:
        flow.set_query(TransactionQuery(text=text, type=type_filter, method=method_filter))
        try:
            run_async(flow.load())
        except StoreError as e:
            st.error(f"Load failed: {e.message}")


def render_table(flow: TransactionsFlow, symbol: str):
    rows = flow.rows
    if not rows:
        st.info("No entries match. Add one above or change the filters.")
        return

    header = st.columns([2, 1, 2, 1, 2, 3, 1, 1])
    for col, title in zip(header, ["Date", "Type", "Category", "Method", "Amount", "Notes", "", ""]):
        col.markdown(f"**{title}**")

    pending = st.session_state.get("pending_delete")

    for tx in rows:
        cols = st.columns([2, 1, 2, 1, 2, 3, 1, 1])
        cols[0].write(tx.date.isoformat())
        cols[1].write(TYPE_LABELS[tx.type])
        cols[2].write(tx.category or "")
        cols[3].write(METHOD_LABELS[tx.method])
        cols[4].write(format_money(tx.amount, symbol))
        cols[5].write(tx.notes or "")

        if cols[6].button("✏️", key=f"edit_{tx.id}", help="Edit"):
            flow.begin_edit(tx.id)
            st.rerun()
        if cols[7].button("🗑️", key=f"delete_{tx.id}", help="Delete"):
            st.session_state.pending_delete = tx.id
            st.rerun()

        if pending == tx.id:
            st.warning("Delete this entry? This cannot be undone.")
            yes, no = st.columns(2)
            if yes.button("Yes, delete", key=f"confirm_{tx.id}", type="primary"):
                st.session_state.pending_delete = None
                try:
                    run_async(flow.remove(tx.id, confirmed=True))
                    st.rerun()
                except StoreError as e:
                    st.error(f"Delete failed: {e.message}")
            if no.button("Keep", key=f"keep_{tx.id}"):
                st.session_state.pending_delete = None
                st.rerun()


def render_edit_panel(flow: TransactionsFlow):
    draft = flow.editor.draft
    transaction_id = flow.editor.transaction_id
    types = list(TransactionType)
    methods = list(PaymentMethod)

    st.markdown("---")
    st.subheader("✏️ Edit entry")

    with st.form(f"edit_form_{transaction_id}"):
        col1, col2, col3 = st.columns(3)
        with col1:
            entry_date = st.date_input("Date", value=draft.date)
            entry_type = st.selectbox(
                "Type", options=types, index=types.index(draft.type),
                format_func=lambda t: TYPE_LABELS[t],
            )
        with col2:
            category = st.text_input("Category", value=draft.category or "")
            method = st.selectbox(
                "Method", options=methods, index=methods.index(draft.method),
                format_func=lambda m: METHOD_LABELS[m],
            )
        with col3:
            amount = st.number_input(
                "Amount", value=float(draft.amount), min_value=0.0, step=0.01, format="%.2f",
            )
            notes = st.text_input("Notes", value=draft.notes or "")

        update_col, cancel_col = st.columns(2)
        update = update_col.form_submit_button("💾 Update", type="primary")
        cancel = cancel_col.form_submit_button("Cancel")

    if cancel:
        run_async(flow.cancel_edit())
        st.rerun()

    if update:
        try:
            flow.change_draft(
                date=entry_date,
                type=entry_type,
                category=category,
                method=method,
                amount=f"{amount:.2f}",
                notes=notes,
            )
        except ValueError as e:
            st.error(f"Update failed: {e}")
            return
        try:
            run_async(flow.save_edit())
            st.rerun()
        except StoreError as e:
            st.error(f"Update failed: {e.message}")


# =============================================================================
# Settings
# =============================================================================

def render_settings_page(components: AppComponents):
    """Render the settings page."""
    st.title("⚙️ Settings")

    st.markdown("### Connection Status")

    from cashbook.config import validate_all_settings

    status = validate_all_settings()

    services = [
        ("Google Sheets (Storage)", "google_sheets"),
        ("Application", "app"),
    ]

    for name, key in services:
        if status.get(key, False):
            st.success(f"✅ {name} - Configured")
        else:
            error = status.get(f"{key}_error", "Not configured")
            st.error(f"❌ {name} - {error}")

    if components.sheets_client is not None:
        user = components.sheets_client.current_user()
        if user:
            st.success(f"✅ Signed in as {user.display_identity}")
        else:
            st.error("❌ Could not sign in to Google Sheets")

    st.markdown("---")
    st.markdown("### Recent Activity")
    try:
        events = run_async(components.audit_logger.recent_events(limit=20))
    except StoreError as e:
        events = []
        st.error(f"Could not read the audit log: {e.message}")
    if events:
        st.dataframe(
            [
                {
                    "When (UTC)": event.timestamp.strftime("%Y-%m-%d %H:%M"),
                    "Event": event.event_type.value,
                    "Details": event.description,
                    "Error": event.error_message or "",
                }
                for event in events
            ],
            hide_index=True,
            use_container_width=True,
        )
    else:
        st.caption("No audit events recorded yet.")

    st.markdown("---")
    st.markdown("### Configuration")
    settings = components.settings
    st.markdown(f"- **Row limit:** {settings.row_limit}")
    st.markdown(f"- **Export file name:** `{settings.export_filename}`")
    st.markdown(f"- **Currency symbol:** {settings.currency_symbol}")
    st.markdown(
        "To configure the application, create a `.env` file with your Google "
        "service account details. See `.env.example` for the required variables."
    )


if __name__ == "__main__":
    main()
