"""Streamlit pages for the mining ledger.

Pages call the session and data services and render the result. Service errors
are shown inline; a failed list load shows an error banner above an empty state.
"""

from __future__ import annotations

import datetime as dt
from typing import Any, Callable

import streamlit as st

from src.domains.ledger import calculations
from src.domains.ledger.forms import (
    FormError,
    build_expense_draft,
    build_income_draft,
    build_inventory_draft,
    validate_new_password,
)
from src.domains.ledger.models import (
    EXPENSE_CATEGORIES,
    INVENTORY_TYPES,
    MINERAL_TYPES,
    PAYMENT_STATUSES,
    Expense,
    Income,
    InventoryItem,
)
from src.services.data_service import DataService, DataServiceError
from src.services.password_reset import PasswordResetFlow, ResetStep
from src.services.session_manager import SessionManager
from src.utils.config import currency
from src.utils.logger import get_logger

logger = get_logger()


def format_currency(amount: float, code: str | None = None) -> str:
    """Whole-unit amount with thousands separators, e.g. 'UGX 1,250,000'."""
    code = code or currency()
    sign = "-" if amount < 0 else ""
    return f"{sign}{code} {abs(amount):,.0f}"


def _load(action: Callable[[], Any], default: Any) -> Any:
    """Run a service call for a page; show the error and fall back on failure."""
    try:
        return action()
    except DataServiceError as e:
        st.error(str(e))
        return default


def _show_form_error(e: FormError) -> None:
    for field, msg in e.errors.items():
        st.error(f"{field.replace('_', ' ').capitalize()}: {msg}")


def _index(options: tuple[str, ...], value: str | None) -> int:
    return options.index(value) if value in options else 0


def _confirm_delete(label: str, key: str, on_delete: Callable[[], None]) -> None:
    """Delete only after the user ticks the confirmation box."""
    confirm = st.checkbox(f"I want to delete {label}", key=f"{key}_confirm")
    if st.button("Delete", key=f"{key}_delete", disabled=not confirm):
        try:
            on_delete()
            st.success(f"Deleted {label}")
            st.rerun()
        except DataServiceError as e:
            st.error(str(e))


# --- Authentication ---

def render_auth(session: SessionManager) -> None:
    login_tab, signup_tab, reset_tab = st.tabs(["Sign in", "Create account", "Forgot password"])

    with login_tab:
        with st.form("login_form"):
            email = st.text_input("Email")
            password = st.text_input("Password", type="password")
            submitted = st.form_submit_button("Sign in", use_container_width=True)
        if submitted:
            result = session.login(email.strip(), password)
            if result:
                st.rerun()
            st.error(result.error or "Invalid email or password")

    with signup_tab:
        with st.form("signup_form"):
            name = st.text_input("Full name")
            email = st.text_input("Email", key="signup_email")
            phone = st.text_input("Phone (optional)")
            password = st.text_input("Password", type="password", key="signup_password")
            confirm = st.text_input("Confirm password", type="password")
            admin_code = st.text_input("Admin code (optional)", type="password")
            submitted = st.form_submit_button("Create account", use_container_width=True)
        if submitted:
            try:
                validate_new_password(password, confirm)
            except FormError as e:
                _show_form_error(e)
            else:
                result = session.signup(
                    email.strip(), password, name.strip(), phone=phone.strip() or None, admin_code=admin_code or None
                )
                if result:
                    st.rerun()
                st.error(result.error or "Signup failed")

    with reset_tab:
        _render_password_reset(session)


def _render_password_reset(session: SessionManager) -> None:
    flow: PasswordResetFlow = st.session_state.setdefault("password_reset", PasswordResetFlow(session))

    if flow.step is ResetStep.EMAIL:
        st.caption("Enter your email to receive a verification code")
        with st.form("reset_email_form"):
            email = st.text_input("Email", value=flow.email, key="reset_email")
            if st.form_submit_button("Send code", use_container_width=True):
                if flow.request_code(email):
                    st.rerun()
    elif flow.step is ResetStep.OTP:
        st.caption(f"Enter the code sent to {flow.email}")
        with st.form("reset_otp_form"):
            otp = st.text_input("Verification code")
            new_password = st.text_input("New password", type="password")
            confirm = st.text_input("Confirm new password", type="password")
            if st.form_submit_button("Reset password", use_container_width=True):
                if flow.submit(otp, new_password, confirm):
                    st.rerun()
        if st.button("Use a different email"):
            flow.back()
            st.rerun()
    else:
        st.success("Your password has been reset. Sign in with the new password.")
        if st.button("Start over"):
            flow.back()
            st.rerun()

    if flow.error:
        st.error(flow.error)


# --- Dashboard ---

def render_dashboard(data: DataService) -> None:
    st.header("Dashboard")
    bundle = _load(data.load_dashboard, None)
    if bundle is None:
        return
    s = bundle.summary
    c1, c2, c3 = st.columns(3)
    c1.metric("Total income", format_currency(s.total_income))
    c2.metric("Total expenses", format_currency(s.total_expenses))
    c3.metric("Net profit", format_currency(s.net_profit), f"{s.profit_margin:.1f}% margin")
    c4, c5 = st.columns(2)
    c4.metric("Receivables", format_currency(s.total_receivables))
    c5.metric("Payables", format_currency(s.total_payables))

    st.subheader("Recent transactions")
    recent = calculations.merge_transactions(bundle.incomes, bundle.expenses)[:5]
    if not recent:
        st.info("No transactions yet")
    for t in recent:
        sign = "+" if t.type == "income" else "-"
        st.markdown(
            f"**{t.description}** · {t.date:%b %d, %Y} · {sign}{format_currency(t.total_amount)} · `{t.payment_status}`"
        )


# --- Income ---

def _income_form(data: DataService, existing: Income | None) -> None:
    key = f"income_form_{existing.id if existing else 'new'}"
    with st.form(key, clear_on_submit=existing is None):
        values = {
            "date": st.date_input("Date", value=existing.date if existing else dt.date.today()),
            "mineral_type": st.selectbox(
                "Mineral", MINERAL_TYPES, index=_index(MINERAL_TYPES, existing and existing.mineral_type)
            ),
            "quantity": st.text_input("Quantity", value=str(existing.quantity) if existing else ""),
            "unit": st.text_input("Unit", value=existing.unit if existing else "kg"),
            "price_per_unit": st.text_input("Price per unit", value=str(existing.price_per_unit) if existing else ""),
            "customer_name": st.text_input("Customer name", value=existing.customer_name if existing else ""),
            "customer_contact": st.text_input("Customer contact", value=existing.customer_contact if existing else ""),
            "payment_status": st.selectbox(
                "Payment status", PAYMENT_STATUSES, index=_index(PAYMENT_STATUSES, existing and existing.payment_status)
            ),
            "amount_paid": st.text_input("Amount paid", value=str(existing.amount_paid) if existing else "0"),
            "notes": st.text_area("Notes", value=(existing.notes or "") if existing else ""),
        }
        submitted = st.form_submit_button("Update income" if existing else "Add income")
    if not submitted:
        return
    try:
        draft = build_income_draft(values)
        if existing:
            data.update_income(existing.id, draft)
        else:
            data.create_income(draft)
    except FormError as e:
        _show_form_error(e)
    except DataServiceError as e:
        st.error(str(e))
    else:
        st.success(f"Saved. Total {format_currency(draft.total_amount)}, due {format_currency(draft.amount_due)}")
        st.rerun()


def render_income(data: DataService) -> None:
    st.header("Income")
    incomes: list[Income] = _load(data.get_incomes, [])
    c1, c2 = st.columns(2)
    c1.metric("Total sales", format_currency(sum(i.total_amount for i in incomes)))
    c2.metric("Receivables", format_currency(calculations.receivables(incomes)))

    with st.expander("Add income"):
        _income_form(data, None)

    if not incomes:
        st.info("No income records")
        return
    st.dataframe([t.model_dump(by_alias=True, mode="json") for t in incomes], use_container_width=True)

    labels = {f"{i.date} · {i.mineral_type} · {i.customer_name} (#{i.id})": i for i in incomes}
    choice = st.selectbox("Edit or delete", list(labels), index=None, placeholder="Select a record")
    if choice:
        selected = labels[choice]
        _income_form(data, selected)
        _confirm_delete(f"income #{selected.id}", f"income_{selected.id}", lambda: data.delete_income(selected.id))


# --- Expenses ---

def _expense_form(data: DataService, existing: Expense | None) -> None:
    key = f"expense_form_{existing.id if existing else 'new'}"
    with st.form(key, clear_on_submit=existing is None):
        values = {
            "date": st.date_input("Date", value=existing.date if existing else dt.date.today()),
            "category": st.selectbox(
                "Category", EXPENSE_CATEGORIES, index=_index(EXPENSE_CATEGORIES, existing and existing.category)
            ),
            "description": st.text_input("Description", value=existing.description if existing else ""),
            "amount": st.text_input("Amount", value=str(existing.amount) if existing else ""),
            "supplier_name": st.text_input("Supplier name", value=existing.supplier_name if existing else ""),
            "supplier_contact": st.text_input(
                "Supplier contact", value=(existing.supplier_contact or "") if existing else ""
            ),
            "payment_status": st.selectbox(
                "Payment status", PAYMENT_STATUSES, index=_index(PAYMENT_STATUSES, existing and existing.payment_status)
            ),
            "amount_paid": st.text_input("Amount paid", value=str(existing.amount_paid) if existing else "0"),
            "notes": st.text_area("Notes", value=(existing.notes or "") if existing else ""),
        }
        submitted = st.form_submit_button("Update expense" if existing else "Add expense")
    if not submitted:
        return
    try:
        draft = build_expense_draft(values)
        if existing:
            data.update_expense(existing.id, draft)
        else:
            data.create_expense(draft)
    except FormError as e:
        _show_form_error(e)
    except DataServiceError as e:
        st.error(str(e))
    else:
        st.success("Expense saved")
        st.rerun()


def render_expenses(data: DataService) -> None:
    st.header("Expenses")
    expenses: list[Expense] = _load(data.get_expenses, [])
    c1, c2 = st.columns(2)
    c1.metric("Total expenses", format_currency(sum(e.amount for e in expenses)))
    c2.metric("Payables", format_currency(calculations.payables(expenses)))

    with st.expander("Add expense"):
        _expense_form(data, None)

    if not expenses:
        st.info("No expense records")
        return
    st.dataframe([e.model_dump(by_alias=True, mode="json") for e in expenses], use_container_width=True)

    labels = {f"{e.date} · {e.category} · {e.description} (#{e.id})": e for e in expenses}
    choice = st.selectbox("Edit or delete", list(labels), index=None, placeholder="Select a record")
    if choice:
        selected = labels[choice]
        _expense_form(data, selected)
        _confirm_delete(f"expense #{selected.id}", f"expense_{selected.id}", lambda: data.delete_expense(selected.id))


# --- Inventory ---

def _inventory_form(data: DataService, existing: InventoryItem | None) -> None:
    key = f"inventory_form_{existing.id if existing else 'new'}"
    with st.form(key, clear_on_submit=existing is None):
        values = {
            "name": st.text_input("Name", value=existing.name if existing else ""),
            "type": st.selectbox("Type", INVENTORY_TYPES, index=_index(INVENTORY_TYPES, existing and existing.type)),
            "quantity": st.text_input("Quantity", value=str(existing.quantity) if existing else ""),
            "unit": st.text_input("Unit", value=existing.unit if existing else ""),
            "min_stock_level": st.text_input(
                "Minimum stock level", value=str(existing.min_stock_level) if existing else ""
            ),
            "current_value": st.text_input("Current value", value=str(existing.current_value) if existing else ""),
        }
        submitted = st.form_submit_button("Update item" if existing else "Add item")
    if not submitted:
        return
    try:
        draft = build_inventory_draft(values)
        if existing:
            data.update_inventory_item(existing.id, draft)
        else:
            data.create_inventory_item(draft)
    except FormError as e:
        _show_form_error(e)
    except DataServiceError as e:
        st.error(str(e))
    else:
        st.success("Item saved")
        st.rerun()


def render_inventory(data: DataService) -> None:
    st.header("Inventory")
    items: list[InventoryItem] = _load(data.get_inventory, [])
    stats = calculations.inventory_stats(items)
    c1, c2, c3 = st.columns(3)
    c1.metric("Total value", format_currency(stats["total_value"]))
    c2.metric("Low stock items", stats["low_stock_count"])
    c3.metric("Minerals / supplies", f"{len(stats['minerals'])} / {len(stats['supplies'])}")

    with st.expander("Add item"):
        _inventory_form(data, None)

    if not items:
        st.info("No inventory items")
        return
    rows = []
    for i in items:
        row = i.model_dump(by_alias=True, mode="json")
        row["lowStock"] = calculations.is_low_stock(i)
        rows.append(row)
    st.dataframe(rows, use_container_width=True)

    labels = {f"{i.name} ({i.quantity:g} {i.unit}) #{i.id}": i for i in items}
    choice = st.selectbox("Manage item", list(labels), index=None, placeholder="Select an item")
    if not choice:
        return
    selected = labels[choice]
    new_qty = st.number_input("Adjust quantity", min_value=0.0, value=float(selected.quantity), key=f"qty_{selected.id}")
    if st.button("Save quantity", key=f"qty_save_{selected.id}"):
        try:
            data.update_inventory_quantity(selected.id, new_qty)
            st.rerun()
        except DataServiceError as e:
            st.error(str(e))
    _inventory_form(data, selected)
    _confirm_delete(f"{selected.name}", f"inventory_{selected.id}", lambda: data.delete_inventory_item(selected.id))


# --- Transactions ---

def render_transactions(data: DataService) -> None:
    st.header("Transactions")
    transactions = _load(data.get_transactions, [])
    c1, c2, c3, c4 = st.columns(4)
    type_filter = c1.selectbox("Type", ["all", "income", "expense"])
    status_filter = c2.selectbox("Status", ["all", *PAYMENT_STATUSES])
    date_filter = c3.selectbox("Period", ["all", "today", "week", "month"])
    search = c4.text_input("Search")
    shown = calculations.filter_transactions(transactions, type_filter, status_filter, date_filter, search)

    totals = calculations.transaction_totals(shown)
    m1, m2, m3 = st.columns(3)
    m1.metric("Income", format_currency(totals["total_income"]))
    m2.metric("Expenses", format_currency(totals["total_expenses"]))
    m3.metric("Net", format_currency(totals["net"]))

    if not shown:
        st.info("No transactions match the filters")
        return
    st.dataframe([t.model_dump(by_alias=True, mode="json") for t in shown], use_container_width=True)
    st.download_button(
        "Export CSV",
        calculations.transactions_to_csv(shown),
        file_name=f"transactions-{dt.date.today().isoformat()}.csv",
        mime="text/csv",
    )


# --- Analytics ---

def render_analytics(data: DataService) -> None:
    st.header("Analytics")
    year = st.number_input("Year", min_value=2000, max_value=2100, value=dt.date.today().year, step=1)
    summary = _load(data.get_financial_summary, None)
    if summary is not None:
        c1, c2, c3 = st.columns(3)
        c1.metric("Income", format_currency(summary.total_income))
        c2.metric("Expenses", format_currency(summary.total_expenses))
        c3.metric("Profit margin", f"{summary.profit_margin:.1f}%")

    monthly = _load(lambda: data.get_monthly_data(int(year)), [])
    st.subheader("Monthly income and expenses")
    if monthly:
        st.bar_chart([m.model_dump() for m in monthly], x="month", y=["income", "expenses"])
        st.line_chart([m.model_dump() for m in monthly], x="month", y="profit")
    else:
        st.info("No monthly data for this year")

    st.subheader("Expenses by category")
    breakdown = _load(data.get_expense_breakdown, [])
    if breakdown:
        st.bar_chart([{"category": b.category, "amount": b.amount} for b in breakdown], x="category", y="amount")
    else:
        st.info("No expenses recorded")

    st.subheader("Income by mineral")
    by_mineral = calculations.income_by_mineral(_load(data.get_incomes, []))
    if by_mineral:
        st.bar_chart([{"mineral": k, "amount": v} for k, v in by_mineral.items()], x="mineral", y="amount")
    else:
        st.info("No income recorded")


# --- Settings ---

def render_settings(session: SessionManager) -> None:
    st.header("Settings")
    user = session.user
    if user is None:
        return
    if user.is_admin:
        st.info("You have administrator privileges.")
    st.markdown(f"**Email:** {user.email}  \n**Role:** {user.role}")
    with st.form("profile_form"):
        name = st.text_input("Full name", value=user.name)
        phone = st.text_input("Phone", value=user.phone or "")
        submitted = st.form_submit_button("Save profile")
    if submitted:
        result = session.update_profile(name.strip(), phone.strip() or None)
        if result:
            st.success("Profile updated")
        else:
            st.error(result.error or "Failed to update profile")


PAGES: dict[str, Callable[[SessionManager, DataService], None]] = {
    "Dashboard": lambda s, d: render_dashboard(d),
    "Income": lambda s, d: render_income(d),
    "Expenses": lambda s, d: render_expenses(d),
    "Inventory": lambda s, d: render_inventory(d),
    "Transactions": lambda s, d: render_transactions(d),
    "Analytics": lambda s, d: render_analytics(d),
    "Settings": lambda s, d: render_settings(s),
}
