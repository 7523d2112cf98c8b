"""
Client-side derived figures for the ledger views.

The backend owns the financial summary; everything here is computed from
records the client already holds (merged listings, filters, totals, stock
flags, chart breakdowns).
"""

from __future__ import annotations

import csv
import datetime as dt
import io
from typing import Any, Iterable, Sequence

from src.domains.ledger.models import Expense, Income, InventoryItem, Transaction

# Maximum age in days for each date filter window.
DATE_WINDOWS: dict[str, int] = {"today": 1, "week": 7, "month": 30}

CSV_HEADERS = ["Date", "Type", "Description", "Amount", "Status", "Amount Paid", "Amount Due"]


def income_total(quantity: float, price_per_unit: float) -> float:
    return quantity * price_per_unit


def amount_due(total: float, amount_paid: float) -> float:
    return total - amount_paid


def receivables(incomes: Iterable[Income]) -> float:
    """Outstanding money owed to the operation."""
    return sum(i.amount_due for i in incomes if i.amount_due > 0)


def payables(expenses: Iterable[Expense]) -> float:
    """Outstanding money the operation owes suppliers."""
    return sum(e.amount_due for e in expenses if e.amount_due > 0)


def profit_margin(total_income: float, total_expenses: float) -> float:
    """Net profit as a percentage of income; 0 when there is no income."""
    if not total_income:
        return 0.0
    return (total_income - total_expenses) / total_income * 100


def _income_transaction(income: Income) -> Transaction:
    return Transaction(
        key=f"income-{income.id}",
        type="income",
        date=income.date,
        description=f"{income.mineral_type} - {income.customer_name}",
        total_amount=income.total_amount,
        payment_status=income.payment_status,
        amount_paid=income.amount_paid,
        amount_due=income.amount_due,
        record=income,
    )


def _expense_transaction(expense: Expense) -> Transaction:
    return Transaction(
        key=f"expense-{expense.id}",
        type="expense",
        date=expense.date,
        description=f"{expense.category} - {expense.description}",
        total_amount=expense.amount,
        payment_status=expense.payment_status,
        amount_paid=expense.amount_paid,
        amount_due=expense.amount_due,
        record=expense,
    )


def merge_transactions(incomes: Iterable[Income], expenses: Iterable[Expense]) -> list[Transaction]:
    """Combine incomes and expenses into one listing, newest first."""
    out = [_income_transaction(i) for i in incomes]
    out.extend(_expense_transaction(e) for e in expenses)
    out.sort(key=lambda t: t.date, reverse=True)
    return out


def filter_transactions(
    transactions: Iterable[Transaction],
    type_filter: str = "all",
    status_filter: str = "all",
    date_filter: str = "all",
    search: str = "",
    today: dt.date | None = None,
) -> list[Transaction]:
    """
    Apply the transaction page filters.

    Args:
        type_filter: "all", "income" or "expense".
        status_filter: "all" or a payment status.
        date_filter: "all", "today", "week" or "month" (1, 7 or 30 days, counting today).
        search: Case-insensitive substring of the description.
        today: Reference date; defaults to the current date.
    """
    today = today or dt.date.today()
    max_days = DATE_WINDOWS.get(date_filter)
    needle = search.strip().lower()
    out: list[Transaction] = []
    for t in transactions:
        if type_filter != "all" and t.type != type_filter:
            continue
        if status_filter != "all" and t.payment_status != status_filter:
            continue
        if max_days is not None and abs((today - t.date).days) >= max_days:
            continue
        if needle and needle not in t.description.lower():
            continue
        out.append(t)
    return out


def transaction_totals(transactions: Iterable[Transaction]) -> dict[str, float]:
    total_income = 0.0
    total_expenses = 0.0
    for t in transactions:
        if t.type == "income":
            total_income += t.total_amount
        else:
            total_expenses += t.total_amount
    return {
        "total_income": total_income,
        "total_expenses": total_expenses,
        "net": total_income - total_expenses,
    }


def transactions_to_csv(transactions: Iterable[Transaction]) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(CSV_HEADERS)
    for t in transactions:
        writer.writerow([
            t.date.isoformat(),
            t.type,
            t.description,
            t.total_amount,
            t.payment_status,
            t.amount_paid,
            t.amount_due,
        ])
    return buf.getvalue()


def is_low_stock(item: InventoryItem) -> bool:
    return item.quantity <= item.min_stock_level


def inventory_stats(items: Sequence[InventoryItem]) -> dict[str, Any]:
    return {
        "total_value": sum(i.current_value for i in items),
        "low_stock_count": sum(1 for i in items if is_low_stock(i)),
        "minerals": [i for i in items if i.type == "mineral"],
        "supplies": [i for i in items if i.type == "supply"],
    }


def income_by_mineral(incomes: Iterable[Income]) -> dict[str, float]:
    totals: dict[str, float] = {}
    for i in incomes:
        totals[i.mineral_type] = totals.get(i.mineral_type, 0.0) + i.total_amount
    return totals


def expenses_by_category(expenses: Iterable[Expense]) -> dict[str, float]:
    totals: dict[str, float] = {}
    for e in expenses:
        totals[e.category] = totals.get(e.category, 0.0) + e.amount
    return totals
