"""Ledger domain: records, wire mapping, derived figures and form handling."""

from src.domains.ledger.models import (
    CategoryBreakdown,
    Expense,
    ExpenseDraft,
    FinancialSummary,
    Income,
    IncomeDraft,
    InventoryDraft,
    InventoryItem,
    MonthlyData,
    Transaction,
    User,
)
from src.domains.ledger.transformer import DecodeError

__all__ = [
    "CategoryBreakdown",
    "DecodeError",
    "Expense",
    "ExpenseDraft",
    "FinancialSummary",
    "Income",
    "IncomeDraft",
    "InventoryDraft",
    "InventoryItem",
    "MonthlyData",
    "Transaction",
    "User",
]
