"""
Domain records for the mining ledger.

Attributes are snake_case; `model_dump(by_alias=True)` yields the camelCase
view shape (totalAmount, amountDue, ...). Drafts are the writable part of a
record; the full record adds server-assigned fields.
"""

from __future__ import annotations

import datetime as dt
from typing import Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

UserRole = Literal["admin", "standard"]
PaymentStatus = Literal["paid", "unpaid", "partial"]
MineralType = Literal["gold", "copper", "cobalt", "diamond", "other"]
ExpenseCategory = Literal["equipment", "labor", "chemicals", "fuel", "maintenance", "transport", "other"]
InventoryType = Literal["mineral", "supply"]
TransactionType = Literal["income", "expense"]

MINERAL_TYPES: tuple[str, ...] = ("gold", "copper", "cobalt", "diamond", "other")
EXPENSE_CATEGORIES: tuple[str, ...] = (
    "equipment", "labor", "chemicals", "fuel", "maintenance", "transport", "other",
)
PAYMENT_STATUSES: tuple[str, ...] = ("paid", "unpaid", "partial")
INVENTORY_TYPES: tuple[str, ...] = ("mineral", "supply")


class LedgerModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class User(LedgerModel):
    id: str
    email: str
    name: str
    phone: Optional[str] = None
    role: UserRole = "standard"
    created_at: Optional[dt.datetime] = None

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


class IncomeDraft(LedgerModel):
    date: dt.date
    mineral_type: MineralType
    quantity: float
    unit: str
    price_per_unit: float
    total_amount: float
    customer_name: str
    customer_contact: str
    payment_status: PaymentStatus
    amount_paid: float
    amount_due: float
    notes: Optional[str] = None


class Income(IncomeDraft):
    id: str
    user_id: str = ""
    created_at: Optional[dt.datetime] = None


class ExpenseDraft(LedgerModel):
    date: dt.date
    category: ExpenseCategory
    description: str
    amount: float
    supplier_name: str
    supplier_contact: Optional[str] = None
    payment_status: PaymentStatus
    amount_paid: float
    amount_due: float
    notes: Optional[str] = None


class Expense(ExpenseDraft):
    id: str
    user_id: str = ""
    created_at: Optional[dt.datetime] = None


class InventoryDraft(LedgerModel):
    name: str
    type: InventoryType
    quantity: float
    unit: str
    min_stock_level: float
    current_value: float


class InventoryItem(InventoryDraft):
    id: str
    user_id: str = ""
    last_updated: Optional[dt.datetime] = None
    created_at: Optional[dt.datetime] = None


class Transaction(LedgerModel):
    """Income or expense flattened for the merged listing. Never persisted."""

    key: str
    type: TransactionType
    date: dt.date
    description: str
    total_amount: float
    payment_status: PaymentStatus
    amount_paid: float
    amount_due: float
    record: Union[Income, Expense] = Field(exclude=True)


class FinancialSummary(LedgerModel):
    total_income: float
    total_expenses: float
    net_profit: float
    total_receivables: float
    total_payables: float
    profit_margin: float


class MonthlyData(LedgerModel):
    month: str
    income: float
    expenses: float
    profit: float


class CategoryBreakdown(LedgerModel):
    category: str
    amount: float
    percentage: float
