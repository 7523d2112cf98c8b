"""
Ledger data operations for the views.

Combines the endpoint wrappers with the transformer. A failed envelope or a
record that does not decode raises DataServiceError carrying a message fit for
display, so list loads and mutations report errors the same way.
"""

from __future__ import annotations

import datetime as dt
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Callable, TypeVar

from src.domains.ledger import transformer
from src.domains.ledger.calculations import merge_transactions
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
)
from src.domains.ledger.transformer import DecodeError
from src.infrastructure.api.endpoints import ApiService
from src.infrastructure.api.transport import ApiResponse
from src.utils.logger import get_logger

logger = get_logger()

T = TypeVar("T")


class DataServiceError(RuntimeError):
    """A ledger operation failed; the message is safe to show to the user."""


@dataclass
class DashboardData:
    summary: FinancialSummary
    incomes: list[Income] = field(default_factory=list)
    expenses: list[Expense] = field(default_factory=list)


def _record_id(record_id: str | int, entity: str) -> int:
    """Backend ids are integers; reject anything else before a request is made."""
    try:
        return int(str(record_id).strip())
    except (TypeError, ValueError):
        logger.error("Invalid %s id: %r", entity, record_id)
        raise DataServiceError(f"Invalid {entity} id: {record_id!r}") from None


class DataService:
    def __init__(self, api: ApiService) -> None:
        self.api = api

    def _data(self, response: ApiResponse, action: str) -> Any:
        if not response.get("success"):
            error = response.get("error") or response.get("message") or f"Failed to {action}"
            logger.error("Failed to %s: %s", action, error)
            raise DataServiceError(str(error))
        return response.get("data")

    def _decode(self, response: ApiResponse, action: str, decode: Callable[[Any], T]) -> T:
        data = self._data(response, action)
        try:
            return decode(data)
        except DecodeError as e:
            logger.error("Failed to %s: %s", action, e)
            raise DataServiceError(f"Unexpected data from server: {e}") from e

    def _decode_one(self, response: ApiResponse, action: str, decode: Callable[[Any], T]) -> T:
        if response.get("success") and response.get("data") is None:
            logger.error("Failed to %s: empty response", action)
            raise DataServiceError(f"Failed to {action}: empty response")
        return self._decode(response, action, decode)

    # --- Income ---

    def get_incomes(self) -> list[Income]:
        incomes = self._decode(self.api.get_incomes(), "load incomes", transformer.decode_incomes)
        logger.debug("Loaded %d incomes", len(incomes))
        return incomes

    def get_income(self, income_id: str) -> Income:
        rid = _record_id(income_id, "income")
        return self._decode_one(self.api.get_income(rid), "load income", transformer.decode_income)

    def get_incomes_in_range(self, start: dt.date, end: dt.date) -> list[Income]:
        response = self.api.get_incomes_in_range(start.isoformat(), end.isoformat())
        return self._decode(response, "load incomes for range", transformer.decode_incomes)

    def create_income(self, income: IncomeDraft) -> Income:
        payload = transformer.encode_income(income)
        created = self._decode_one(self.api.create_income(payload), "create income", transformer.decode_income)
        logger.info("Created income %s", created.id)
        return created

    def update_income(self, income_id: str, income: IncomeDraft) -> Income:
        rid = _record_id(income_id, "income")
        payload = transformer.encode_income(income)
        return self._decode_one(self.api.update_income(rid, payload), "update income", transformer.decode_income)

    def delete_income(self, income_id: str) -> None:
        rid = _record_id(income_id, "income")
        self._data(self.api.delete_income(rid), "delete income")
        logger.info("Deleted income %s", rid)

    # --- Expense ---

    def get_expenses(self) -> list[Expense]:
        return self._decode(self.api.get_expenses(), "load expenses", transformer.decode_expenses)

    def get_expense(self, expense_id: str) -> Expense:
        rid = _record_id(expense_id, "expense")
        return self._decode_one(self.api.get_expense(rid), "load expense", transformer.decode_expense)

    def get_expenses_in_range(self, start: dt.date, end: dt.date) -> list[Expense]:
        response = self.api.get_expenses_in_range(start.isoformat(), end.isoformat())
        return self._decode(response, "load expenses for range", transformer.decode_expenses)

    def create_expense(self, expense: ExpenseDraft) -> Expense:
        payload = transformer.encode_expense(expense)
        created = self._decode_one(self.api.create_expense(payload), "create expense", transformer.decode_expense)
        logger.info("Created expense %s", created.id)
        return created

    def update_expense(self, expense_id: str, expense: ExpenseDraft) -> Expense:
        rid = _record_id(expense_id, "expense")
        payload = transformer.encode_expense(expense)
        return self._decode_one(self.api.update_expense(rid, payload), "update expense", transformer.decode_expense)

    def delete_expense(self, expense_id: str) -> None:
        rid = _record_id(expense_id, "expense")
        self._data(self.api.delete_expense(rid), "delete expense")
        logger.info("Deleted expense %s", rid)

    def get_expense_breakdown(self) -> list[CategoryBreakdown]:
        return self._decode(
            self.api.get_expense_breakdown(), "load expense breakdown", transformer.decode_category_breakdown
        )

    # --- Inventory ---

    def get_inventory(self) -> list[InventoryItem]:
        return self._decode(self.api.get_inventory(), "load inventory", transformer.decode_inventory_items)

    def get_inventory_item(self, item_id: str) -> InventoryItem:
        rid = _record_id(item_id, "inventory item")
        return self._decode_one(
            self.api.get_inventory_item(rid), "load inventory item", transformer.decode_inventory_item
        )

    def create_inventory_item(self, item: InventoryDraft) -> InventoryItem:
        payload = transformer.encode_inventory_item(item)
        created = self._decode_one(
            self.api.create_inventory_item(payload), "create inventory item", transformer.decode_inventory_item
        )
        logger.info("Created inventory item %s", created.id)
        return created

    def update_inventory_item(self, item_id: str, item: InventoryDraft) -> InventoryItem:
        rid = _record_id(item_id, "inventory item")
        payload = transformer.encode_inventory_item(item)
        return self._decode_one(
            self.api.update_inventory_item(rid, payload), "update inventory item", transformer.decode_inventory_item
        )

    def update_inventory_quantity(self, item_id: str, quantity: float) -> InventoryItem | None:
        """PATCH the stock quantity. Returns the echoed item when the backend sends one."""
        rid = _record_id(item_id, "inventory item")
        if quantity < 0:
            raise DataServiceError("Quantity must not be negative")
        data = self._data(self.api.update_inventory_quantity(rid, quantity), "update inventory quantity")
        if data is None:
            return None
        try:
            return transformer.decode_inventory_item(data)
        except DecodeError as e:
            logger.error("Failed to update inventory quantity: %s", e)
            raise DataServiceError(f"Unexpected data from server: {e}") from e

    def delete_inventory_item(self, item_id: str) -> None:
        rid = _record_id(item_id, "inventory item")
        self._data(self.api.delete_inventory_item(rid), "delete inventory item")
        logger.info("Deleted inventory item %s", rid)

    def get_low_stock_items(self) -> list[InventoryItem]:
        return self._decode(self.api.get_low_stock_items(), "load low stock items", transformer.decode_inventory_items)

    # --- Analytics ---

    def get_financial_summary(self) -> FinancialSummary:
        return self._decode_one(
            self.api.get_financial_summary(), "load financial summary", transformer.decode_financial_summary
        )

    def get_monthly_data(self, year: int | None = None) -> list[MonthlyData]:
        return self._decode(self.api.get_monthly_data(year), "load monthly data", transformer.decode_monthly_data)

    # --- Combined views ---

    def get_transactions(self) -> list[Transaction]:
        """Incomes and expenses merged into one listing, newest first."""
        with ThreadPoolExecutor(max_workers=2) as pool:
            incomes = pool.submit(self.get_incomes)
            expenses = pool.submit(self.get_expenses)
            return merge_transactions(incomes.result(), expenses.result())

    def load_dashboard(self) -> DashboardData:
        """Fetch the summary, incomes and expenses concurrently."""
        with ThreadPoolExecutor(max_workers=3) as pool:
            summary = pool.submit(self.get_financial_summary)
            incomes = pool.submit(self.get_incomes)
            expenses = pool.submit(self.get_expenses)
            return DashboardData(
                summary=summary.result(),
                incomes=incomes.result(),
                expenses=expenses.result(),
            )
