"""
Endpoint wrappers for the ledger REST API (/api/v1).

Payloads are already in wire shape (snake_case); shaping them is the
transformer's job. Every method returns the transport envelope unchanged.
"""

from __future__ import annotations

from typing import Any

from src.infrastructure.api.transport import ApiResponse, ApiTransport


class ApiService:
    def __init__(self, transport: ApiTransport) -> None:
        self.transport = transport

    def _get(self, endpoint: str, params: dict[str, Any] | None = None) -> ApiResponse:
        return self.transport.make_request(endpoint, params=params)

    def _send(self, method: str, endpoint: str, body: dict[str, Any] | None = None) -> ApiResponse:
        return self.transport.make_request(endpoint, method=method, body=body)

    # --- Authentication ---

    def login(self, email: str, password: str) -> ApiResponse:
        return self._send("POST", "/auth/login", {"email": email, "password": password})

    def signup(self, payload: dict[str, Any]) -> ApiResponse:
        return self._send("POST", "/auth/signup", payload)

    def forgot_password(self, email: str) -> ApiResponse:
        return self._send("POST", "/auth/forgot-password", {"email": email})

    def reset_password(self, payload: dict[str, Any]) -> ApiResponse:
        return self._send("POST", "/auth/reset-password", payload)

    def get_profile(self) -> ApiResponse:
        return self._get("/profile")

    def update_profile(self, payload: dict[str, Any]) -> ApiResponse:
        return self._send("PUT", "/profile", payload)

    # --- Income ---

    def get_incomes(self) -> ApiResponse:
        return self._get("/income")

    def get_income(self, income_id: int) -> ApiResponse:
        return self._get(f"/income/{income_id}")

    def create_income(self, payload: dict[str, Any]) -> ApiResponse:
        return self._send("POST", "/income", payload)

    def update_income(self, income_id: int, payload: dict[str, Any]) -> ApiResponse:
        return self._send("PUT", f"/income/{income_id}", payload)

    def delete_income(self, income_id: int) -> ApiResponse:
        return self._send("DELETE", f"/income/{income_id}")

    def get_incomes_in_range(self, start_date: str, end_date: str) -> ApiResponse:
        return self._get("/income/range", {"start_date": start_date, "end_date": end_date})

    # --- Expense ---

    def get_expenses(self) -> ApiResponse:
        return self._get("/expense")

    def get_expense(self, expense_id: int) -> ApiResponse:
        return self._get(f"/expense/{expense_id}")

    def create_expense(self, payload: dict[str, Any]) -> ApiResponse:
        return self._send("POST", "/expense", payload)

    def update_expense(self, expense_id: int, payload: dict[str, Any]) -> ApiResponse:
        return self._send("PUT", f"/expense/{expense_id}", payload)

    def delete_expense(self, expense_id: int) -> ApiResponse:
        return self._send("DELETE", f"/expense/{expense_id}")

    def get_expenses_in_range(self, start_date: str, end_date: str) -> ApiResponse:
        return self._get("/expense/range", {"start_date": start_date, "end_date": end_date})

    def get_expense_breakdown(self) -> ApiResponse:
        return self._get("/expense/breakdown")

    # --- Inventory ---

    def get_inventory(self) -> ApiResponse:
        return self._get("/inventory")

    def get_inventory_item(self, item_id: int) -> ApiResponse:
        return self._get(f"/inventory/{item_id}")

    def create_inventory_item(self, payload: dict[str, Any]) -> ApiResponse:
        return self._send("POST", "/inventory", payload)

    def update_inventory_item(self, item_id: int, payload: dict[str, Any]) -> ApiResponse:
        return self._send("PUT", f"/inventory/{item_id}", payload)

    def update_inventory_quantity(self, item_id: int, quantity: float) -> ApiResponse:
        return self._send("PATCH", f"/inventory/{item_id}/quantity", {"quantity": quantity})

    def delete_inventory_item(self, item_id: int) -> ApiResponse:
        return self._send("DELETE", f"/inventory/{item_id}")

    def get_low_stock_items(self) -> ApiResponse:
        return self._get("/inventory/low-stock")

    # --- Analytics ---

    def get_financial_summary(self) -> ApiResponse:
        return self._get("/analytics/summary")

    def get_monthly_data(self, year: int | None = None) -> ApiResponse:
        params = {"year": year} if year else None
        return self._get("/analytics/monthly", params)
