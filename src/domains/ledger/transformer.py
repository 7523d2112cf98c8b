"""
Wire <-> domain mapping for ledger records.

The backend speaks snake_case JSON with loosely typed values. Decoders map each
wire key explicitly, parse dates, coerce identifiers, and validate the result
against the domain models. Anything missing or malformed raises DecodeError
rather than leaking None/NaN into the views.

Encoders produce request bodies: dates as YYYY-MM-DD, enums as plain strings,
optional fields omitted when None. Server-derived values (total_amount,
amount_due, ids, timestamps) are never sent.
"""

from __future__ import annotations

import datetime as dt
import math
import re
from typing import Any, Callable, Iterable, TypeVar

from pydantic import BaseModel, ValidationError

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
    User,
)
from src.utils.logger import get_logger

logger = get_logger()

M = TypeVar("M", bound=BaseModel)

# Go-style timestamps may carry nanoseconds; fromisoformat wants at most 6 digits.
_FRACTION_RE = re.compile(r"(\.\d{6})\d+")
_DATE_PREFIX_RE = re.compile(r"^\d{4}-\d{2}-\d{2}")


class DecodeError(ValueError):
    """A backend record could not be mapped onto its domain model."""

    def __init__(self, entity: str, message: str, fields: Iterable[str] = ()) -> None:
        self.entity = entity
        self.fields = tuple(fields)
        super().__init__(f"Invalid {entity} record: {message}")


# --- Field-level helpers ---

def resolve_id(data: dict[str, Any], entity: str = "record") -> str:
    """
    Return the record identifier as a string.

    Some backend handlers serialize the primary key as "ID" instead of "id".
    "id" is checked first, then "ID". This tolerates a backend inconsistency and
    should go away once every handler emits "id".
    """
    for key in ("id", "ID"):
        value = data.get(key)
        if value is None or value == "":
            continue
        if isinstance(value, bool):
            break
        if isinstance(value, float) and value.is_integer():
            value = int(value)
        return str(value)
    raise DecodeError(entity, "missing identifier (id/ID)", ["id"])


def owner_id(data: dict[str, Any]) -> str:
    value = data.get("user_id")
    return "" if value is None else str(value)


def parse_calendar_date(value: Any, entity: str, field: str) -> dt.date:
    """Parse YYYY-MM-DD (or an ISO timestamp, truncated to its date) to a date."""
    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, dt.date):
        return value
    if isinstance(value, str) and _DATE_PREFIX_RE.match(value.strip()):
        try:
            return dt.date.fromisoformat(value.strip()[:10])
        except ValueError:
            pass
    raise DecodeError(entity, f"{field} is not a calendar date: {value!r}", [field])


def parse_timestamp(value: Any, entity: str, field: str) -> dt.datetime:
    """Parse an ISO 8601 timestamp; a bare date becomes midnight."""
    if isinstance(value, dt.datetime):
        return value
    if isinstance(value, dt.date):
        return dt.datetime(value.year, value.month, value.day)
    if isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith("Z") or text.endswith("z"):
            text = text[:-1] + "+00:00"
        text = _FRACTION_RE.sub(r"\1", text)
        try:
            return dt.datetime.fromisoformat(text)
        except ValueError:
            pass
    raise DecodeError(entity, f"{field} is not a timestamp: {value!r}", [field])


def _optional_timestamp(data: dict[str, Any], key: str, entity: str) -> dt.datetime | None:
    value = data.get(key)
    if value is None or value == "":
        return None
    return parse_timestamp(value, entity, key)


def _number(data: dict[str, Any], key: str, entity: str) -> float | None:
    value = data.get(key)
    if value is None:
        return None
    if isinstance(value, bool):
        raise DecodeError(entity, f"{key} is not a number: {value!r}", [key])
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise DecodeError(entity, f"{key} is not a number: {value!r}", [key]) from None
    if math.isnan(number) or math.isinf(number):
        raise DecodeError(entity, f"{key} is not a finite number", [key])
    return number


def _require_mapping(data: Any, entity: str) -> dict[str, Any]:
    if not isinstance(data, dict):
        raise DecodeError(entity, f"expected an object, got {type(data).__name__}")
    return data


def _validate(model: type[M], values: dict[str, Any], entity: str) -> M:
    try:
        return model.model_validate(values)
    except ValidationError as e:
        fields = [".".join(str(p) for p in err["loc"]) for err in e.errors()]
        details = "; ".join(f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors())
        raise DecodeError(entity, details, fields) from e


def _decode_list(data: Any, decode: Callable[[Any], M], entity: str) -> list[M]:
    if data is None:
        return []
    if not isinstance(data, list):
        raise DecodeError(entity, f"expected a list, got {type(data).__name__}")
    return [decode(item) for item in data]


def _settle_amount_due(total: float | None, paid: float | None, due: float | None, entity: str, record_id: str) -> float | None:
    """
    Keep the server's amount_due when present; derive it when absent.
    A server value that disagrees with total - paid is kept and logged.
    """
    if total is None or paid is None:
        return due
    expected = total - paid
    if due is None:
        return expected
    if not math.isclose(due, expected, rel_tol=1e-9, abs_tol=0.005):
        logger.warning(
            "%s %s: amount_due %.2f differs from total - paid %.2f; keeping server value",
            entity, record_id, due, expected,
        )
    return due


# --- Read path ---

def decode_user(data: Any) -> User:
    entity = "user"
    data = _require_mapping(data, entity)
    values = {
        "id": resolve_id(data, entity),
        "email": data.get("email"),
        "name": data.get("name"),
        "phone": data.get("phone") or None,
        "role": data.get("role") or "standard",
        "created_at": _optional_timestamp(data, "created_at", entity),
    }
    return _validate(User, values, entity)


def decode_income(data: Any) -> Income:
    entity = "income"
    data = _require_mapping(data, entity)
    record_id = resolve_id(data, entity)
    quantity = _number(data, "quantity", entity)
    price = _number(data, "price_per_unit", entity)
    total = _number(data, "total_amount", entity)
    if total is None and quantity is not None and price is not None:
        total = quantity * price
    paid = _number(data, "amount_paid", entity)
    due = _settle_amount_due(total, paid, _number(data, "amount_due", entity), entity, record_id)
    if "date" not in data or data["date"] is None:
        raise DecodeError(entity, "date is required", ["date"])
    values = {
        "id": record_id,
        "date": parse_calendar_date(data["date"], entity, "date"),
        "mineral_type": data.get("mineral_type"),
        "quantity": quantity,
        "unit": data.get("unit"),
        "price_per_unit": price,
        "total_amount": total,
        "customer_name": data.get("customer_name"),
        "customer_contact": data.get("customer_contact"),
        "payment_status": data.get("payment_status"),
        "amount_paid": paid,
        "amount_due": due,
        "notes": data.get("notes") or None,
        "user_id": owner_id(data),
        "created_at": _optional_timestamp(data, "created_at", entity),
    }
    return _validate(Income, values, entity)


def decode_expense(data: Any) -> Expense:
    entity = "expense"
    data = _require_mapping(data, entity)
    record_id = resolve_id(data, entity)
    amount = _number(data, "amount", entity)
    paid = _number(data, "amount_paid", entity)
    due = _settle_amount_due(amount, paid, _number(data, "amount_due", entity), entity, record_id)
    if "date" not in data or data["date"] is None:
        raise DecodeError(entity, "date is required", ["date"])
    values = {
        "id": record_id,
        "date": parse_calendar_date(data["date"], entity, "date"),
        "category": data.get("category"),
        "description": data.get("description"),
        "amount": amount,
        "supplier_name": data.get("supplier_name"),
        "supplier_contact": data.get("supplier_contact") or None,
        "payment_status": data.get("payment_status"),
        "amount_paid": paid,
        "amount_due": due,
        "notes": data.get("notes") or None,
        "user_id": owner_id(data),
        "created_at": _optional_timestamp(data, "created_at", entity),
    }
    return _validate(Expense, values, entity)


def decode_inventory_item(data: Any) -> InventoryItem:
    entity = "inventory item"
    data = _require_mapping(data, entity)
    values = {
        "id": resolve_id(data, entity),
        "name": data.get("name"),
        "type": data.get("type"),
        "quantity": _number(data, "quantity", entity),
        "unit": data.get("unit"),
        "min_stock_level": _number(data, "min_stock_level", entity),
        "current_value": _number(data, "current_value", entity),
        "user_id": owner_id(data),
        "last_updated": _optional_timestamp(data, "last_updated", entity),
        "created_at": _optional_timestamp(data, "created_at", entity),
    }
    return _validate(InventoryItem, values, entity)


def decode_financial_summary(data: Any) -> FinancialSummary:
    entity = "financial summary"
    data = _require_mapping(data, entity)
    values = {
        "total_income": _number(data, "total_income", entity),
        "total_expenses": _number(data, "total_expenses", entity),
        "net_profit": _number(data, "net_profit", entity),
        "total_receivables": _number(data, "total_receivables", entity),
        "total_payables": _number(data, "total_payables", entity),
        "profit_margin": _number(data, "profit_margin", entity),
    }
    return _validate(FinancialSummary, values, entity)


def _decode_monthly_row(data: Any) -> MonthlyData:
    entity = "monthly data"
    data = _require_mapping(data, entity)
    month = data.get("month")
    values = {
        "month": None if month is None else str(month),
        "income": _number(data, "income", entity),
        "expenses": _number(data, "expenses", entity),
        "profit": _number(data, "profit", entity),
    }
    return _validate(MonthlyData, values, entity)


def _decode_breakdown_row(data: Any) -> CategoryBreakdown:
    entity = "category breakdown"
    data = _require_mapping(data, entity)
    values = {
        "category": data.get("category"),
        "amount": _number(data, "amount", entity),
        "percentage": _number(data, "percentage", entity),
    }
    return _validate(CategoryBreakdown, values, entity)


def decode_incomes(data: Any) -> list[Income]:
    return _decode_list(data, decode_income, "income")


def decode_expenses(data: Any) -> list[Expense]:
    return _decode_list(data, decode_expense, "expense")


def decode_inventory_items(data: Any) -> list[InventoryItem]:
    return _decode_list(data, decode_inventory_item, "inventory item")


def decode_monthly_data(data: Any) -> list[MonthlyData]:
    return _decode_list(data, _decode_monthly_row, "monthly data")


def decode_category_breakdown(data: Any) -> list[CategoryBreakdown]:
    return _decode_list(data, _decode_breakdown_row, "category breakdown")


# --- Write path ---

def _drop_none(payload: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in payload.items() if v is not None}


def encode_income(income: IncomeDraft) -> dict[str, Any]:
    return _drop_none({
        "date": income.date.isoformat(),
        "mineral_type": income.mineral_type,
        "quantity": income.quantity,
        "unit": income.unit,
        "price_per_unit": income.price_per_unit,
        "customer_name": income.customer_name,
        "customer_contact": income.customer_contact,
        "payment_status": income.payment_status,
        "amount_paid": income.amount_paid,
        "notes": income.notes,
    })


def encode_expense(expense: ExpenseDraft) -> dict[str, Any]:
    return _drop_none({
        "date": expense.date.isoformat(),
        "category": expense.category,
        "description": expense.description,
        "amount": expense.amount,
        "supplier_name": expense.supplier_name,
        "supplier_contact": expense.supplier_contact,
        "payment_status": expense.payment_status,
        "amount_paid": expense.amount_paid,
        "notes": expense.notes,
    })


def encode_inventory_item(item: InventoryDraft) -> dict[str, Any]:
    return {
        "name": item.name,
        "type": item.type,
        "quantity": item.quantity,
        "unit": item.unit,
        "min_stock_level": item.min_stock_level,
        "current_value": item.current_value,
    }


def encode_signup(
    email: str,
    password: str,
    name: str,
    phone: str | None = None,
    admin_code: str | None = None,
) -> dict[str, Any]:
    return _drop_none({
        "email": email,
        "name": name,
        "phone": phone or None,
        "password": password,
        "admin_code": admin_code or None,
    })


def encode_password_reset(email: str, otp: str, new_password: str) -> dict[str, Any]:
    return {"email": email, "otp": otp, "new_password": new_password}


def encode_profile_update(name: str, phone: str | None = None) -> dict[str, Any]:
    return _drop_none({"name": name, "phone": phone or None})
