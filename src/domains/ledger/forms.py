"""
Form input handling: parse raw text fields, check required values, and compute
the derived totals before a record is sent to the backend.
"""

from __future__ import annotations

import datetime as dt
import math
from typing import Any, Mapping

from src.domains.ledger.calculations import amount_due, income_total
from src.domains.ledger.models import (
    EXPENSE_CATEGORIES,
    INVENTORY_TYPES,
    MINERAL_TYPES,
    PAYMENT_STATUSES,
    ExpenseDraft,
    IncomeDraft,
    InventoryDraft,
)

MIN_PASSWORD_LENGTH = 6


class FormError(ValueError):
    """One or more form fields are invalid. `errors` maps field -> message."""

    def __init__(self, errors: dict[str, str]) -> None:
        self.errors = errors
        super().__init__("; ".join(f"{k}: {v}" for k, v in errors.items()))


class _Reader:
    """Collects field errors while reading a raw form mapping."""

    def __init__(self, form: Mapping[str, Any]) -> None:
        self._form = form
        self.errors: dict[str, str] = {}

    def text(self, field: str, required: bool = True) -> str | None:
        raw = self._form.get(field)
        value = str(raw).strip() if raw is not None else ""
        if not value:
            if required:
                self.errors[field] = "This field is required"
            return None
        return value

    def number(self, field: str, required: bool = True, default: float | None = None) -> float | None:
        raw = self._form.get(field)
        if isinstance(raw, (int, float)) and not isinstance(raw, bool):
            value = float(raw)
        else:
            text = str(raw).strip().replace(",", "") if raw is not None else ""
            if not text:
                if required and default is None:
                    self.errors[field] = "This field is required"
                return default
            try:
                value = float(text)
            except ValueError:
                self.errors[field] = "Enter a number"
                return None
        if not math.isfinite(value):
            self.errors[field] = "Enter a number"
            return None
        if value < 0:
            self.errors[field] = "Must not be negative"
            return None
        return value

    def choice(self, field: str, options: tuple[str, ...]) -> str | None:
        value = self.text(field)
        if value is None:
            return None
        value = value.lower()
        if value not in options:
            self.errors[field] = f"Choose one of: {', '.join(options)}"
            return None
        return value

    def date(self, field: str) -> dt.date | None:
        raw = self._form.get(field)
        if isinstance(raw, dt.datetime):
            return raw.date()
        if isinstance(raw, dt.date):
            return raw
        value = self.text(field)
        if value is None:
            return None
        try:
            return dt.date.fromisoformat(value)
        except ValueError:
            self.errors[field] = "Use the YYYY-MM-DD format"
            return None

    def raise_if_invalid(self) -> None:
        if self.errors:
            raise FormError(self.errors)


def _check_paid(reader: _Reader, total: float | None, paid: float | None) -> None:
    if total is not None and paid is not None and paid > total:
        reader.errors["amount_paid"] = "Amount paid cannot exceed the total"


def build_income_draft(form: Mapping[str, Any]) -> IncomeDraft:
    """Validate an income form and compute total_amount and amount_due."""
    r = _Reader(form)
    record_date = r.date("date")
    mineral = r.choice("mineral_type", MINERAL_TYPES)
    quantity = r.number("quantity")
    unit = r.text("unit")
    price = r.number("price_per_unit")
    customer_name = r.text("customer_name")
    customer_contact = r.text("customer_contact")
    status = r.choice("payment_status", PAYMENT_STATUSES)
    paid = r.number("amount_paid", default=0.0)
    notes = r.text("notes", required=False)
    total = income_total(quantity, price) if quantity is not None and price is not None else None
    _check_paid(r, total, paid)
    r.raise_if_invalid()
    return IncomeDraft(
        date=record_date,
        mineral_type=mineral,
        quantity=quantity,
        unit=unit,
        price_per_unit=price,
        total_amount=total,
        customer_name=customer_name,
        customer_contact=customer_contact,
        payment_status=status,
        amount_paid=paid,
        amount_due=amount_due(total, paid),
        notes=notes,
    )


def build_expense_draft(form: Mapping[str, Any]) -> ExpenseDraft:
    """Validate an expense form and compute amount_due."""
    r = _Reader(form)
    record_date = r.date("date")
    category = r.choice("category", EXPENSE_CATEGORIES)
    description = r.text("description")
    amount = r.number("amount")
    supplier_name = r.text("supplier_name")
    supplier_contact = r.text("supplier_contact", required=False)
    status = r.choice("payment_status", PAYMENT_STATUSES)
    paid = r.number("amount_paid", default=0.0)
    notes = r.text("notes", required=False)
    _check_paid(r, amount, paid)
    r.raise_if_invalid()
    return ExpenseDraft(
        date=record_date,
        category=category,
        description=description,
        amount=amount,
        supplier_name=supplier_name,
        supplier_contact=supplier_contact,
        payment_status=status,
        amount_paid=paid,
        amount_due=amount_due(amount, paid),
        notes=notes,
    )


def build_inventory_draft(form: Mapping[str, Any]) -> InventoryDraft:
    r = _Reader(form)
    name = r.text("name")
    item_type = r.choice("type", INVENTORY_TYPES)
    quantity = r.number("quantity")
    unit = r.text("unit")
    min_stock = r.number("min_stock_level")
    value = r.number("current_value")
    r.raise_if_invalid()
    return InventoryDraft(
        name=name,
        type=item_type,
        quantity=quantity,
        unit=unit,
        min_stock_level=min_stock,
        current_value=value,
    )


def validate_new_password(password: str, confirm: str) -> None:
    """Raise FormError unless the password is long enough and confirmed."""
    if len(password or "") < MIN_PASSWORD_LENGTH:
        raise FormError({"password": f"Password must be at least {MIN_PASSWORD_LENGTH} characters"})
    if password != confirm:
        raise FormError({"confirm_password": "Passwords do not match"})
