"""Persisted entities: orders, line items, admin accounts, products.

Pure data model, no I/O. ``to_dict``/``from_dict`` use the camelCase keys
of the stored JSON documents so collections stay readable by any
deployment sharing the same store.
"""

from __future__ import annotations

import math
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Iterable

from storefront.constants import DEFAULT_ITEM_SIZE


def to_cents(amount: float) -> float:
    """Round a money amount to two decimal places."""
    return round(float(amount), 2)


def parse_amount(raw: Any) -> float | None:
    """Finite float from a stored number or numeric string, else None."""
    if isinstance(raw, bool):
        return None
    try:
        value = float(raw)
    except (TypeError, ValueError, OverflowError):
        return None
    return value if math.isfinite(value) else None


def to_amount(raw: Any) -> float:
    """Like ``parse_amount`` but 0.0 when the value is unusable."""
    value = parse_amount(raw)
    return 0.0 if value is None else value


def coerce_quantity(raw: Any) -> int:
    """Positive integer quantity; 1 when absent, non-numeric or not positive."""
    value = parse_amount(raw)
    if value is None:
        return 1
    qty = int(value)
    return qty if qty > 0 else 1


def utc_now_iso() -> str:
    """ISO-8601 UTC timestamp with millisecond precision and a ``Z`` suffix."""
    now = datetime.now(timezone.utc)
    return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"


def next_time_id(prefix: str, taken: Iterable[str], now_ms: int | None = None) -> str:
    """Build ``<prefix>-<epoch ms>``, never reusing a millisecond in ``taken``.

    Must be called inside the collection's write critical section: the
    ``taken`` set is only complete while no other writer can append.
    """
    ms = int(time.time() * 1000) if now_ms is None else now_ms
    lead = f"{prefix}-"
    last = 0
    for existing in taken:
        if existing.startswith(lead):
            try:
                last = max(last, int(existing[len(lead):]))
            except ValueError:
                continue
    return f"{lead}{max(ms, last + 1)}"


# ---------------------------------------------------------------------------
# Product (external catalog entry)
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Product:
    id: str
    name: str
    price: float
    category: str = ""
    size: str = ""
    color: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Product:
        return cls(
            id=str(data.get("id", "")),
            name=str(data.get("name", "")),
            price=to_amount(data.get("price")),
            category=str(data.get("category", "") or ""),
            size=str(data.get("size", "") or ""),
            color=str(data.get("color", "") or ""),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "price": self.price,
            "size": self.size,
            "color": self.color,
        }


# ---------------------------------------------------------------------------
# Order
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CustomerInfo:
    """Customer snapshot captured at order time."""

    name: str
    email: str
    address: str
    phone: str = ""
    city: str = ""
    postal_code: str = ""
    country: str = ""

    def to_dict(self) -> dict[str, str]:
        return {
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "address": self.address,
            "city": self.city,
            "postalCode": self.postal_code,
            "country": self.country,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CustomerInfo:
        def _s(key: str) -> str:
            value = data.get(key)
            return str(value) if value else ""

        return cls(
            name=_s("name"),
            email=_s("email"),
            address=_s("address"),
            phone=_s("phone"),
            city=_s("city"),
            postal_code=_s("postalCode"),
            country=_s("country"),
        )


@dataclass(frozen=True)
class LineItem:
    """One resolved cart entry, denormalized from the catalog."""

    product_id: str
    name: str
    category: str
    price: float
    quantity: int
    size: str = DEFAULT_ITEM_SIZE
    color: str = ""

    @property
    def line_total(self) -> float:
        return to_cents(self.price * self.quantity)

    def to_dict(self) -> dict[str, Any]:
        return {
            "productId": self.product_id,
            "name": self.name,
            "category": self.category,
            "price": self.price,
            "quantity": self.quantity,
            "size": self.size,
            "color": self.color,
            "lineTotal": self.line_total,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> LineItem:
        return cls(
            product_id=str(data.get("productId", "")),
            name=str(data.get("name", "")),
            category=str(data.get("category", "") or ""),
            price=to_amount(data.get("price")),
            quantity=coerce_quantity(data.get("quantity")),
            size=str(data.get("size", "") or ""),
            color=str(data.get("color", "") or ""),
        )


@dataclass(frozen=True)
class Order:
    """Immutable once written.

    ``total`` is the amount recorded at checkout when the order was loaded
    from storage, otherwise the sum of the line totals.
    """

    id: str
    created_at: str
    customer: CustomerInfo
    items: tuple[LineItem, ...] = field(default_factory=tuple)
    recorded_total: float | None = field(default=None, compare=False)

    @property
    def total(self) -> float:
        if self.recorded_total is not None:
            return to_cents(self.recorded_total)
        return to_cents(sum(item.line_total for item in self.items))

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "createdAt": self.created_at,
            "total": self.total,
            "items": [item.to_dict() for item in self.items],
            "customer": self.customer.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Order:
        raw_items = data.get("items")
        raw_customer = data.get("customer") or {}
        return cls(
            id=str(data.get("id", "")),
            created_at=str(data.get("createdAt", "")),
            customer=CustomerInfo.from_dict(
                raw_customer if isinstance(raw_customer, dict) else {}
            ),
            items=tuple(
                LineItem.from_dict(i)
                for i in (raw_items if isinstance(raw_items, list) else [])
                if isinstance(i, dict)
            ),
            recorded_total=parse_amount(data.get("total")),
        )


# ---------------------------------------------------------------------------
# AdminAccount
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AdminAccount:
    id: str
    name: str
    email: str
    password_hash: str = field(repr=False)
    created_at: str = ""

    def to_dict(self) -> dict[str, str]:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "passwordHash": self.password_hash,
            "createdAt": self.created_at,
        }

    def public_dict(self) -> dict[str, str]:
        """Caller-facing view, without the password hash."""
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "createdAt": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AdminAccount:
        return cls(
            id=str(data.get("id", "")),
            name=str(data.get("name", "")),
            email=str(data.get("email", "")),
            password_hash=str(data.get("passwordHash", "")),
            created_at=str(data.get("createdAt", "")),
        )
