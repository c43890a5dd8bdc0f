"""Customer view derived from the order list.

Nothing here is stored. Each iteration over a ``CustomerView`` folds the
orders again, so the result always reflects the orders it was built from.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass

from storefront.models import Order, to_cents

# Fields back-filled with the first non-empty value seen.
_FILL_FIELDS = ("name", "phone", "address", "city", "postal_code", "country")


@dataclass
class Customer:
    email: str
    name: str = ""
    phone: str = ""
    address: str = ""
    city: str = ""
    postal_code: str = ""
    country: str = ""
    orders: int = 0
    total_spend: float = 0.0

    def to_dict(self) -> dict[str, object]:
        return {
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "address": self.address,
            "city": self.city,
            "postalCode": self.postal_code,
            "country": self.country,
            "orders": self.orders,
            "totalSpend": to_cents(self.total_spend),
        }


def _chronological(orders: Iterable[Order]) -> list[Order]:
    return sorted(orders, key=lambda o: (o.created_at, o.id))


def fold_customers(orders: Iterable[Order]) -> list[Customer]:
    """One Customer per lowercased email, oldest order first."""
    by_email: dict[str, Customer] = {}
    for order in _chronological(orders):
        email = order.customer.email.lower()
        if not email:
            continue
        customer = by_email.get(email)
        if customer is None:
            customer = by_email[email] = Customer(email=email)
        customer.orders += 1
        customer.total_spend += order.total
        for attr in _FILL_FIELDS:
            if not getattr(customer, attr):
                setattr(customer, attr, getattr(order.customer, attr))
    return list(by_email.values())


class CustomerView:
    """Restartable, lazily computed sequence of customers."""

    def __init__(self, orders: Sequence[Order]) -> None:
        self._orders = tuple(orders)

    def __iter__(self) -> Iterator[Customer]:
        return iter(fold_customers(self._orders))


def aggregate(orders: Sequence[Order]) -> CustomerView:
    return CustomerView(orders)
