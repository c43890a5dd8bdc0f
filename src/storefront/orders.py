"""OrderLedger: checkout validation, pricing and append-only order storage."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING, Any

from storefront.constants import DEFAULT_ITEM_SIZE, ORDER_ID_PREFIX
from storefront.errors import EmptyCart, MissingCustomerFields, NoValidItems
from storefront.models import (
    CustomerInfo,
    LineItem,
    Order,
    Product,
    coerce_quantity,
    next_time_id,
    utc_now_iso,
)
from storefront.notifications import dispatch

if TYPE_CHECKING:
    from storefront.gateway import PersistenceGateway
    from storefront.notifications import OrderNotifier

logger = logging.getLogger(__name__)

_REQUIRED_CUSTOMER_FIELDS = ("name", "email", "address")


def resolve_items(
    cart_items: Iterable[Any], catalog: Mapping[str, Product]
) -> list[LineItem]:
    """Price cart entries from the catalog.

    Entries naming an unknown product are dropped. Client-supplied prices
    are ignored; the catalog price at order time is authoritative.
    """
    items: list[LineItem] = []
    for entry in cart_items:
        if not isinstance(entry, Mapping):
            continue
        product = catalog.get(str(entry.get("productId", "")))
        if product is None:
            continue
        items.append(
            LineItem(
                product_id=product.id,
                name=product.name,
                category=product.category,
                price=product.price,
                quantity=coerce_quantity(entry.get("quantity")),
                size=str(entry.get("size") or product.size or DEFAULT_ITEM_SIZE),
                color=str(entry.get("color") or product.color or ""),
            )
        )
    return items


def validate_customer(customer: Any) -> CustomerInfo:
    if not isinstance(customer, Mapping):
        raise MissingCustomerFields()
    if any(not customer.get(f) for f in _REQUIRED_CUSTOMER_FIELDS):
        raise MissingCustomerFields()
    return CustomerInfo.from_dict(dict(customer))


class OrderLedger:
    """Owns the order collection.

    ``place_order()`` raises a ``CheckoutError`` subclass on bad input and
    lets ``StorageFailure`` propagate when the backend rejects the write.
    The identifier is assigned inside the gateway's write critical
    section, so concurrent checkouts can never share one.
    """

    def __init__(
        self,
        gateway: PersistenceGateway,
        notifier: OrderNotifier | None = None,
    ) -> None:
        self._gateway = gateway
        self._notifier = notifier

    async def place_order(
        self,
        cart_items: Any,
        customer: Any,
        catalog: Mapping[str, Product],
    ) -> Order:
        if not isinstance(cart_items, list) or not cart_items:
            raise EmptyCart()
        info = validate_customer(customer)

        items = resolve_items(cart_items, catalog)
        if not items:
            raise NoValidItems()

        def append(documents: list[dict[str, Any]]) -> tuple[list[dict[str, Any]], Order]:
            order_id = next_time_id(
                ORDER_ID_PREFIX, (str(d.get("id", "")) for d in documents)
            )
            order = Order(
                id=order_id,
                created_at=utc_now_iso(),
                customer=info,
                items=tuple(items),
            )
            documents.append(order.to_dict())
            return documents, order

        order = await self._gateway.mutate_orders(append)
        logger.info(
            "Order %s placed: %d item(s), total %.2f.",
            order.id, len(order.items), order.total,
        )

        if self._notifier is not None:
            dispatch(self._notifier, order)
        return order

    async def list_orders(self) -> list[Order]:
        """All orders, newest first."""
        documents = await self._gateway.read_orders()
        orders = [Order.from_dict(d) for d in documents if isinstance(d, dict)]
        orders.sort(key=lambda o: (o.created_at, o.id), reverse=True)
        return orders

    async def list_order_documents(self) -> list[dict[str, Any]]:
        """Stored order documents as written, newest first."""
        documents = [d for d in await self._gateway.read_orders() if isinstance(d, dict)]
        documents.sort(
            key=lambda d: (str(d.get("createdAt", "")), str(d.get("id", ""))),
            reverse=True,
        )
        return documents

