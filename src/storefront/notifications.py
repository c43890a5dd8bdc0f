"""Fire-and-forget order notifications.

Mail formatting and delivery belong to an external collaborator that
implements ``OrderNotifier``. A failing notifier is logged and otherwise
ignored; it never affects the order that triggered it.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from storefront.models import Order

logger = logging.getLogger(__name__)

# Strong references to in-flight tasks; the loop only keeps weak ones.
_pending: set[asyncio.Task[None]] = set()


@runtime_checkable
class OrderNotifier(Protocol):
    async def notify_order_placed(self, order: Order) -> None: ...


async def _deliver(notifier: OrderNotifier, order: Order) -> None:
    if not order.customer.email:
        return
    try:
        await notifier.notify_order_placed(order)
    except Exception:
        logger.warning(
            "Order confirmation for %s failed.", order.id, exc_info=True
        )
    else:
        logger.info("Order confirmation for %s sent.", order.id)


def dispatch(notifier: OrderNotifier, order: Order) -> asyncio.Task[None]:
    """Schedule a confirmation without waiting for it."""
    task = asyncio.create_task(_deliver(notifier, order))
    _pending.add(task)
    task.add_done_callback(_pending.discard)
    return task


async def drain() -> None:
    """Wait for in-flight notifications (used on shutdown and in tests)."""
    if _pending:
        await asyncio.gather(*list(_pending), return_exceptions=True)
