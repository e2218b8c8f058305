"""
Order client for the kitchen board.

Reads and writes the restaurant's orders through the data store. Writes
don't return fresh lists - subscribers pick the change up from the orders
stream, exactly like the live listener in production.
"""

import logging
from datetime import datetime
from typing import Optional
from uuid import uuid4

from dashboard.filters import ALL, SortField, filter_orders, group_by_status
from dashboard.services.base import CollectionClient
from dashboard.stats import OrderStats, compute_order_stats
from restaurant.data_store import ORDERS
from restaurant.models import Order, OrderItem, OrderStatus, OrderType

logger = logging.getLogger("order_client")


class OrderClient(CollectionClient):
    """
    Orders for the current user's restaurant.

    Example:
        client = OrderClient(store, current_user=lambda: user)
        client.subscribe(lambda orders: print(client.stats().pending_count))
        client.update_order_status("ord-001", OrderStatus.PREPARING)
    """

    collection = ORDERS
    kind = "Order"

    def get_orders(self) -> list[Order]:
        """All orders, newest first."""
        return self._list()

    def get_order(self, order_id: str) -> Optional[Order]:
        return self._get(order_id)

    def get_orders_by_status(self, status: OrderStatus) -> list[Order]:
        return [o for o in self._list() if o.status == status]

    def create_order(
        self,
        customer_name: str,
        items: list[OrderItem],
        customer_phone: Optional[str] = None,
        order_type: OrderType = OrderType.PICKUP,
        notes: Optional[str] = None,
    ) -> Order:
        """
        Create a pending order.

        The total is computed from the line items.
        """
        now = self._now()
        order = Order(
            id=f"ord-{uuid4().hex[:8]}",
            restaurant_id=self.restaurant_id,
            customer_name=customer_name,
            customer_phone=customer_phone,
            items=items,
            total_price=round(sum(item.line_total for item in items), 2),
            status=OrderStatus.PENDING,
            order_type=order_type,
            created_at=now,
            updated_at=now,
            notes=notes,
        )
        self.data_store.save_order(order)
        logger.info(f"Order created: {order.id} for {customer_name} ({order.total_price:.2f})")
        return order

    def update_order_status(
        self,
        order_id: str,
        status: OrderStatus,
        estimated_ready_time: Optional[datetime] = None,
    ) -> Order:
        """
        Move an order to a new status.

        Raises:
            NotFoundError: the order doesn't exist for this restaurant
        """
        order = self._require(order_id)
        changes = {"status": status, "updated_at": self._now()}
        if estimated_ready_time is not None:
            changes["estimated_ready_time"] = estimated_ready_time

        updated = self._update(order_id, **changes)
        logger.info(f"Order {order_id}: {order.status} -> {updated.status}")
        return updated

    def delete_order(self, order_id: str) -> None:
        self._delete(order_id)

    def stats(self, now: Optional[datetime] = None) -> OrderStats:
        return compute_order_stats(self._list(), self._now(now))

    def view(
        self,
        search: str = "",
        status: str = ALL,
        sort: Optional[SortField] = None,
        descending: Optional[bool] = None,
    ) -> list[Order]:
        """Filtered, sorted order list for the orders page."""
        return filter_orders(self._list(), search, status, sort, descending)

    def board(self) -> dict[str, list[Order]]:
        """Orders grouped into kitchen board columns."""
        return group_by_status(self._list(), OrderStatus)
