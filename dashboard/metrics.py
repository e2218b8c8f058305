"""
Dashboard metrics and their live feed.

compute_dashboard_metrics() turns an orders snapshot and a reservations
snapshot into the numbers on the dashboard home page. LiveDashboard keeps
those numbers current: it subscribes to both collections and recomputes
from scratch on every snapshot - no incremental bookkeeping.

The revenue rule is the same one the orders board uses: only COMPLETED
orders count as revenue, both for today and for the week.
"""

import logging
from datetime import datetime, timedelta
from typing import Callable, Iterable, Optional

from pydantic import BaseModel, Field

from dashboard.stats import (
    POPULAR_ITEMS_LIMIT,
    PopularItem,
    align_to,
    compute_order_stats,
    compute_popular_items,
    is_same_day,
)
from restaurant.entity_stream import ErrorHandler, StreamError, Subscription
from restaurant.models import Order, OrderStatus, Reservation, ReservationStatus

logger = logging.getLogger("dashboard")

RECENT_ACTIVITY_LIMIT = 10


class ActivityItem(BaseModel):
    """One line of the dashboard's recent activity feed."""
    id: str
    type: str = "order"
    message: str
    status: str
    timestamp: datetime


class DashboardMetrics(BaseModel):
    today_orders: int = 0
    today_revenue: float = 0.0
    pending_orders: int = 0
    completed_orders: int = 0
    today_reservations: int = 0
    pending_reservations: int = 0
    weekly_orders: int = 0
    weekly_revenue: float = 0.0
    popular_items: list[PopularItem] = Field(default_factory=list)
    recent_activity: list[ActivityItem] = Field(default_factory=list)
    computed_at: Optional[datetime] = None


def week_bounds(now: datetime) -> tuple[datetime, datetime]:
    """Start (Sunday 00:00) and exclusive end of the week containing `now`."""
    midnight = now.replace(hour=0, minute=0, second=0, microsecond=0)
    days_since_sunday = (now.weekday() + 1) % 7
    start = midnight - timedelta(days=days_since_sunday)
    return start, start + timedelta(days=7)


def describe_order(order: Order) -> str:
    if order.status == OrderStatus.PENDING:
        return f"New order from {order.customer_name}"
    if order.status == OrderStatus.COMPLETED:
        return f"Order from {order.customer_name} completed"
    return f"Order from {order.customer_name} is {order.status}"


def compute_dashboard_metrics(
    orders: Iterable[Order],
    reservations: Iterable[Reservation],
    now: datetime,
    popular_limit: int = POPULAR_ITEMS_LIMIT,
    activity_limit: int = RECENT_ACTIVITY_LIMIT,
) -> DashboardMetrics:
    orders = list(orders)
    reservations = list(reservations)
    order_stats = compute_order_stats(orders, now)

    week_start, week_end = week_bounds(now)
    weekly = [o for o in orders if week_start <= align_to(o.created_at, now) < week_end]
    weekly_revenue = sum(o.total_price for o in weekly if o.status == OrderStatus.COMPLETED)

    newest = sorted(orders, key=lambda o: align_to(o.created_at, now), reverse=True)
    activity = [
        ActivityItem(
            id=o.id,
            message=describe_order(o),
            status=o.status,
            timestamp=o.created_at,
        )
        for o in newest[:activity_limit]
    ]

    return DashboardMetrics(
        today_orders=order_stats.today_count,
        today_revenue=order_stats.total_revenue_today,
        pending_orders=order_stats.pending_count,
        completed_orders=order_stats.completed_count,
        today_reservations=sum(1 for r in reservations if is_same_day(r.date, now)),
        pending_reservations=sum(1 for r in reservations if r.status == ReservationStatus.PENDING),
        weekly_orders=len(weekly),
        weekly_revenue=weekly_revenue,
        popular_items=compute_popular_items(weekly, popular_limit),
        recent_activity=activity,
        computed_at=now,
    )


class LiveDashboard:
    """
    Keeps dashboard metrics current.

    Subscribes to the orders and reservations clients and calls `on_metrics`
    with freshly computed metrics after each snapshot, once both collections
    have delivered at least once. Snapshots arrive one at a time through the
    stream channels, so recomputations never overlap.

    Example:
        live = LiveDashboard(order_client, reservation_client, print)
        live.start()
        ...
        live.stop()
    """

    def __init__(
        self,
        order_client,
        reservation_client,
        on_metrics: Callable[[DashboardMetrics], None],
        on_error: Optional[ErrorHandler] = None,
        clock: Callable[[], datetime] = datetime.now,
        popular_limit: int = POPULAR_ITEMS_LIMIT,
        activity_limit: int = RECENT_ACTIVITY_LIMIT,
    ):
        self.order_client = order_client
        self.reservation_client = reservation_client
        self.on_metrics = on_metrics
        self.on_error = on_error
        self.clock = clock
        self.popular_limit = popular_limit
        self.activity_limit = activity_limit

        self._orders: Optional[list[Order]] = None
        self._reservations: Optional[list[Reservation]] = None
        self._subscriptions: list[Subscription] = []
        self.latest: Optional[DashboardMetrics] = None

    @property
    def running(self) -> bool:
        return bool(self._subscriptions)

    def start(self) -> None:
        if self.running:
            logger.warning("Live dashboard already running")
            return
        self._subscriptions = [
            self.order_client.subscribe(self._on_orders, self._handle_error),
            self.reservation_client.subscribe(self._on_reservations, self._handle_error),
        ]
        logger.info("Live dashboard started")

    def stop(self) -> None:
        for subscription in self._subscriptions:
            subscription.unsubscribe()
        self._subscriptions = []
        self._orders = None
        self._reservations = None
        logger.info("Live dashboard stopped")

    def _on_orders(self, orders: list[Order]) -> None:
        self._orders = orders
        self._recompute()

    def _on_reservations(self, reservations: list[Reservation]) -> None:
        self._reservations = reservations
        self._recompute()

    def _recompute(self) -> None:
        if self._orders is None or self._reservations is None:
            return
        self.latest = compute_dashboard_metrics(
            self._orders,
            self._reservations,
            self.clock(),
            self.popular_limit,
            self.activity_limit,
        )
        self.on_metrics(self.latest)

    def _handle_error(self, error: StreamError) -> None:
        logger.error(f"Dashboard feed error: {error}")
        if self.on_error is not None:
            self.on_error(error)
