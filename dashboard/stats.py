"""
Summary statistics for the dashboard cards.

Every function here is pure: it takes a snapshot (any iterable of records)
plus a reference `now`, and returns a freshly built result model. Nothing is
cached between calls and input order never matters.

Conventions:
- "Today" means the same calendar day as `now`, compared in `now`'s timezone
  (naive timestamps are local time)
- Revenue only counts COMPLETED orders - pending, in-progress and rejected
  orders haven't been paid for
- Averages and rates over an empty denominator are 0.0, never NaN
"""

from collections import Counter
from datetime import date, datetime, timedelta
from typing import Iterable, Optional

from pydantic import BaseModel, Field

from restaurant.models import (
    Customer,
    CustomerLoyalty,
    LoyaltyProgram,
    Notification,
    NotificationStatus,
    Order,
    OrderStatus,
    Reservation,
    ReservationStatus,
)

ACTIVE_WINDOW = timedelta(days=30)
NEW_CUSTOMER_WINDOW = timedelta(days=7)
RECENT_REDEMPTION_WINDOW = timedelta(days=7)
POPULAR_ITEMS_LIMIT = 5
PERFORMANCE_DAYS = 7


# =============================================================================
# Result models
# =============================================================================

class OrderStats(BaseModel):
    """Order counters for the orders board and dashboard."""
    total: int = 0
    today_count: int = 0
    pending_count: int = 0
    preparing_count: int = 0
    ready_count: int = 0
    completed_count: int = 0
    rejected_count: int = 0
    total_revenue_today: float = 0.0


class ReservationStats(BaseModel):
    """Reservation counters; the six status counts partition `total`."""
    total: int = 0
    today: int = 0
    upcoming: int = 0
    pending: int = 0
    confirmed: int = 0
    seated: int = 0
    completed: int = 0
    cancelled: int = 0
    no_show: int = 0


class PopularItem(BaseModel):
    name: str
    count: int


class CustomerStats(BaseModel):
    total_customers: int = 0
    active_customers: int = 0
    new_customers: int = 0
    loyalty_members: int = 0
    total_revenue: float = 0.0
    average_order_value: float = 0.0


class AudienceBreakdown(BaseModel):
    count: int = 0
    recipients: int = 0


class DailyPerformance(BaseModel):
    day: date
    sent: int = 0
    delivered: int = 0
    opened: int = 0


class NotificationStats(BaseModel):
    """Push campaign performance. Rates are percentages."""
    total_notifications: int = 0
    total_sent: int = 0
    total_recipients: int = 0
    total_delivered: int = 0
    total_opened: int = 0
    total_clicked: int = 0
    delivery_rate: float = 0.0
    open_rate: float = 0.0
    click_rate: float = 0.0
    audience_breakdown: dict[str, AudienceBreakdown] = Field(default_factory=dict)
    daily_performance: list[DailyPerformance] = Field(default_factory=list)


class LoyaltyStats(BaseModel):
    """Stamp card summary. completion_rate is a percentage."""
    total_customers: int = 0
    active_customers: int = 0
    total_rewards_redeemed: int = 0
    average_stamps: float = 0.0
    completion_rate: float = 0.0
    recent_redemptions: int = 0


# =============================================================================
# Time helpers
# =============================================================================

def align_to(value: datetime, now: datetime) -> datetime:
    """
    Express `value` in the same timezone convention as `now`.

    Naive datetimes are local time, so a naive value compared with an aware
    `now` is interpreted as local, and an aware value compared with a naive
    `now` is converted to local and stripped.
    """
    if now.tzinfo is not None:
        return value.astimezone(now.tzinfo)
    if value.tzinfo is not None:
        return value.astimezone().replace(tzinfo=None)
    return value


def is_same_day(value: datetime, now: datetime) -> bool:
    """True if `value` falls on `now`'s calendar day."""
    return align_to(value, now).date() == now.date()


def is_active_customer(
    customer: Customer,
    now: datetime,
    window: timedelta = ACTIVE_WINDOW,
) -> bool:
    """A customer is active if they ordered within `window` before `now`."""
    if customer.last_order_date is None:
        return False
    return align_to(customer.last_order_date, now) >= now - window


def _ratio(numerator: float, denominator: float) -> float:
    if not denominator:
        return 0.0
    return numerator / denominator


# =============================================================================
# Aggregations
# =============================================================================

def compute_order_stats(orders: Iterable[Order], now: datetime) -> OrderStats:
    """
    Count orders by status and sum today's completed revenue.

    Every order lands in exactly one status bucket, so the five status
    counts always add up to `total`.
    """
    by_status: Counter = Counter()
    today_count = 0
    revenue_today = 0.0

    for order in orders:
        by_status[order.status] += 1
        if is_same_day(order.created_at, now):
            today_count += 1
            if order.status == OrderStatus.COMPLETED:
                revenue_today += order.total_price

    return OrderStats(
        total=sum(by_status.values()),
        today_count=today_count,
        pending_count=by_status[OrderStatus.PENDING.value],
        preparing_count=by_status[OrderStatus.PREPARING.value],
        ready_count=by_status[OrderStatus.READY.value],
        completed_count=by_status[OrderStatus.COMPLETED.value],
        rejected_count=by_status[OrderStatus.REJECTED.value],
        total_revenue_today=revenue_today,
    )


def compute_reservation_stats(
    reservations: Iterable[Reservation],
    now: datetime,
) -> ReservationStats:
    """
    Count reservations per status, for today, and upcoming.

    Upcoming is inclusive: a reservation dated exactly `now` is upcoming.
    """
    by_status: Counter = Counter()
    today = 0
    upcoming = 0

    for reservation in reservations:
        by_status[reservation.status] += 1
        if is_same_day(reservation.date, now):
            today += 1
        if align_to(reservation.date, now) >= now:
            upcoming += 1

    return ReservationStats(
        total=sum(by_status.values()),
        today=today,
        upcoming=upcoming,
        **{status.value: by_status[status.value] for status in ReservationStatus},
    )


def compute_popular_items(
    orders: Iterable[Order],
    top_n: int = POPULAR_ITEMS_LIMIT,
) -> list[PopularItem]:
    """
    Rank menu items by total quantity ordered.

    Ties keep the order in which items were first encountered; dicts keep
    insertion order and sorted() is stable.
    """
    counts: dict[str, int] = {}
    for order in orders:
        for item in order.items:
            counts[item.name] = counts.get(item.name, 0) + item.quantity

    ranked = sorted(counts.items(), key=lambda entry: entry[1], reverse=True)
    return [PopularItem(name=name, count=count) for name, count in ranked[:max(top_n, 0)]]


def compute_customer_stats(
    customers: Iterable[Customer],
    now: datetime,
    active_window: timedelta = ACTIVE_WINDOW,
) -> CustomerStats:
    """
    Customer base summary.

    average_order_value only looks at customers who have ordered at least
    once; with nobody ordering it is 0.0.
    """
    stats = CustomerStats()
    spent_by_buyers = 0.0
    orders_by_buyers = 0

    for customer in customers:
        stats.total_customers += 1
        stats.total_revenue += customer.total_spent
        if is_active_customer(customer, now, active_window):
            stats.active_customers += 1
        if align_to(customer.created_at, now) > now - NEW_CUSTOMER_WINDOW:
            stats.new_customers += 1
        if customer.loyalty_points > 0:
            stats.loyalty_members += 1
        if customer.total_orders > 0:
            spent_by_buyers += customer.total_spent
            orders_by_buyers += customer.total_orders

    stats.average_order_value = _ratio(spent_by_buyers, orders_by_buyers)
    return stats


def compute_notification_stats(
    notifications: Iterable[Notification],
    now: datetime,
    days: int = PERFORMANCE_DAYS,
) -> NotificationStats:
    """
    Push campaign performance.

    Delivery counters only count for SENT notifications. The audience
    breakdown covers every notification, drafts included. The daily series
    runs oldest first and ends on `now`'s day.
    """
    stats = NotificationStats()
    series = {
        (now - timedelta(days=offset)).date(): DailyPerformance(day=(now - timedelta(days=offset)).date())
        for offset in range(days - 1, -1, -1)
    }

    for notification in notifications:
        stats.total_notifications += 1
        audience = stats.audience_breakdown.setdefault(
            notification.target_audience, AudienceBreakdown()
        )
        audience.count += 1
        audience.recipients += notification.recipient_count

        if notification.status != NotificationStatus.SENT:
            continue

        delivered = notification.delivered_count or 0
        opened = notification.opened_count or 0
        stats.total_sent += 1
        stats.total_recipients += notification.recipient_count
        stats.total_delivered += delivered
        stats.total_opened += opened
        stats.total_clicked += notification.clicked_count or 0

        sent_day = align_to(notification.sent_at or notification.created_at, now).date()
        bucket = series.get(sent_day)
        if bucket is not None:
            bucket.sent += 1
            bucket.delivered += delivered
            bucket.opened += opened

    stats.delivery_rate = _ratio(stats.total_delivered, stats.total_recipients) * 100
    stats.open_rate = _ratio(stats.total_opened, stats.total_delivered) * 100
    stats.click_rate = _ratio(stats.total_clicked, stats.total_opened) * 100
    stats.daily_performance = list(series.values())
    return stats


def compute_loyalty_stats(
    records: Iterable[CustomerLoyalty],
    program: Optional[LoyaltyProgram],
    now: datetime,
    customers: Iterable[Customer] = (),
    active_window: timedelta = ACTIVE_WINDOW,
) -> LoyaltyStats:
    """
    Stamp card summary for the loyalty page.

    A card counts as complete when it holds at least the program's
    `purchases_required` stamps; with no program configured nothing is
    complete. Activity comes from the card holder's customer record, so
    cards whose customer isn't in `customers` are never active.
    """
    holders = {c.id: c for c in customers}
    stats = LoyaltyStats()
    total_stamps = 0
    complete = 0

    for record in records:
        stats.total_customers += 1
        stats.total_rewards_redeemed += record.total_rewards_redeemed
        total_stamps += record.current_stamps

        customer = holders.get(record.customer_id)
        if customer is not None and is_active_customer(customer, now, active_window):
            stats.active_customers += 1
        if program is not None and record.current_stamps >= program.purchases_required:
            complete += 1
        if (
            record.last_redemption is not None
            and align_to(record.last_redemption, now) > now - RECENT_REDEMPTION_WINDOW
        ):
            stats.recent_redemptions += 1

    stats.average_stamps = _ratio(total_stamps, stats.total_customers)
    stats.completion_rate = _ratio(complete, stats.total_customers) * 100
    return stats
