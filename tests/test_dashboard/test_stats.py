"""
Tests for the summary statistics.

These tests verify counts, revenue rules and rankings on small hand-built
snapshots and on the fixture data.
"""

import pytest
from datetime import date, datetime, timedelta, timezone

from dashboard.stats import (
    align_to,
    compute_customer_stats,
    compute_loyalty_stats,
    compute_notification_stats,
    compute_order_stats,
    compute_popular_items,
    compute_reservation_stats,
    is_active_customer,
    is_same_day,
)
from restaurant.models import (
    Customer,
    CustomerLoyalty,
    LoyaltyProgram,
    Notification,
    Order,
    OrderItem,
    Reservation,
)

NOW = datetime(2024, 6, 15, 12, 0)


def make_order(order_id, status="pending", total=10.0, created_at=NOW, items=()):
    return Order(
        id=order_id,
        restaurant_id="r",
        customer_name=f"Customer {order_id}",
        items=[OrderItem(id=name.lower(), name=name, price=1.0, quantity=qty) for name, qty in items],
        total_price=total,
        status=status,
        created_at=created_at,
    )


def make_reservation(reservation_id, status="pending", when=NOW):
    return Reservation(
        id=reservation_id,
        restaurant_id="r",
        customer_name="Guest",
        customer_phone="1",
        date=when,
        time=when.strftime("%H:%M"),
        party_size=2,
        status=status,
    )


def make_customer(customer_id, last_order_date=None, created_at=datetime(2024, 1, 1), **fields):
    return Customer(
        id=customer_id,
        restaurant_id="r",
        name=f"Customer {customer_id}",
        last_order_date=last_order_date,
        created_at=created_at,
        **fields,
    )


def make_card(card_id, customer_id, stamps=0, redeemed=0, last_redemption=None):
    return CustomerLoyalty(
        id=card_id,
        customer_id=customer_id,
        restaurant_id="r",
        current_stamps=stamps,
        total_rewards_redeemed=redeemed,
        last_redemption=last_redemption,
        created_at=datetime(2024, 1, 1),
    )


class TestTimeHelpers:
    """Tests for day comparison across timezone conventions."""

    def test_same_day(self):
        """Test calendar-day comparison."""
        assert is_same_day(datetime(2024, 6, 15, 0, 0), NOW)
        assert is_same_day(datetime(2024, 6, 15, 23, 59), NOW)
        assert not is_same_day(datetime(2024, 6, 14, 23, 59), NOW)

    def test_align_aware_to_aware(self):
        """Test aware values are converted to now's zone."""
        tz = timezone(timedelta(hours=-5))
        now = datetime(2024, 6, 15, 12, 0, tzinfo=tz)
        value = datetime(2024, 6, 16, 3, 0, tzinfo=timezone.utc)

        aligned = align_to(value, now)

        assert aligned.tzinfo == tz
        assert aligned.date() == date(2024, 6, 15)
        assert is_same_day(value, now)

    def test_align_naive_is_unchanged(self):
        """Test naive values stay naive against a naive now."""
        assert align_to(datetime(2024, 6, 1), NOW) == datetime(2024, 6, 1)


class TestOrderStats:
    """Tests for compute_order_stats."""

    def test_today_counts_and_completed_revenue(self):
        """Test that today's revenue only counts completed orders."""
        yesterday = NOW - timedelta(days=1)
        orders = [
            make_order("o1", "pending", 10, NOW),
            make_order("o2", "completed", 20, NOW),
            make_order("o3", "completed", 5, yesterday),
        ]

        stats = compute_order_stats(orders, NOW)

        assert stats.today_count == 2
        assert stats.pending_count == 1
        assert stats.completed_count == 2
        assert stats.total_revenue_today == 20

    def test_status_counts_partition_total(self):
        """Test every order lands in exactly one status bucket."""
        statuses = ["pending", "preparing", "ready", "completed", "rejected", "pending"]
        orders = [make_order(f"o{i}", s) for i, s in enumerate(statuses)]

        stats = compute_order_stats(orders, NOW)

        assert stats.total == 6
        assert (
            stats.pending_count + stats.preparing_count + stats.ready_count
            + stats.completed_count + stats.rejected_count
        ) == stats.total

    def test_empty_snapshot(self):
        """Test stats over no orders are all zero."""
        stats = compute_order_stats([], NOW)

        assert stats.total == 0
        assert stats.total_revenue_today == 0.0

    def test_input_order_does_not_matter(self):
        """Test stats are the same for any ordering of the snapshot."""
        orders = [
            make_order("o1", "completed", 20, NOW),
            make_order("o2", "ready", 7, NOW - timedelta(days=2)),
            make_order("o3", "completed", 3, NOW),
        ]

        assert compute_order_stats(orders, NOW) == compute_order_stats(list(reversed(orders)), NOW)

    def test_fixture_orders(self, order_client, now):
        """Test stats over the demo restaurant's orders."""
        stats = compute_order_stats(order_client.get_orders(), now)

        assert stats.total == 6
        assert stats.today_count == 3
        assert stats.pending_count == 1
        assert stats.preparing_count == 1
        assert stats.ready_count == 1
        assert stats.completed_count == 2
        assert stats.rejected_count == 1
        assert stats.total_revenue_today == 24.0


class TestReservationStats:
    """Tests for compute_reservation_stats."""

    def test_counts(self):
        """Test today, upcoming and per-status counts."""
        reservations = [
            make_reservation("r1", "confirmed", NOW + timedelta(hours=7)),
            make_reservation("r2", "pending", NOW + timedelta(days=1)),
            make_reservation("r3", "completed", NOW - timedelta(days=1)),
            make_reservation("r4", "no_show", NOW - timedelta(hours=2)),
        ]

        stats = compute_reservation_stats(reservations, NOW)

        assert stats.total == 4
        assert stats.today == 2
        assert stats.upcoming == 2
        assert stats.confirmed == 1
        assert stats.no_show == 1
        assert stats.seated == 0

    def test_upcoming_is_inclusive(self):
        """Test a reservation exactly at now counts as upcoming."""
        stats = compute_reservation_stats([make_reservation("r1", when=NOW)], NOW)
        assert stats.upcoming == 1

    def test_fixture_reservations(self, reservation_client, now):
        """Test stats over the demo restaurant's reservations."""
        stats = compute_reservation_stats(reservation_client.get_reservations(), now)

        assert stats.total == 6
        assert stats.today == 3
        assert stats.upcoming == 4
        assert stats.pending == 2
        assert stats.confirmed == 1
        assert stats.completed == 1
        assert stats.cancelled == 1
        assert stats.no_show == 1


class TestPopularItems:
    """Tests for compute_popular_items."""

    def test_sums_quantities(self):
        """Test quantities are summed per item name across orders."""
        orders = [
            make_order("o1", items=[("Pizza", 3), ("Salad", 2)]),
            make_order("o2", items=[("Pizza", 1)]),
        ]

        items = compute_popular_items(orders)

        assert [(i.name, i.count) for i in items] == [("Pizza", 4), ("Salad", 2)]

    def test_ties_keep_first_seen_order(self):
        """Test items with equal counts keep the order they were first seen."""
        orders = [make_order("o1", items=[("Soup", 1), ("Bread", 1), ("Cake", 1)])]

        items = compute_popular_items(orders)

        assert [i.name for i in items] == ["Soup", "Bread", "Cake"]

    def test_limit(self):
        """Test only the top N items are returned."""
        orders = [make_order("o1", items=[(f"Item {n}", 10 - n) for n in range(8)])]

        items = compute_popular_items(orders, top_n=3)

        assert [i.name for i in items] == ["Item 0", "Item 1", "Item 2"]

    def test_no_orders(self):
        """Test no orders means no popular items."""
        assert compute_popular_items([]) == []


class TestCustomerStats:
    """Tests for customer activity and the customer summary."""

    def test_active_window(self):
        """Test the 30 day recency window."""
        now = datetime(2024, 6, 1)

        assert is_active_customer(make_customer("c1", datetime(2024, 5, 2)), now)
        assert not is_active_customer(make_customer("c2", datetime(2024, 5, 1)), now)
        assert not is_active_customer(make_customer("c3", None), now)

    def test_summary(self):
        """Test counts and average order value."""
        customers = [
            make_customer("c1", NOW - timedelta(days=2), total_orders=4, total_spent=100.0, loyalty_points=10),
            make_customer("c2", NOW - timedelta(days=60), total_orders=1, total_spent=20.0),
            make_customer("c3", None, created_at=NOW - timedelta(days=1)),
        ]

        stats = compute_customer_stats(customers, NOW)

        assert stats.total_customers == 3
        assert stats.active_customers == 1
        assert stats.new_customers == 1
        assert stats.loyalty_members == 1
        assert stats.total_revenue == 120.0
        assert stats.average_order_value == pytest.approx(24.0)

    def test_average_with_no_buyers(self):
        """Test average order value is 0.0 when nobody has ordered."""
        stats = compute_customer_stats([make_customer("c1")], NOW)
        assert stats.average_order_value == 0.0

    def test_fixture_customers(self, customer_client, now):
        """Test the summary over the demo restaurant's customers."""
        stats = compute_customer_stats(customer_client.get_customers(), now)

        assert stats.total_customers == 6
        assert stats.active_customers == 3
        assert stats.new_customers == 2
        assert stats.loyalty_members == 3
        assert stats.total_revenue == 500.0
        assert stats.average_order_value == pytest.approx(500.0 / 26)


class TestNotificationStats:
    """Tests for compute_notification_stats."""

    def test_fixture_notifications(self, notification_client, now):
        """Test performance over the demo restaurant's campaigns."""
        stats = compute_notification_stats(notification_client.get_notifications(), now)

        assert stats.total_notifications == 5
        assert stats.total_sent == 2
        assert stats.total_recipients == 7
        assert stats.total_delivered == 7
        assert stats.total_opened == 4
        assert stats.total_clicked == 2
        assert stats.delivery_rate == pytest.approx(100.0)
        assert stats.open_rate == pytest.approx(400.0 / 7)
        assert stats.click_rate == pytest.approx(50.0)

    def test_audience_breakdown(self, notification_client, now):
        """Test the breakdown covers every campaign, drafts included."""
        stats = compute_notification_stats(notification_client.get_notifications(), now)

        breakdown = stats.audience_breakdown
        assert breakdown["all"].count == 3
        assert breakdown["all"].recipients == 10
        assert breakdown["loyal_customers"].count == 1
        assert breakdown["recent_customers"].count == 1

    def test_daily_performance(self, notification_client, now):
        """Test the daily series runs oldest first and ends today."""
        stats = compute_notification_stats(notification_client.get_notifications(), now)

        days = stats.daily_performance
        assert len(days) == 7
        assert days[0].day == date(2024, 6, 9)
        assert days[-1].day == date(2024, 6, 15)

        by_day = {d.day: d for d in days}
        assert by_day[date(2024, 6, 14)].sent == 1
        assert by_day[date(2024, 6, 14)].delivered == 5
        assert by_day[date(2024, 6, 10)].opened == 1
        assert by_day[date(2024, 6, 15)].sent == 0

    def test_empty(self):
        """Test rates are zero with nothing sent."""
        stats = compute_notification_stats([], NOW)

        assert stats.delivery_rate == 0.0
        assert stats.open_rate == 0.0
        assert stats.click_rate == 0.0

    def test_unsent_counters_ignored(self):
        """Test delivery counters on failed campaigns don't count."""
        failed = Notification(
            id="n1", restaurant_id="r", title="T", message="M",
            status="failed", recipient_count=3, delivered_count=0,
        )

        stats = compute_notification_stats([failed], NOW)

        assert stats.total_sent == 0
        assert stats.total_recipients == 0
        assert stats.audience_breakdown["all"].recipients == 3


class TestLoyaltyStats:
    """Tests for compute_loyalty_stats."""

    @pytest.fixture
    def program(self):
        return LoyaltyProgram(id="lp", restaurant_id="r", purchases_required=10)

    def test_empty(self, program):
        """Test no cards yields zeros, not a division error."""
        stats = compute_loyalty_stats([], program, NOW)

        assert stats.total_customers == 0
        assert stats.average_stamps == 0.0
        assert stats.completion_rate == 0.0

    def test_card_summary(self, program):
        """Test stamps, completion and redemptions across cards."""
        cards = [
            make_card("l1", "c1", stamps=12, redeemed=2, last_redemption=NOW - timedelta(days=2)),
            make_card("l2", "c2", stamps=4, redeemed=1, last_redemption=NOW - timedelta(days=8)),
            make_card("l3", "c3", stamps=10),
            make_card("l4", "c4", stamps=2),
        ]

        stats = compute_loyalty_stats(cards, program, NOW)

        assert stats.total_customers == 4
        assert stats.average_stamps == 7.0
        assert stats.completion_rate == 50.0
        assert stats.total_rewards_redeemed == 3
        assert stats.recent_redemptions == 1

    def test_no_program_means_nothing_complete(self):
        """Test completion needs a program to compare against."""
        stats = compute_loyalty_stats([make_card("l1", "c1", stamps=50)], None, NOW)

        assert stats.completion_rate == 0.0
        assert stats.average_stamps == 50.0

    def test_active_from_customer_records(self, program):
        """Test activity follows the card holder's last order."""
        cards = [make_card("l1", "c1"), make_card("l2", "c2"), make_card("l3", "c3")]
        customers = [
            make_customer("c1", last_order_date=NOW - timedelta(days=3)),
            make_customer("c2", last_order_date=NOW - timedelta(days=45)),
        ]

        stats = compute_loyalty_stats(cards, program, NOW, customers)

        assert stats.active_customers == 1

    def test_aware_redemption_with_naive_now(self, program):
        """Test redemption times in UTC are compared in local time."""
        card = make_card("l1", "c1", last_redemption=datetime(2024, 6, 20, tzinfo=timezone.utc))

        assert compute_loyalty_stats([card], program, NOW).recent_redemptions == 1
