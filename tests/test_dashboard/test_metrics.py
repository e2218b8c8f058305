"""
Tests for the dashboard home page metrics and the live feed.
"""

import pytest
from datetime import datetime

from dashboard.metrics import LiveDashboard, compute_dashboard_metrics, week_bounds
from restaurant.data_store import ORDERS
from restaurant.models import OrderStatus


class TestWeekBounds:
    """Tests for the Sunday-start week."""

    def test_saturday(self):
        """Test a Saturday belongs to the week starting the previous Sunday."""
        start, end = week_bounds(datetime(2024, 6, 15, 12, 0))

        assert start == datetime(2024, 6, 9)
        assert end == datetime(2024, 6, 16)

    def test_sunday(self):
        """Test a Sunday starts its own week."""
        start, _ = week_bounds(datetime(2024, 6, 16, 8, 30))
        assert start == datetime(2024, 6, 16)


class TestComputeDashboardMetrics:
    """Tests for compute_dashboard_metrics over the fixtures."""

    @pytest.fixture
    def metrics(self, order_client, reservation_client, now):
        return compute_dashboard_metrics(
            order_client.get_orders(),
            reservation_client.get_reservations(),
            now,
        )

    def test_today(self, metrics):
        """Test today's counters."""
        assert metrics.today_orders == 3
        assert metrics.today_revenue == 24.0
        assert metrics.pending_orders == 1
        assert metrics.completed_orders == 2
        assert metrics.today_reservations == 3
        assert metrics.pending_reservations == 2

    def test_weekly(self, metrics):
        """Test the week's orders and completed revenue."""
        assert metrics.weekly_orders == 5
        assert metrics.weekly_revenue == 38.0

    def test_popular_items(self, metrics):
        """Test this week's popular items, ties in first-seen order."""
        assert [(i.name, i.count) for i in metrics.popular_items] == [
            ("Pizza", 4),
            ("Salad", 2),
            ("Burger", 2),
            ("Pasta", 1),
        ]

    def test_recent_activity(self, metrics):
        """Test the activity feed is newest first."""
        ids = [a.id for a in metrics.recent_activity]
        assert ids == ["ord-005", "ord-002", "ord-001", "ord-003", "ord-004", "ord-006"]

        messages = {a.id: a.message for a in metrics.recent_activity}
        assert messages["ord-002"] == "New order from Bob Smith"
        assert messages["ord-001"] == "Order from Alice Johnson completed"
        assert messages["ord-005"] == "Order from Eva Martin is preparing"

    def test_limits(self, order_client, reservation_client, now):
        """Test the popular and activity limits."""
        metrics = compute_dashboard_metrics(
            order_client.get_orders(),
            reservation_client.get_reservations(),
            now,
            popular_limit=1,
            activity_limit=2,
        )

        assert len(metrics.popular_items) == 1
        assert len(metrics.recent_activity) == 2

    def test_empty(self, now):
        """Test an empty restaurant gives zeroed metrics."""
        metrics = compute_dashboard_metrics([], [], now)

        assert metrics.today_orders == 0
        assert metrics.weekly_revenue == 0.0
        assert metrics.popular_items == []
        assert metrics.computed_at == now


class TestLiveDashboard:
    """Tests for the live metrics feed."""

    @pytest.fixture
    def received(self):
        return []

    @pytest.fixture
    def live(self, order_client, reservation_client, clock, received):
        dashboard = LiveDashboard(order_client, reservation_client, received.append, clock=clock)
        yield dashboard
        dashboard.stop()

    def test_first_metrics_after_both_collections(self, live, received):
        """Test metrics are emitted once both collections have delivered."""
        live.start()

        assert live.running is True
        assert len(received) == 1
        assert received[0].today_orders == 3
        assert live.latest == received[0]

    def test_recomputes_on_change(self, live, received, order_client):
        """Test a write produces freshly computed metrics."""
        live.start()

        order_client.update_order_status("ord-002", OrderStatus.COMPLETED)

        assert len(received) == 2
        assert received[-1].pending_orders == 0
        assert received[-1].today_revenue == 44.5

    def test_stop(self, live, received, order_client):
        """Test no metrics arrive after stopping."""
        live.start()
        live.stop()

        order_client.update_order_status("ord-002", OrderStatus.READY)

        assert live.running is False
        assert len(received) == 1

    def test_start_twice(self, live, received):
        """Test starting an already running feed is a no-op."""
        live.start()
        live.start()

        assert len(received) == 1

    def test_errors_forwarded(self, order_client, reservation_client, data_store, clock):
        """Test stream failures reach the error handler."""
        errors = []
        live = LiveDashboard(order_client, reservation_client, lambda _: None, errors.append, clock=clock)
        live.start()

        data_store.report_failure(ORDERS, "unavailable", "Backend offline")

        assert [e.code for e in errors] == ["unavailable"]
        live.stop()
