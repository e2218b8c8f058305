"""
Tests for the DataStore.

These tests verify that the data store correctly loads JSON fixtures,
applies writes in memory and publishes snapshots to collection streams.
"""

import pytest
from datetime import datetime, timezone
from pathlib import Path

from restaurant.data_store import CUSTOMERS, NOTIFICATIONS, ORDERS, RESERVATIONS, DataStore
from restaurant.models import Notification, OrderStatus


class TestDataStoreLoading:
    """Tests for fixture loading and per-collection queries."""

    def test_get_order(self, data_store: DataStore):
        """Test retrieving an order by ID."""
        order = data_store.get_order("ord-001")

        assert order is not None
        assert order.customer_name == "Alice Johnson"
        assert order.total_price == 24.0
        assert order.items[0].name == "Pizza"

    def test_get_nonexistent_order(self, data_store: DataStore):
        """Test that getting a nonexistent order returns None."""
        assert data_store.get_order("nonexistent-id") is None

    def test_get_orders_newest_first(self, data_store: DataStore):
        """Test that collections come back newest first."""
        orders = data_store.get_orders()

        created = [o.created_at for o in orders]
        assert created == sorted(created, reverse=True)
        assert len(orders) == 7

    def test_get_orders_for_restaurant(self, data_store: DataStore):
        """Test restricting a query to one restaurant."""
        orders = data_store.get_orders("demo-restaurant")

        assert len(orders) == 6
        assert all(o.restaurant_id == "demo-restaurant" for o in orders)

    def test_other_collections(self, data_store: DataStore):
        """Test the remaining fixtures load."""
        assert len(data_store.get_reservations("demo-restaurant")) == 6
        assert len(data_store.get_customers("demo-restaurant")) == 6
        assert len(data_store.get_notifications("demo-restaurant")) == 5
        assert data_store.get_customer("cust-003").phone is None
        assert [p.id for p in data_store.get_loyalty_programs("demo-restaurant")] == ["lp-001"]
        assert len(data_store.get_customer_loyalty("demo-restaurant")) == 4

    def test_missing_fixture_dir(self, tmp_path: Path):
        """Test that missing fixture files mean empty collections."""
        store = DataStore(data_dir=tmp_path)

        assert store.get_orders() == []
        assert store.get_customers() == []


class TestDataStoreWrites:
    """Tests for in-memory writes."""

    def test_update_returns_new_record(self, data_store: DataStore):
        """Test that update replaces the record with a validated copy."""
        original = data_store.get_order("ord-002")

        updated = data_store.update(ORDERS, "ord-002", status=OrderStatus.PREPARING)

        assert updated.status == "preparing"
        assert original.status == "pending"  # old snapshot untouched
        assert data_store.get_order("ord-002").status == "preparing"

    def test_update_validates(self, data_store: DataStore):
        """Test that invalid changes are rejected."""
        with pytest.raises(ValueError):
            data_store.update(ORDERS, "ord-002", status="lost")

    def test_update_missing(self, data_store: DataStore):
        """Test updating a missing record returns None."""
        assert data_store.update(ORDERS, "nope", status=OrderStatus.READY) is None

    def test_delete(self, data_store: DataStore):
        """Test deleting a record."""
        assert data_store.delete(RESERVATIONS, "res-001") is True
        assert data_store.get_reservation("res-001") is None
        assert data_store.delete(RESERVATIONS, "res-001") is False

    def test_aware_record_among_naive_ones(self, data_store: DataStore):
        """Test a UTC-stamped record sorts with the local fixture records."""
        received = []
        data_store.stream(NOTIFICATIONS).subscribe(received.append)
        notification = Notification(
            id="ntf-utc",
            restaurant_id="demo-restaurant",
            title="Hello",
            message="Body",
            created_at=datetime(2024, 6, 20, tzinfo=timezone.utc),
        )

        data_store.save_notification(notification)

        assert data_store.get_notifications()[0].id == "ntf-utc"
        assert received[-1][0].id == "ntf-utc"

    def test_reload_discards_writes(self, data_store: DataStore):
        """Test reload re-reads the fixtures."""
        data_store.delete(CUSTOMERS, "cust-001")
        data_store.reload()

        assert data_store.get_customer("cust-001") is not None


class TestDataStoreStreams:
    """Tests for snapshot publication."""

    def test_subscriber_gets_current_snapshot(self, data_store: DataStore):
        """Test a new subscriber receives the collection straight away."""
        received = []
        data_store.stream(ORDERS).subscribe(received.append)

        assert len(received) == 1
        assert len(received[0]) == 7

    def test_write_publishes_snapshot(self, data_store: DataStore):
        """Test every write delivers the full updated collection."""
        received = []
        data_store.stream(ORDERS).subscribe(received.append)

        data_store.update(ORDERS, "ord-002", status=OrderStatus.READY)

        assert len(received) == 2
        latest = {o.id: o for o in received[-1]}
        assert latest["ord-002"].status == "ready"
        assert len(latest) == 7

    def test_report_failure(self, data_store: DataStore):
        """Test upstream failures reach error handlers."""
        errors = []
        data_store.stream(RESERVATIONS).subscribe(lambda _: None, errors.append)

        notified = data_store.report_failure(RESERVATIONS, "permission-denied", "No access")

        assert notified == 1
        assert errors[0].code == "permission-denied"

    def test_reload_republishes(self, data_store: DataStore):
        """Test reload pushes fresh snapshots to live streams."""
        received = []
        data_store.stream(CUSTOMERS).subscribe(received.append)
        data_store.delete(CUSTOMERS, "cust-001")

        data_store.reload()

        assert len(received) == 3
        assert any(c.id == "cust-001" for c in received[-1])
