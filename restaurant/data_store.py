"""
JSON-backed document store for the restaurant dashboard.

This module stands in for the managed real-time document database. It loads
JSON fixture files, keeps the collections in memory, and publishes a full
snapshot to the collection's EntityStream after every write - the same
contract the production listener API gives the dashboard.

Design decisions:
- Fixtures are loaded lazily, one file per collection
- Writes update in-memory state only (fixtures stay untouched)
- Records are frozen models; updates replace the record with a copy
- Snapshots are ordered newest first by creation time, like the
  production queries (orderBy createdAt desc)
- No module-level instance: callers construct a store and pass it on
"""

import json
import logging
from pathlib import Path
from typing import Optional, Type

from pydantic import BaseModel

from restaurant.config import DEFAULT_DATA_DIR
from restaurant.entity_stream import EntityStream
from restaurant.models import (
    Customer,
    CustomerLoyalty,
    LoyaltyProgram,
    Notification,
    Order,
    Reservation,
)

logger = logging.getLogger("data_store")

ORDERS = "orders"
RESERVATIONS = "reservations"
CUSTOMERS = "customers"
NOTIFICATIONS = "notifications"
LOYALTY_PROGRAMS = "loyalty_programs"
CUSTOMER_LOYALTY = "customer_loyalty"

COLLECTION_MODELS: dict[str, Type[BaseModel]] = {
    ORDERS: Order,
    RESERVATIONS: Reservation,
    CUSTOMERS: Customer,
    NOTIFICATIONS: Notification,
    LOYALTY_PROGRAMS: LoyaltyProgram,
    CUSTOMER_LOYALTY: CustomerLoyalty,
}


class DataStore:
    """
    In-memory document store with live collection streams.

    Example:
        store = DataStore(data_dir=Path("data"))
        store.stream(ORDERS).subscribe(lambda orders: print(len(orders)))
        store.save_order(order)   # subscribers receive the new snapshot
    """

    def __init__(self, data_dir: Optional[Path] = None):
        """
        Initialize the data store.

        Args:
            data_dir: Path to the directory containing the JSON fixtures.
                     Defaults to ./data relative to the project root.
        """
        self.data_dir = Path(data_dir) if data_dir is not None else DEFAULT_DATA_DIR

        # collection name -> {id: record}, loaded lazily
        self._collections: dict[str, Optional[dict[str, BaseModel]]] = {
            name: None for name in COLLECTION_MODELS
        }
        self._streams: dict[str, EntityStream] = {
            name: EntityStream(name) for name in COLLECTION_MODELS
        }

    # =========================================================================
    # Data Loading (lazy)
    # =========================================================================

    def _load_json(self, filename: str) -> list[dict]:
        """Load a JSON fixture file."""
        filepath = self.data_dir / filename
        if not filepath.exists():
            return []
        with open(filepath, "r") as f:
            return json.load(f)

    def _records(self, collection: str) -> dict[str, BaseModel]:
        """Return the collection's records, loading the fixture on first use."""
        records = self._collections[collection]
        if records is None:
            model = COLLECTION_MODELS[collection]
            data = self._load_json(f"{collection}.json")
            records = {r["id"]: model(**r) for r in data}
            self._collections[collection] = records
            logger.debug(f"Loaded {len(records)} {collection}")
        return records

    def _snapshot(self, collection: str) -> list:
        # timestamp() orders naive (local) and aware values on one axis
        return sorted(
            self._records(collection).values(),
            key=lambda r: r.created_at.timestamp(),
            reverse=True,
        )

    # =========================================================================
    # Streams
    # =========================================================================

    def stream(self, collection: str) -> EntityStream:
        """
        Get the live stream for a collection.

        The stream is primed with the current snapshot the first time it is
        requested so new subscribers get data straight away.
        """
        stream = self._streams[collection]
        if stream.latest is None:
            stream.publish(self._snapshot(collection))
        return stream

    def _changed(self, collection: str) -> None:
        self._streams[collection].publish(self._snapshot(collection))

    def report_failure(self, collection: str, code: str, message: str) -> int:
        """
        Simulate an upstream listener failure (network, permissions).

        Returns the number of subscribers notified.
        """
        return self._streams[collection].fail(code, message)

    # =========================================================================
    # Generic document operations
    # =========================================================================

    def get(self, collection: str, record_id: str) -> Optional[BaseModel]:
        return self._records(collection).get(record_id)

    def list_records(self, collection: str) -> list:
        """All records in a collection, newest first."""
        return self._snapshot(collection)

    def put(self, collection: str, record: BaseModel) -> BaseModel:
        """Insert or replace a record and publish the new snapshot."""
        self._records(collection)[record.id] = record
        self._changed(collection)
        return record

    def update(self, collection: str, record_id: str, **changes) -> Optional[BaseModel]:
        """
        Replace a record with an updated copy.

        Returns the updated record or None if not found.
        """
        records = self._records(collection)
        record = records.get(record_id)
        if record is None:
            return None
        # model_copy skips validation; round-trip through the model instead
        updated = type(record)(**{**record.model_dump(), **changes})
        records[record_id] = updated
        self._changed(collection)
        return updated

    def delete(self, collection: str, record_id: str) -> bool:
        """Delete a record. Returns False if it didn't exist."""
        records = self._records(collection)
        if records.pop(record_id, None) is None:
            return False
        self._changed(collection)
        return True

    # =========================================================================
    # Order Operations
    # =========================================================================

    def get_order(self, order_id: str) -> Optional[Order]:
        return self.get(ORDERS, order_id)

    def get_orders(self, restaurant_id: Optional[str] = None) -> list[Order]:
        """Get all orders, optionally limited to one restaurant."""
        orders = self.list_records(ORDERS)
        if restaurant_id is None:
            return orders
        return [o for o in orders if o.restaurant_id == restaurant_id]

    def save_order(self, order: Order) -> Order:
        return self.put(ORDERS, order)

    # =========================================================================
    # Reservation Operations
    # =========================================================================

    def get_reservation(self, reservation_id: str) -> Optional[Reservation]:
        return self.get(RESERVATIONS, reservation_id)

    def get_reservations(self, restaurant_id: Optional[str] = None) -> list[Reservation]:
        reservations = self.list_records(RESERVATIONS)
        if restaurant_id is None:
            return reservations
        return [r for r in reservations if r.restaurant_id == restaurant_id]

    def save_reservation(self, reservation: Reservation) -> Reservation:
        return self.put(RESERVATIONS, reservation)

    # =========================================================================
    # Customer Operations
    # =========================================================================

    def get_customer(self, customer_id: str) -> Optional[Customer]:
        return self.get(CUSTOMERS, customer_id)

    def get_customers(self, restaurant_id: Optional[str] = None) -> list[Customer]:
        customers = self.list_records(CUSTOMERS)
        if restaurant_id is None:
            return customers
        return [c for c in customers if c.restaurant_id == restaurant_id]

    def save_customer(self, customer: Customer) -> Customer:
        return self.put(CUSTOMERS, customer)

    # =========================================================================
    # Notification Operations
    # =========================================================================

    def get_notification(self, notification_id: str) -> Optional[Notification]:
        return self.get(NOTIFICATIONS, notification_id)

    def get_notifications(self, restaurant_id: Optional[str] = None) -> list[Notification]:
        notifications = self.list_records(NOTIFICATIONS)
        if restaurant_id is None:
            return notifications
        return [n for n in notifications if n.restaurant_id == restaurant_id]

    def save_notification(self, notification: Notification) -> Notification:
        return self.put(NOTIFICATIONS, notification)

    # =========================================================================
    # Loyalty Operations
    # =========================================================================

    def get_loyalty_programs(self, restaurant_id: Optional[str] = None) -> list[LoyaltyProgram]:
        programs = self.list_records(LOYALTY_PROGRAMS)
        if restaurant_id is None:
            return programs
        return [p for p in programs if p.restaurant_id == restaurant_id]

    def save_loyalty_program(self, program: LoyaltyProgram) -> LoyaltyProgram:
        return self.put(LOYALTY_PROGRAMS, program)

    def get_customer_loyalty(self, restaurant_id: Optional[str] = None) -> list[CustomerLoyalty]:
        """Stamp cards, optionally limited to one restaurant."""
        records = self.list_records(CUSTOMER_LOYALTY)
        if restaurant_id is None:
            return records
        return [r for r in records if r.restaurant_id == restaurant_id]

    def save_customer_loyalty(self, record: CustomerLoyalty) -> CustomerLoyalty:
        return self.put(CUSTOMER_LOYALTY, record)

    # =========================================================================
    # Utility Methods
    # =========================================================================

    def reload(self):
        """
        Drop in-memory state and re-read the fixtures on next access.

        Live streams are re-published so subscribers see the reloaded data.
        """
        for name in self._collections:
            self._collections[name] = None
        for name, stream in self._streams.items():
            if stream.latest is not None:
                self._changed(name)
