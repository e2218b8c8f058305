"""
Common plumbing for the per-collection client objects.

A client is built with everything it needs - the data store, an accessor
for the signed-in user, a clock - and scopes every read and write to the
current user's restaurant. There are no module-level client instances;
whoever wires the application constructs them and hands them around.
"""

import logging
from datetime import datetime
from typing import Callable, Optional

from restaurant.data_store import DataStore
from restaurant.entity_stream import ErrorHandler, Subscription
from restaurant.models import User

logger = logging.getLogger("services")

CurrentUser = Callable[[], Optional[User]]
Clock = Callable[[], datetime]


class ServiceError(Exception):
    """
    A client operation that could not be carried out.

    `code` is a short machine-readable tag (e.g. "no-restaurant",
    "not-found", "conflict"); `message` is meant for the operator.
    """

    def __init__(self, code: str, message: str):
        super().__init__(message)
        self.code = code
        self.message = message

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"


class NotFoundError(ServiceError):
    def __init__(self, kind: str, record_id: str):
        super().__init__("not-found", f"{kind} not found: {record_id}")
        self.record_id = record_id


class CollectionClient:
    """
    Base class for clients over one store collection.

    Subclasses set `collection` (the store collection name) and `kind`
    (human-readable record name used in errors and logs).
    """

    collection: str = ""
    kind: str = "Record"

    def __init__(
        self,
        data_store: DataStore,
        current_user: CurrentUser,
        clock: Clock = datetime.now,
    ):
        self.data_store = data_store
        self.current_user = current_user
        self.clock = clock

    @property
    def restaurant_id(self) -> str:
        """
        The current user's restaurant.

        Raises:
            ServiceError: no signed-in user, or the user has no restaurant
        """
        user = self.current_user()
        if user is None or not user.restaurant_id:
            raise ServiceError("no-restaurant", "No restaurant ID available")
        return user.restaurant_id

    def _now(self, now: Optional[datetime] = None) -> datetime:
        return now if now is not None else self.clock()

    def subscribe(
        self,
        on_update: Callable[[list], None],
        on_error: Optional[ErrorHandler] = None,
    ) -> Subscription:
        """
        Receive the restaurant's records now and after every change.

        Each delivery is the complete current list for this restaurant.
        Call the returned Subscription to stop receiving updates.
        """
        restaurant_id = self.restaurant_id

        def deliver(snapshot: tuple) -> None:
            on_update([r for r in snapshot if r.restaurant_id == restaurant_id])

        logger.debug(f"Subscribing to {self.collection} for restaurant {restaurant_id}")
        return self.data_store.stream(self.collection).subscribe(deliver, on_error)

    def _list(self) -> list:
        restaurant_id = self.restaurant_id
        return [
            r for r in self.data_store.list_records(self.collection)
            if r.restaurant_id == restaurant_id
        ]

    def _get(self, record_id: str):
        record = self.data_store.get(self.collection, record_id)
        if record is None or record.restaurant_id != self.restaurant_id:
            return None
        return record

    def _require(self, record_id: str):
        record = self._get(record_id)
        if record is None:
            raise NotFoundError(self.kind, record_id)
        return record

    def _update(self, record_id: str, **changes):
        self._require(record_id)
        return self.data_store.update(self.collection, record_id, **changes)

    def _delete(self, record_id: str) -> None:
        self._require(record_id)
        self.data_store.delete(self.collection, record_id)
        logger.info(f"{self.kind} deleted: {record_id}")
