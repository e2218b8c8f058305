"""
Live snapshot streams for the dashboard's collections.

Each collection (orders, reservations, customers, notifications) has an
EntityStream. Whenever the collection changes, the store publishes the FULL
collection to the stream, and every subscriber receives that snapshot.
In production this sits on top of the document database's listener API.

Design decisions:
- Snapshots, not deltas: a subscriber can always rebuild its view from the
  latest delivery alone
- Snapshots are tuples of frozen models, so subscribers cannot mutate them
- New subscribers get the latest snapshot immediately (listener semantics)
- Every subscriber has its own FIFO channel; a snapshot published while that
  subscriber's callback is running is queued, never delivered re-entrantly
- Cancellation is an explicit Subscription handle returned by subscribe()
- Callback failures are logged and don't stop delivery to other subscribers
"""

import logging
from collections import deque
from dataclasses import dataclass
from typing import Callable, Generic, Optional, Sequence, TypeVar
from uuid import uuid4

logger = logging.getLogger("entity_stream")

T = TypeVar("T")

UpdateHandler = Callable[[tuple], None]


@dataclass(frozen=True)
class StreamError:
    """
    Structured subscription failure, e.g. permission-denied or unavailable.

    Delivered through a subscriber's on_error callback; never raised.
    """
    code: str
    message: str

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"


ErrorHandler = Callable[[StreamError], None]


class SnapshotChannel:
    """
    Single-writer, single-reader queue between a stream and one subscriber.

    push() enqueues and drains. If the subscriber's callback publishes again
    (directly or through the store), the nested push only enqueues; the
    outer drain loop delivers it after the current callback returns.
    """

    def __init__(self, on_update: UpdateHandler, on_error: Optional[ErrorHandler] = None):
        self.on_update = on_update
        self.on_error = on_error
        self._pending: deque = deque()
        self._draining = False
        self.closed = False

    def push(self, item) -> None:
        if self.closed:
            return
        self._pending.append(item)
        if self._draining:
            return
        self._draining = True
        try:
            while self._pending and not self.closed:
                self._deliver(self._pending.popleft())
        finally:
            self._draining = False

    def close(self) -> None:
        self.closed = True
        self._pending.clear()

    def _deliver(self, item) -> None:
        try:
            if isinstance(item, StreamError):
                if self.on_error is None:
                    logger.warning(f"Unhandled stream error: {item}")
                else:
                    self.on_error(item)
            else:
                self.on_update(item)
        except Exception as e:
            logger.error(f"Subscriber raised exception: {e}")


class Subscription:
    """
    Cancellation handle returned by EntityStream.subscribe().

    Calling the handle is the same as calling unsubscribe(), so it can be
    passed anywhere a plain `() -> None` cleanup function is expected.
    """

    def __init__(self, stream: "EntityStream", subscription_id: str):
        self._stream = stream
        self.subscription_id = subscription_id

    @property
    def active(self) -> bool:
        return self._stream.has_subscriber(self.subscription_id)

    def unsubscribe(self) -> bool:
        """Stop deliveries. Returns False if already unsubscribed."""
        return self._stream._remove(self.subscription_id)

    def __call__(self) -> bool:
        return self.unsubscribe()


class EntityStream(Generic[T]):
    """
    Live view of one collection.

    Example usage:
        stream = EntityStream("orders")

        def on_orders(orders):
            print(f"{len(orders)} orders")

        subscription = stream.subscribe(on_orders)
        stream.publish(store.get_orders())   # -> "3 orders"
        subscription.unsubscribe()
    """

    def __init__(self, name: str):
        self.name = name
        self._channels: dict[str, SnapshotChannel] = {}
        self._latest: Optional[tuple] = None

    def subscribe(
        self,
        on_update: UpdateHandler,
        on_error: Optional[ErrorHandler] = None,
    ) -> Subscription:
        """
        Register a subscriber.

        Args:
            on_update: Called with the full snapshot on every change
            on_error: Called with a StreamError when the subscription fails

        Returns:
            Subscription handle used to cancel delivery
        """
        subscription_id = str(uuid4())
        channel = SnapshotChannel(on_update, on_error)
        self._channels[subscription_id] = channel
        logger.debug(f"Subscribed to '{self.name}' ({len(self._channels)} subscribers)")

        if self._latest is not None:
            channel.push(self._latest)

        return Subscription(self, subscription_id)

    def publish(self, items: Sequence[T]) -> int:
        """
        Deliver a full snapshot to every subscriber.

        Returns:
            Number of subscribers the snapshot was delivered to
        """
        snapshot = tuple(items)
        self._latest = snapshot
        logger.info(f"Publishing '{self.name}' snapshot: {len(snapshot)} records")

        channels = list(self._channels.values())
        for channel in channels:
            channel.push(snapshot)
        return len(channels)

    def fail(self, code: str, message: str) -> int:
        """Report a subscription failure to every subscriber's error channel."""
        error = StreamError(code=code, message=message)
        logger.error(f"Stream '{self.name}' failed: {error}")

        channels = list(self._channels.values())
        for channel in channels:
            channel.push(error)
        return len(channels)

    @property
    def latest(self) -> Optional[tuple]:
        """The most recently published snapshot, if any."""
        return self._latest

    def has_subscriber(self, subscription_id: str) -> bool:
        return subscription_id in self._channels

    def get_subscriber_count(self) -> int:
        return len(self._channels)

    def _remove(self, subscription_id: str) -> bool:
        channel = self._channels.pop(subscription_id, None)
        if channel is None:
            return False
        channel.close()
        logger.debug(f"Unsubscribed from '{self.name}'")
        return True
