"""
Shared infrastructure for the restaurant dashboard.

This package contains the pieces every dashboard feature builds on:
- Domain models (Order, Reservation, Customer, Notification)
- Live snapshot streams for each collection
- JSON-backed document store
- Settings and the mock push channel
"""

from restaurant.models import (
    Customer,
    Notification,
    Order,
    OrderItem,
    Reservation,
    User,
)
from restaurant.entity_stream import EntityStream, StreamError, Subscription
from restaurant.data_store import DataStore
from restaurant.channels import BatchResult, PushChannel, PushResult
from restaurant.config import Settings

__all__ = [
    "Customer",
    "Notification",
    "Order",
    "OrderItem",
    "Reservation",
    "User",
    "EntityStream",
    "StreamError",
    "Subscription",
    "DataStore",
    "BatchResult",
    "PushChannel",
    "PushResult",
    "Settings",
]
