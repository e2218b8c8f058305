"""
Client objects for the dashboard's collections.

Each client is constructed with a DataStore and a current-user accessor
and only ever sees the current user's restaurant.
"""

from dashboard.services.base import CollectionClient, NotFoundError, ServiceError
from dashboard.services.clients import Clients
from dashboard.services.customers import CustomerClient
from dashboard.services.loyalty import LoyaltyClient
from dashboard.services.notifications import NotificationClient
from dashboard.services.orders import OrderClient
from dashboard.services.reservations import ReservationClient, find_conflicts

__all__ = [
    "Clients",
    "CollectionClient",
    "NotFoundError",
    "ServiceError",
    "CustomerClient",
    "LoyaltyClient",
    "NotificationClient",
    "OrderClient",
    "ReservationClient",
    "find_conflicts",
]
