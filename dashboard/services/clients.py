"""
Wiring for the full set of clients.

Entry points (the API, the CLI) build one Clients bundle from Settings and
hand it to whatever needs it.
"""

from datetime import timedelta
from typing import Optional

from dashboard.services.customers import CustomerClient
from dashboard.services.loyalty import LoyaltyClient
from dashboard.services.notifications import NotificationClient
from dashboard.services.orders import OrderClient
from dashboard.services.reservations import ReservationClient
from restaurant.channels import PushChannel
from restaurant.config import Settings
from restaurant.data_store import DataStore
from restaurant.models import User


class Clients:
    """Every client, sharing one store, one push channel and one signed-in user."""

    def __init__(
        self,
        settings: Settings,
        data_store: Optional[DataStore] = None,
        channel: Optional[PushChannel] = None,
    ):
        self.settings = settings
        self.data_store = data_store or DataStore(data_dir=settings.data_dir)
        self.channel = channel or PushChannel(fail_rate=settings.push_fail_rate)
        self.user = User(
            uid=f"owner-{settings.restaurant_id}",
            email=settings.user_email,
            restaurant_id=settings.restaurant_id,
        )
        window = timedelta(days=settings.active_window_days)

        self.orders = OrderClient(self.data_store, self.current_user)
        self.reservations = ReservationClient(self.data_store, self.current_user)
        self.customers = CustomerClient(self.data_store, self.current_user, active_window=window)
        self.loyalty = LoyaltyClient(self.data_store, self.current_user, active_window=window)
        self.notifications = NotificationClient(
            self.data_store, self.current_user, channel=self.channel, active_window=window
        )

    def current_user(self) -> User:
        return self.user
