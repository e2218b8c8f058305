"""
Customer client.

Customers are maintained by the ordering pipeline, so this client is
read-only: listing, searching and summary statistics.
"""

from datetime import datetime, timedelta
from typing import Optional

from dashboard.filters import (
    CUSTOMER_SEARCH_FIELDS,
    ActivityFilter,
    SortField,
    apply_filters,
    filter_customers,
    search_predicate,
)
from dashboard.services.base import Clock, CollectionClient, CurrentUser
from dashboard.stats import ACTIVE_WINDOW, CustomerStats, compute_customer_stats
from restaurant.data_store import CUSTOMERS, DataStore
from restaurant.models import Customer


class CustomerClient(CollectionClient):
    """Customers of the current user's restaurant."""

    collection = CUSTOMERS
    kind = "Customer"

    def __init__(
        self,
        data_store: DataStore,
        current_user: CurrentUser,
        clock: Clock = datetime.now,
        active_window: timedelta = ACTIVE_WINDOW,
    ):
        super().__init__(data_store, current_user, clock)
        self.active_window = active_window

    def get_customers(self) -> list[Customer]:
        return self._list()

    def get_customer(self, customer_id: str) -> Optional[Customer]:
        return self._get(customer_id)

    def search_customers(self, term: str) -> list[Customer]:
        """Match name, email or phone; a blank term returns everyone."""
        return apply_filters(self._list(), [search_predicate(term, CUSTOMER_SEARCH_FIELDS)])

    def stats(self, now: Optional[datetime] = None) -> CustomerStats:
        return compute_customer_stats(self._list(), self._now(now), self.active_window)

    def view(
        self,
        search: str = "",
        activity: ActivityFilter = ActivityFilter.ALL,
        sort: Optional[SortField] = SortField.LAST_ORDER,
        descending: Optional[bool] = None,
        now: Optional[datetime] = None,
    ) -> list[Customer]:
        """Customer list as shown on the customers page (latest order first)."""
        return filter_customers(
            self._list(),
            self._now(now),
            search,
            activity,
            sort,
            descending,
            self.active_window,
        )
