"""
Filtering and sorting for the dashboard's list views.

A view is built in two steps: keep the records that pass every active
predicate, then sort what's left. Sorting never decides membership, and
the source snapshot is never modified - every call returns a new list.

Design decisions:
- Predicates are plain callables so pages can combine whichever ones apply
- The sentinel "all" disables a filter
- Sorts are stable; records missing the sort key go last whatever the
  direction, in their original order
"""

from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Callable, Iterable, Optional, Sequence, Union

from dashboard.stats import ACTIVE_WINDOW, align_to, is_active_customer, is_same_day

ALL = "all"

Predicate = Callable[[Any], bool]


class DateBucket(str, Enum):
    """Reservation date filter."""
    TODAY = "today"
    UPCOMING = "upcoming"
    PAST = "past"
    ALL = ALL


class ActivityFilter(str, Enum):
    """Customer list filter."""
    ACTIVE = "active"
    INACTIVE = "inactive"
    LOYAL = "loyal"
    ALL = ALL


class SortField(str, Enum):
    NAME = "name"
    TOTAL_ORDERS = "total_orders"
    TOTAL_SPENT = "total_spent"
    TOTAL_PRICE = "total_price"
    LAST_ORDER = "last_order"
    DATE = "date"
    CREATED_AT = "created_at"


# Attributes tried in turn to read a sort key off a record
SORT_ATTRIBUTES: dict[SortField, tuple[str, ...]] = {
    SortField.NAME: ("name", "customer_name"),
    SortField.TOTAL_ORDERS: ("total_orders",),
    SortField.TOTAL_SPENT: ("total_spent",),
    SortField.TOTAL_PRICE: ("total_price",),
    SortField.LAST_ORDER: ("last_order_date",),
    SortField.DATE: ("date",),
    SortField.CREATED_AT: ("created_at",),
}

DEFAULT_DESCENDING: dict[SortField, bool] = {
    SortField.NAME: False,
    SortField.TOTAL_ORDERS: True,
    SortField.TOTAL_SPENT: True,
    SortField.TOTAL_PRICE: True,
    SortField.LAST_ORDER: True,
    SortField.DATE: False,
    SortField.CREATED_AT: False,
}

ORDER_SEARCH_FIELDS = ("customer_name", "customer_phone")
RESERVATION_SEARCH_FIELDS = ("customer_name", "customer_phone")
CUSTOMER_SEARCH_FIELDS = ("name", "email", "phone")


# =============================================================================
# Predicates
# =============================================================================

def matches_search(record: Any, term: str, fields: Sequence[str]) -> bool:
    """
    Case-insensitive substring match against any of `fields`.

    A blank term matches everything; missing or empty fields never match.
    """
    needle = term.strip().casefold()
    if not needle:
        return True
    for name in fields:
        value = getattr(record, name, None)
        if value and needle in str(value).casefold():
            return True
    return False


def matches_status(record: Any, status: str) -> bool:
    return status == ALL or record.status == status


def matches_date_bucket(record: Any, bucket: Union[DateBucket, str], now: datetime) -> bool:
    bucket = DateBucket(bucket)
    if bucket == DateBucket.ALL:
        return True
    if bucket == DateBucket.TODAY:
        return is_same_day(record.date, now)
    if bucket == DateBucket.UPCOMING:
        return align_to(record.date, now) >= now
    return align_to(record.date, now) < now


def matches_activity(
    customer: Any,
    activity: Union[ActivityFilter, str],
    now: datetime,
    window: timedelta = ACTIVE_WINDOW,
) -> bool:
    """
    Customer activity filter.

    INACTIVE is the complement of ACTIVE, so customers who never ordered
    are inactive.
    """
    activity = ActivityFilter(activity)
    if activity == ActivityFilter.ALL:
        return True
    if activity == ActivityFilter.LOYAL:
        return customer.loyalty_points > 0
    active = is_active_customer(customer, now, window)
    return active if activity == ActivityFilter.ACTIVE else not active


def search_predicate(term: str, fields: Sequence[str]) -> Predicate:
    return lambda record: matches_search(record, term, fields)


def status_predicate(status: str) -> Predicate:
    return lambda record: matches_status(record, status)


def date_bucket_predicate(bucket: Union[DateBucket, str], now: datetime) -> Predicate:
    bucket = DateBucket(bucket)
    return lambda record: matches_date_bucket(record, bucket, now)


def activity_predicate(
    activity: Union[ActivityFilter, str],
    now: datetime,
    window: timedelta = ACTIVE_WINDOW,
) -> Predicate:
    activity = ActivityFilter(activity)
    return lambda customer: matches_activity(customer, activity, now, window)


# =============================================================================
# Sorting
# =============================================================================

def _sort_key(record: Any, field: SortField) -> Optional[Any]:
    """Comparable key for `record`, or None if it has no value for `field`."""
    for name in SORT_ATTRIBUTES[field]:
        value = getattr(record, name, None)
        if value is None:
            continue
        if isinstance(value, str):
            return value.casefold()
        if isinstance(value, datetime):
            # timestamps compare across naive/aware values
            if field == SortField.DATE and getattr(record, "time", None):
                return (value.timestamp(), record.time)
            return value.timestamp()
        return value
    return None


def sort_records(
    records: Iterable[Any],
    field: Union[SortField, str],
    descending: Optional[bool] = None,
) -> list:
    """
    Stable sort by a named field.

    Args:
        records: Records to sort (not modified)
        field: One of SortField
        descending: Direction; defaults per field (newest/largest first for
                    last_order and the numeric fields, A-Z for names,
                    oldest first for date and created_at)

    Returns:
        New list with records missing the key appended last
    """
    field = SortField(field)
    if descending is None:
        descending = DEFAULT_DESCENDING[field]

    keyed = []
    missing = []
    for record in records:
        key = _sort_key(record, field)
        if key is None:
            missing.append(record)
        else:
            keyed.append((key, record))

    keyed.sort(key=lambda entry: entry[0], reverse=descending)
    return [record for _, record in keyed] + missing


# =============================================================================
# Views
# =============================================================================

def apply_filters(records: Iterable[Any], predicates: Sequence[Predicate] = ()) -> list:
    """Keep records passing every predicate, in input order."""
    return [r for r in records if all(p(r) for p in predicates)]


def build_view(
    records: Iterable[Any],
    predicates: Sequence[Predicate] = (),
    sort: Optional[Union[SortField, str]] = None,
    descending: Optional[bool] = None,
) -> list:
    """Filter, then optionally sort."""
    view = apply_filters(records, predicates)
    if sort is None:
        return view
    return sort_records(view, sort, descending)


def filter_orders(
    orders: Iterable[Any],
    search: str = "",
    status: str = ALL,
    sort: Optional[Union[SortField, str]] = None,
    descending: Optional[bool] = None,
) -> list:
    predicates = [
        search_predicate(search, ORDER_SEARCH_FIELDS),
        status_predicate(status),
    ]
    return build_view(orders, predicates, sort, descending)


def filter_reservations(
    reservations: Iterable[Any],
    now: datetime,
    search: str = "",
    status: str = ALL,
    date_bucket: Union[DateBucket, str] = DateBucket.ALL,
    sort: Optional[Union[SortField, str]] = None,
    descending: Optional[bool] = None,
) -> list:
    predicates = [
        search_predicate(search, RESERVATION_SEARCH_FIELDS),
        status_predicate(status),
        date_bucket_predicate(date_bucket, now),
    ]
    return build_view(reservations, predicates, sort, descending)


def filter_customers(
    customers: Iterable[Any],
    now: datetime,
    search: str = "",
    activity: Union[ActivityFilter, str] = ActivityFilter.ALL,
    sort: Optional[Union[SortField, str]] = None,
    descending: Optional[bool] = None,
    window: timedelta = ACTIVE_WINDOW,
) -> list:
    predicates = [
        search_predicate(search, CUSTOMER_SEARCH_FIELDS),
        activity_predicate(activity, now, window),
    ]
    return build_view(customers, predicates, sort, descending)


def group_by_status(records: Iterable[Any], statuses: Iterable[Any]) -> dict[str, list]:
    """
    Bucket records by status for board views.

    Buckets come back in the order of `statuses`; statuses with no records
    get an empty list. Records with an unlisted status are dropped.
    """
    groups: dict[str, list] = {getattr(s, "value", s): [] for s in statuses}
    for record in records:
        bucket = groups.get(record.status)
        if bucket is not None:
            bucket.append(record)
    return groups
