"""
Restaurant dashboard core.

- stats:    pure aggregations over a snapshot (counts, revenue, top items)
- filters:  filtered and sorted list views
- metrics:  dashboard home page numbers and the live feed that keeps them current
- services: per-collection clients wired to the data store
"""

from dashboard.stats import (
    compute_customer_stats,
    compute_notification_stats,
    compute_order_stats,
    compute_popular_items,
    compute_reservation_stats,
)
from dashboard.filters import build_view, sort_records
from dashboard.metrics import DashboardMetrics, LiveDashboard, compute_dashboard_metrics

__all__ = [
    "compute_customer_stats",
    "compute_notification_stats",
    "compute_order_stats",
    "compute_popular_items",
    "compute_reservation_stats",
    "build_view",
    "sort_records",
    "DashboardMetrics",
    "LiveDashboard",
    "compute_dashboard_metrics",
]
