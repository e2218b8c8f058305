"""
Push notification client.

Composes push campaigns, works out who receives them from the current
customer list, and delivers them through the push channel.

Audiences:
- all:               every customer we can reach (phone or email on file)
- loyal_customers:   reachable customers holding loyalty points
- recent_customers:  reachable customers who ordered within the active window

Lifecycle: draft -> scheduled -> sent/failed, or straight to sent/failed
when sent immediately. Cancelling a scheduled campaign returns it to draft.
A campaign fails only when it had recipients and none of them received it.
"""

import logging
from datetime import datetime, timedelta
from typing import Optional
from uuid import uuid4

from dashboard.services.base import Clock, CollectionClient, CurrentUser, ServiceError
from dashboard.stats import (
    ACTIVE_WINDOW,
    NotificationStats,
    align_to,
    compute_notification_stats,
    is_active_customer,
)
from restaurant.channels import PushChannel
from restaurant.data_store import NOTIFICATIONS, DataStore
from restaurant.models import (
    Customer,
    Notification,
    NotificationStatus,
    TargetAudience,
)

logger = logging.getLogger("notification_client")


class NotificationClient(CollectionClient):
    """Push campaigns for the current user's restaurant."""

    collection = NOTIFICATIONS
    kind = "Notification"

    def __init__(
        self,
        data_store: DataStore,
        current_user: CurrentUser,
        channel: Optional[PushChannel] = None,
        clock: Clock = datetime.now,
        active_window: timedelta = ACTIVE_WINDOW,
    ):
        super().__init__(data_store, current_user, clock)
        self.channel = channel or PushChannel()
        self.active_window = active_window

    def get_notifications(self) -> list[Notification]:
        return self._list()

    def get_notification(self, notification_id: str) -> Optional[Notification]:
        return self._get(notification_id)

    # =========================================================================
    # Audience
    # =========================================================================

    def resolve_recipients(
        self,
        audience: TargetAudience,
        now: Optional[datetime] = None,
    ) -> list[Customer]:
        """Reachable customers in `audience`."""
        now = self._now(now)
        customers = [
            c for c in self.data_store.get_customers(self.restaurant_id)
            if c.phone or c.email
        ]
        audience = TargetAudience(audience)
        if audience == TargetAudience.LOYAL_CUSTOMERS:
            return [c for c in customers if c.loyalty_points > 0]
        if audience == TargetAudience.RECENT_CUSTOMERS:
            return [c for c in customers if is_active_customer(c, now, self.active_window)]
        return customers

    # =========================================================================
    # Sending
    # =========================================================================

    def send_notification(
        self,
        title: str,
        message: str,
        target_audience: TargetAudience = TargetAudience.ALL,
        now: Optional[datetime] = None,
    ) -> Notification:
        """Create a campaign and deliver it right away."""
        now = self._now(now)
        draft = self._new(title, message, target_audience, now)
        self.data_store.save_notification(draft)
        return self._deliver(draft, now)

    def schedule_notification(
        self,
        title: str,
        message: str,
        scheduled_for: datetime,
        target_audience: TargetAudience = TargetAudience.ALL,
        now: Optional[datetime] = None,
    ) -> Notification:
        """
        Create a campaign to be sent later by dispatch_due().

        The recipient count is an estimate taken now; the final count is
        fixed when the campaign goes out.

        Raises:
            ServiceError: code "invalid-schedule" if scheduled_for isn't in the future
        """
        now = self._now(now)
        if align_to(scheduled_for, now) <= now:
            raise ServiceError("invalid-schedule", "Scheduled time must be in the future")

        notification = self._new(title, message, target_audience, now).model_copy(update={
            "status": NotificationStatus.SCHEDULED.value,
            "scheduled_for": scheduled_for,
            "recipient_count": len(self.resolve_recipients(target_audience, now)),
        })
        self.data_store.save_notification(notification)
        logger.info(f"Notification {notification.id} scheduled for {scheduled_for.isoformat()}")
        return notification

    def cancel_scheduled_notification(self, notification_id: str) -> Notification:
        """
        Return a scheduled campaign to draft.

        Raises:
            ServiceError: code "not-scheduled" if it isn't scheduled
        """
        notification = self._require(notification_id)
        if notification.status != NotificationStatus.SCHEDULED:
            raise ServiceError("not-scheduled", f"Notification {notification_id} is not scheduled")
        updated = self._update(
            notification_id,
            status=NotificationStatus.DRAFT,
            scheduled_for=None,
        )
        logger.info(f"Notification {notification_id} unscheduled")
        return updated

    def dispatch_due(self, now: Optional[datetime] = None) -> list[Notification]:
        """Send every scheduled campaign whose time has come, oldest first."""
        now = self._now(now)
        due = sorted(
            (
                n for n in self._list()
                if n.status == NotificationStatus.SCHEDULED
                and n.scheduled_for is not None
                and align_to(n.scheduled_for, now) <= now
            ),
            key=lambda n: n.scheduled_for.timestamp(),
        )
        if due:
            logger.info(f"Dispatching {len(due)} scheduled notification(s)")
        return [self._deliver(n, now) for n in due]

    def update_metrics(
        self,
        notification_id: str,
        delivered_count: Optional[int] = None,
        opened_count: Optional[int] = None,
        clicked_count: Optional[int] = None,
    ) -> Notification:
        """Record delivery counters reported by the push provider."""
        changes = {
            name: value
            for name, value in (
                ("delivered_count", delivered_count),
                ("opened_count", opened_count),
                ("clicked_count", clicked_count),
            )
            if value is not None
        }
        return self._update(notification_id, **changes)

    def delete_notification(self, notification_id: str) -> None:
        self._delete(notification_id)

    def stats(self, now: Optional[datetime] = None) -> NotificationStats:
        return compute_notification_stats(self._list(), self._now(now))

    # =========================================================================
    # Internals
    # =========================================================================

    def _new(
        self,
        title: str,
        message: str,
        target_audience: TargetAudience,
        now: datetime,
    ) -> Notification:
        return Notification(
            id=f"ntf-{uuid4().hex[:8]}",
            restaurant_id=self.restaurant_id,
            title=title,
            message=message,
            status=NotificationStatus.DRAFT,
            target_audience=target_audience,
            created_at=now,
        )

    def _deliver(self, notification: Notification, now: datetime) -> Notification:
        recipients = self.resolve_recipients(notification.target_audience, now)
        batch = self.channel.send_batch(
            [c.phone or c.email for c in recipients],
            notification.title,
            notification.message,
        )

        failed = batch.attempted > 0 and batch.delivered == 0
        status = NotificationStatus.FAILED if failed else NotificationStatus.SENT
        updated = self._update(
            notification.id,
            status=status,
            recipient_count=batch.attempted,
            delivered_count=batch.delivered,
            opened_count=0,
            clicked_count=0,
            sent_at=now,
        )
        logger.info(
            f"Notification {notification.id} {updated.status}: "
            f"{batch.delivered}/{batch.attempted} delivered"
        )
        return updated
