"""
Loyalty client.

Each restaurant runs at most one stamp-card program. Customers collect a
stamp per purchase on their own card and trade `purchases_required`
stamps for a reward.

Cards whose customer no longer exists are kept in the store but left out
of the member list and the stats.
"""

import logging
from datetime import datetime, timedelta
from typing import Callable, Optional
from uuid import uuid4

from dashboard.services.base import (
    Clock,
    CollectionClient,
    CurrentUser,
    NotFoundError,
    ServiceError,
)
from dashboard.stats import ACTIVE_WINDOW, LoyaltyStats, compute_loyalty_stats
from restaurant.data_store import CUSTOMER_LOYALTY, LOYALTY_PROGRAMS, DataStore
from restaurant.entity_stream import ErrorHandler, Subscription
from restaurant.models import CustomerLoyalty, LoyaltyProgram

logger = logging.getLogger("loyalty_client")

PROGRAM_FIELDS = {
    "is_active",
    "purchases_required",
    "reward_type",
    "reward_value",
    "description",
    "terms_and_conditions",
}


class LoyaltyClient(CollectionClient):
    """Stamp cards and the loyalty program of the current user's restaurant."""

    collection = CUSTOMER_LOYALTY
    kind = "Loyalty member"

    def __init__(
        self,
        data_store: DataStore,
        current_user: CurrentUser,
        clock: Clock = datetime.now,
        active_window: timedelta = ACTIVE_WINDOW,
    ):
        super().__init__(data_store, current_user, clock)
        self.active_window = active_window

    # =========================================================================
    # Program
    # =========================================================================

    def get_program(self) -> Optional[LoyaltyProgram]:
        programs = self.data_store.get_loyalty_programs(self.restaurant_id)
        return programs[0] if programs else None

    def subscribe_program(
        self,
        on_update: Callable[[Optional[LoyaltyProgram]], None],
        on_error: Optional[ErrorHandler] = None,
    ) -> Subscription:
        """Receive the program (or None) now and after every change."""
        restaurant_id = self.restaurant_id

        def deliver(snapshot: tuple) -> None:
            programs = [p for p in snapshot if p.restaurant_id == restaurant_id]
            on_update(programs[0] if programs else None)

        return self.data_store.stream(LOYALTY_PROGRAMS).subscribe(deliver, on_error)

    def update_program(self, **changes) -> LoyaltyProgram:
        """
        Change the program settings, creating the program on first use.

        Raises:
            ServiceError: code "invalid-field" for anything but a program setting
        """
        unknown = set(changes) - PROGRAM_FIELDS
        if unknown:
            raise ServiceError("invalid-field", f"Cannot update {', '.join(sorted(unknown))}")

        now = self._now()
        program = self.get_program()
        if program is None:
            program = LoyaltyProgram(
                id=f"lp-{uuid4().hex[:8]}",
                restaurant_id=self.restaurant_id,
                created_at=now,
                updated_at=now,
                **changes,
            )
            self.data_store.save_loyalty_program(program)
            logger.info(f"Loyalty program created: {program.id}")
            return program

        updated = self.data_store.update(LOYALTY_PROGRAMS, program.id, updated_at=now, **changes)
        logger.info(f"Loyalty program updated: {', '.join(sorted(changes)) or 'no changes'}")
        return updated

    # =========================================================================
    # Members
    # =========================================================================

    def get_members(self) -> list[CustomerLoyalty]:
        """Cards held by existing customers, newest first."""
        customer_ids = {c.id for c in self.data_store.get_customers(self.restaurant_id)}
        return [r for r in self._list() if r.customer_id in customer_ids]

    def get_member(self, customer_id: str) -> Optional[CustomerLoyalty]:
        for record in self._list():
            if record.customer_id == customer_id:
                return record
        return None

    def create_customer_loyalty(self, customer_id: str) -> CustomerLoyalty:
        """
        Give a customer an empty stamp card.

        Raises:
            NotFoundError: the customer doesn't exist
            ServiceError: code "conflict" if the customer already has a card
        """
        customer = self.data_store.get_customer(customer_id)
        if customer is None or customer.restaurant_id != self.restaurant_id:
            raise NotFoundError("Customer", customer_id)
        if self.get_member(customer_id) is not None:
            raise ServiceError("conflict", f"Customer {customer_id} already has a loyalty card")

        now = self._now()
        record = CustomerLoyalty(
            id=f"loy-{uuid4().hex[:8]}",
            customer_id=customer_id,
            restaurant_id=self.restaurant_id,
            created_at=now,
            updated_at=now,
        )
        self.data_store.save_customer_loyalty(record)
        logger.info(f"Loyalty card created for {customer_id}")
        return record

    def add_stamps(self, customer_id: str, stamps: int) -> CustomerLoyalty:
        """
        Record a purchase worth `stamps` stamps, enrolling the customer if needed.

        Raises:
            ServiceError: code "invalid-field" if stamps is less than 1
        """
        if stamps < 1:
            raise ServiceError("invalid-field", "Stamps must be a positive number")

        record = self.get_member(customer_id) or self.create_customer_loyalty(customer_id)
        now = self._now()
        updated = self._update(
            record.id,
            current_stamps=record.current_stamps + stamps,
            last_purchase=now,
            updated_at=now,
        )
        logger.info(f"{stamps} stamp(s) added for {customer_id}: {updated.current_stamps} total")
        return updated

    def redeem_reward(self, customer_id: str) -> CustomerLoyalty:
        """
        Trade a full card for one reward.

        Raises:
            ServiceError: code "no-program" without a program,
                          code "insufficient-stamps" if the card isn't full
            NotFoundError: the customer has no card
        """
        program = self.get_program()
        if program is None:
            raise ServiceError("no-program", "No loyalty program configured")
        record = self.get_member(customer_id)
        if record is None:
            raise NotFoundError(self.kind, customer_id)
        if record.current_stamps < program.purchases_required:
            raise ServiceError(
                "insufficient-stamps",
                f"{record.current_stamps} of {program.purchases_required} stamps collected",
            )

        now = self._now()
        updated = self._update(
            record.id,
            current_stamps=record.current_stamps - program.purchases_required,
            total_rewards_redeemed=record.total_rewards_redeemed + 1,
            last_redemption=now,
            updated_at=now,
        )
        logger.info(f"Reward redeemed for {customer_id}")
        return updated

    def stats(self, now: Optional[datetime] = None) -> LoyaltyStats:
        return compute_loyalty_stats(
            self.get_members(),
            self.get_program(),
            self._now(now),
            self.data_store.get_customers(self.restaurant_id),
            self.active_window,
        )
