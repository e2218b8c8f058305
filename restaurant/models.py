"""
Domain models for the restaurant dashboard.

These models mirror the documents kept by the restaurant's real-time document
store: orders, reservations, customers, push notifications and the loyalty
stamp cards.

Design decisions:
- Using Pydantic for validation and serialization
- Models are frozen - every record is an immutable snapshot as received
  from the store; changes produce a new record via model_copy()
- Status enums serialize to their plain string values
- Timestamps are datetimes; naive values are treated as local time
"""

from datetime import datetime
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field, ConfigDict


SNAPSHOT_CONFIG = ConfigDict(use_enum_values=True, validate_default=True, frozen=True)


# =============================================================================
# Enums - Status values used across the domain
# =============================================================================

class OrderStatus(str, Enum):
    """Kitchen lifecycle of an order."""
    PENDING = "pending"           # Received, not yet accepted by the kitchen
    PREPARING = "preparing"       # Being cooked
    READY = "ready"               # Waiting for pickup/delivery
    COMPLETED = "completed"       # Handed over and paid
    REJECTED = "rejected"         # Declined by the restaurant


class OrderType(str, Enum):
    DELIVERY = "delivery"
    PICKUP = "pickup"


class ReservationStatus(str, Enum):
    """Lifecycle of a table reservation."""
    PENDING = "pending"
    CONFIRMED = "confirmed"
    SEATED = "seated"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"


class NotificationStatus(str, Enum):
    """Lifecycle of a push notification campaign."""
    DRAFT = "draft"
    SCHEDULED = "scheduled"
    SENT = "sent"
    FAILED = "failed"


class TargetAudience(str, Enum):
    """Which customers a push notification is addressed to."""
    ALL = "all"
    LOYAL_CUSTOMERS = "loyal_customers"
    RECENT_CUSTOMERS = "recent_customers"


class RewardType(str, Enum):
    FREE_ITEM = "free_item"


# =============================================================================
# Identity
# =============================================================================

class User(BaseModel):
    """
    The signed-in restaurant operator.

    Authentication itself happens elsewhere; clients only need to know which
    restaurant the current user manages.
    """
    uid: str
    email: str
    restaurant_id: Optional[str] = None

    model_config = SNAPSHOT_CONFIG


# =============================================================================
# Core Domain Models
# =============================================================================

class OrderItem(BaseModel):
    """A single line of an order."""
    id: str = Field(..., description="Menu item identifier")
    name: str = Field(..., description="Menu item display name")
    price: float = Field(..., ge=0, description="Unit price at time of order")
    quantity: int = Field(..., ge=1, description="Quantity ordered")
    special_instructions: Optional[str] = Field(default=None)

    model_config = SNAPSHOT_CONFIG

    @property
    def line_total(self) -> float:
        return self.price * self.quantity


class Order(BaseModel):
    """
    A customer order as shown on the kitchen board.

    total_price is expected to equal the sum of the line totals; that is the
    ordering front-end's responsibility and is not enforced here.
    """
    id: str = Field(..., description="Unique order identifier")
    restaurant_id: str = Field(..., description="Owning restaurant")
    customer_name: str = Field(..., description="Name given at checkout")
    customer_phone: Optional[str] = Field(default=None)
    items: list[OrderItem] = Field(default_factory=list)
    total_price: float = Field(..., ge=0, description="Order total")
    status: OrderStatus = Field(default=OrderStatus.PENDING)
    order_type: OrderType = Field(default=OrderType.PICKUP)
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)
    estimated_ready_time: Optional[datetime] = Field(default=None)
    notes: Optional[str] = Field(default=None)

    model_config = SNAPSHOT_CONFIG

    def item_count(self) -> int:
        """Total number of units across all lines."""
        return sum(item.quantity for item in self.items)


class Reservation(BaseModel):
    """
    A table reservation.

    `date` carries the day of the reservation; `time` is the requested slot
    as an "HH:MM" string, exactly as entered by staff.
    """
    id: str = Field(..., description="Unique reservation identifier")
    restaurant_id: str = Field(..., description="Owning restaurant")
    customer_name: str
    customer_phone: str
    customer_email: Optional[str] = Field(default=None)
    date: datetime = Field(..., description="Day of the reservation")
    time: str = Field(..., pattern=r"^\d{2}:\d{2}$", description="Time slot, HH:MM")
    party_size: int = Field(..., gt=0)
    table_number: Optional[str] = Field(default=None)
    status: ReservationStatus = Field(default=ReservationStatus.PENDING)
    special_requests: Optional[str] = Field(default=None)
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)

    model_config = SNAPSHOT_CONFIG


class Customer(BaseModel):
    """
    Customer record maintained by the ordering app.

    Order totals and loyalty points are denormalized counters updated by the
    ordering pipeline; the dashboard only reads them.
    """
    id: str = Field(..., description="Unique customer identifier")
    restaurant_id: str = Field(..., description="Owning restaurant")
    name: str
    email: Optional[str] = Field(default=None)
    phone: Optional[str] = Field(default=None)
    total_orders: int = Field(default=0, ge=0)
    total_spent: float = Field(default=0.0, ge=0)
    last_order_date: Optional[datetime] = Field(default=None)
    loyalty_points: int = Field(default=0, ge=0)
    created_at: datetime = Field(default_factory=datetime.now)

    model_config = SNAPSHOT_CONFIG


class Notification(BaseModel):
    """
    A push notification campaign.

    Delivery counters are filled in once the push provider reports back,
    so they stay None until then.
    """
    id: str = Field(..., description="Unique notification identifier")
    restaurant_id: str = Field(..., description="Owning restaurant")
    title: str = Field(..., min_length=1)
    message: str = Field(..., min_length=1)
    status: NotificationStatus = Field(default=NotificationStatus.DRAFT)
    target_audience: TargetAudience = Field(default=TargetAudience.ALL)
    recipient_count: int = Field(default=0, ge=0)
    delivered_count: Optional[int] = Field(default=None, ge=0)
    opened_count: Optional[int] = Field(default=None, ge=0)
    clicked_count: Optional[int] = Field(default=None, ge=0)
    scheduled_for: Optional[datetime] = Field(default=None)
    sent_at: Optional[datetime] = Field(default=None)
    created_at: datetime = Field(default_factory=datetime.now)

    model_config = SNAPSHOT_CONFIG


# =============================================================================
# Loyalty
# =============================================================================

class LoyaltyProgram(BaseModel):
    """
    A restaurant's stamp card: every purchase earns a stamp, and
    `purchases_required` stamps buy one reward.
    """
    id: str = Field(..., description="Unique program identifier")
    restaurant_id: str = Field(..., description="Owning restaurant")
    is_active: bool = Field(default=True)
    purchases_required: int = Field(default=10, ge=1, description="Stamps needed for one reward")
    reward_type: RewardType = Field(default=RewardType.FREE_ITEM)
    reward_value: float = Field(default=0.0, ge=0)
    description: Optional[str] = Field(default="Buy 10 items, get 1 free!")
    terms_and_conditions: Optional[str] = Field(default=None)
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)

    model_config = SNAPSHOT_CONFIG


class CustomerLoyalty(BaseModel):
    """One customer's stamp card at one restaurant."""
    id: str = Field(..., description="Unique loyalty record identifier")
    customer_id: str = Field(..., description="Customer holding the card")
    restaurant_id: str = Field(..., description="Owning restaurant")
    current_stamps: int = Field(default=0, ge=0)
    total_rewards_redeemed: int = Field(default=0, ge=0)
    last_purchase: Optional[datetime] = Field(default=None)
    last_redemption: Optional[datetime] = Field(default=None)
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)

    model_config = SNAPSHOT_CONFIG
