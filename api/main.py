"""
FastAPI application for the restaurant dashboard.

This application provides:
1. Read endpoints for every dashboard page (lists with filters, stats cards)
2. The dashboard home page metrics (/dashboard/metrics)
3. The few writes the dashboard performs: order status changes, reservation
   conflict checks, push notification sends, loyalty stamps and rewards

Run with:
    uv run uvicorn api.main:app --reload

Then visit http://localhost:8000/docs for interactive API documentation.

Every read accepts an optional `now` so a client (or a test) can ask
"what did the dashboard look like at this moment".
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException, Request
from pydantic import BaseModel, Field

from dashboard.filters import ALL, ActivityFilter, DateBucket, SortField
from dashboard.metrics import DashboardMetrics, compute_dashboard_metrics
from dashboard.services import Clients, NotFoundError, ServiceError
from dashboard.stats import (
    CustomerStats,
    LoyaltyStats,
    NotificationStats,
    OrderStats,
    ReservationStats,
)
from restaurant.channels import PushChannel
from restaurant.config import Settings
from restaurant.data_store import DataStore
from restaurant.models import (
    Customer,
    CustomerLoyalty,
    LoyaltyProgram,
    Notification,
    Order,
    OrderStatus,
    Reservation,
    RewardType,
    TargetAudience,
)

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(name)-24s | %(levelname)-5s | %(message)s",
    datefmt="%H:%M:%S",
)

logger = logging.getLogger("api")


# Request/response models
class OrderStatusUpdate(BaseModel):
    status: OrderStatus
    estimated_ready_time: Optional[datetime] = None


class ConflictCheck(BaseModel):
    date: datetime
    time: str = Field(..., pattern=r"^\d{2}:\d{2}$")
    table_number: Optional[str] = None
    exclude_id: Optional[str] = None


class ConflictResult(BaseModel):
    conflict: bool


class NotificationRequest(BaseModel):
    """Send now, or schedule when scheduled_for is given."""
    title: str = Field(..., min_length=1)
    message: str = Field(..., min_length=1)
    target_audience: TargetAudience = TargetAudience.ALL
    scheduled_for: Optional[datetime] = None


class ProgramUpdate(BaseModel):
    is_active: Optional[bool] = None
    purchases_required: Optional[int] = Field(default=None, ge=1)
    reward_type: Optional[RewardType] = None
    reward_value: Optional[float] = Field(default=None, ge=0)
    description: Optional[str] = None
    terms_and_conditions: Optional[str] = None


class StampRequest(BaseModel):
    stamps: int = Field(default=1, ge=1)


def get_clients(request: Request) -> Clients:
    return request.app.state.clients


def _now(now: Optional[datetime]) -> datetime:
    return now if now is not None else datetime.now()


def _raise_http(error: ServiceError) -> None:
    status_code = 404 if isinstance(error, NotFoundError) else 400
    raise HTTPException(status_code=status_code, detail={"code": error.code, "message": error.message})


def create_app(
    settings: Optional[Settings] = None,
    data_store: Optional[DataStore] = None,
    channel: Optional[PushChannel] = None,
) -> FastAPI:
    """
    Build the application.

    Args:
        settings: Defaults to Settings.from_env()
        data_store: Defaults to a store over settings.data_dir
        channel: Defaults to a PushChannel with settings.push_fail_rate
    """
    settings = settings or Settings.from_env()
    clients = Clients(settings, data_store, channel)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application startup and shutdown."""
        logger.info(f"Starting dashboard API for restaurant {settings.restaurant_id}")
        yield
        logger.info("Shutting down")

    app = FastAPI(
        title="Restaurant Dashboard",
        description="""
        Back office API for the restaurant admin panel.

        ## Endpoints

        - `/orders`, `/reservations`, `/customers`, `/notifications` - filtered lists
        - `/loyalty` - stamp-card program and members
        - `/<collection>/stats` - summary cards
        - `/dashboard/metrics` - dashboard home page numbers
        """,
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.clients = clients

    # =========================================================================
    # Health Check
    # =========================================================================

    @app.get("/health", tags=["Health"])
    def health_check():
        """Health check endpoint."""
        return {"status": "healthy", "service": "restaurant-dashboard"}

    # =========================================================================
    # Dashboard
    # =========================================================================

    @app.get("/dashboard/metrics", response_model=DashboardMetrics, tags=["Dashboard"])
    def dashboard_metrics(now: Optional[datetime] = None, clients: Clients = Depends(get_clients)):
        return compute_dashboard_metrics(
            clients.orders.get_orders(),
            clients.reservations.get_reservations(),
            _now(now),
            clients.settings.popular_items_limit,
            clients.settings.recent_activity_limit,
        )

    # =========================================================================
    # Orders
    # =========================================================================

    @app.get("/orders", response_model=list[Order], tags=["Orders"])
    def list_orders(
        search: str = "",
        status: str = ALL,
        sort: Optional[SortField] = None,
        descending: Optional[bool] = None,
        clients: Clients = Depends(get_clients),
    ):
        return clients.orders.view(search, status, sort, descending)

    @app.get("/orders/stats", response_model=OrderStats, tags=["Orders"])
    def order_stats(now: Optional[datetime] = None, clients: Clients = Depends(get_clients)):
        return clients.orders.stats(_now(now))

    @app.get("/orders/{order_id}", response_model=Order, tags=["Orders"])
    def get_order(order_id: str, clients: Clients = Depends(get_clients)):
        order = clients.orders.get_order(order_id)
        if order is None:
            _raise_http(NotFoundError("Order", order_id))
        return order

    @app.patch("/orders/{order_id}/status", response_model=Order, tags=["Orders"])
    def update_order_status(
        order_id: str,
        update: OrderStatusUpdate,
        clients: Clients = Depends(get_clients),
    ):
        try:
            return clients.orders.update_order_status(
                order_id, update.status, update.estimated_ready_time
            )
        except ServiceError as e:
            _raise_http(e)

    # =========================================================================
    # Reservations
    # =========================================================================

    @app.get("/reservations", response_model=list[Reservation], tags=["Reservations"])
    def list_reservations(
        search: str = "",
        status: str = ALL,
        date_filter: DateBucket = DateBucket.ALL,
        sort: Optional[SortField] = None,
        descending: Optional[bool] = None,
        now: Optional[datetime] = None,
        clients: Clients = Depends(get_clients),
    ):
        return clients.reservations.view(search, status, date_filter, sort, descending, _now(now))

    @app.get("/reservations/stats", response_model=ReservationStats, tags=["Reservations"])
    def reservation_stats(now: Optional[datetime] = None, clients: Clients = Depends(get_clients)):
        return clients.reservations.stats(_now(now))

    @app.post("/reservations/conflicts", response_model=ConflictResult, tags=["Reservations"])
    def check_conflict(check: ConflictCheck, clients: Clients = Depends(get_clients)):
        conflict = clients.reservations.check_conflict(
            check.date, check.time, check.table_number, check.exclude_id
        )
        return ConflictResult(conflict=conflict)

    # =========================================================================
    # Customers
    # =========================================================================

    @app.get("/customers", response_model=list[Customer], tags=["Customers"])
    def list_customers(
        search: str = "",
        activity: ActivityFilter = ActivityFilter.ALL,
        sort: SortField = SortField.LAST_ORDER,
        descending: Optional[bool] = None,
        now: Optional[datetime] = None,
        clients: Clients = Depends(get_clients),
    ):
        return clients.customers.view(search, activity, sort, descending, _now(now))

    @app.get("/customers/stats", response_model=CustomerStats, tags=["Customers"])
    def customer_stats(now: Optional[datetime] = None, clients: Clients = Depends(get_clients)):
        return clients.customers.stats(_now(now))

    # =========================================================================
    # Notifications
    # =========================================================================

    @app.get("/notifications", response_model=list[Notification], tags=["Notifications"])
    def list_notifications(clients: Clients = Depends(get_clients)):
        return clients.notifications.get_notifications()

    @app.get("/notifications/stats", response_model=NotificationStats, tags=["Notifications"])
    def notification_stats(now: Optional[datetime] = None, clients: Clients = Depends(get_clients)):
        return clients.notifications.stats(_now(now))

    @app.post("/notifications", response_model=Notification, tags=["Notifications"])
    def create_notification(
        request: NotificationRequest,
        now: Optional[datetime] = None,
        clients: Clients = Depends(get_clients),
    ):
        try:
            if request.scheduled_for is not None:
                return clients.notifications.schedule_notification(
                    request.title,
                    request.message,
                    request.scheduled_for,
                    request.target_audience,
                    now=_now(now),
                )
            return clients.notifications.send_notification(
                request.title, request.message, request.target_audience, now=_now(now)
            )
        except ServiceError as e:
            _raise_http(e)

    # =========================================================================
    # Loyalty
    # =========================================================================

    @app.get("/loyalty/program", response_model=LoyaltyProgram, tags=["Loyalty"])
    def get_loyalty_program(clients: Clients = Depends(get_clients)):
        program = clients.loyalty.get_program()
        if program is None:
            _raise_http(NotFoundError("Loyalty program", clients.settings.restaurant_id))
        return program

    @app.put("/loyalty/program", response_model=LoyaltyProgram, tags=["Loyalty"])
    def update_loyalty_program(update: ProgramUpdate, clients: Clients = Depends(get_clients)):
        return clients.loyalty.update_program(**update.model_dump(exclude_unset=True, exclude_none=True))

    @app.get("/loyalty/members", response_model=list[CustomerLoyalty], tags=["Loyalty"])
    def list_loyalty_members(clients: Clients = Depends(get_clients)):
        return clients.loyalty.get_members()

    @app.get("/loyalty/stats", response_model=LoyaltyStats, tags=["Loyalty"])
    def loyalty_stats(now: Optional[datetime] = None, clients: Clients = Depends(get_clients)):
        return clients.loyalty.stats(_now(now))

    @app.post("/loyalty/members/{customer_id}/stamps", response_model=CustomerLoyalty, tags=["Loyalty"])
    def add_stamps(customer_id: str, request: StampRequest, clients: Clients = Depends(get_clients)):
        try:
            return clients.loyalty.add_stamps(customer_id, request.stamps)
        except ServiceError as e:
            _raise_http(e)

    @app.post("/loyalty/members/{customer_id}/redeem", response_model=CustomerLoyalty, tags=["Loyalty"])
    def redeem_reward(customer_id: str, clients: Clients = Depends(get_clients)):
        try:
            return clients.loyalty.redeem_reward(customer_id)
        except ServiceError as e:
            _raise_http(e)

    return app


app = create_app()
