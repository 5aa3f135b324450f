"""
FastAPI application for the order notification system.

This application provides:
1. Session endpoints that start/stop realtime listening for a user
2. Simulated orders-table endpoints that produce realtime change events
3. Notification, modal, toast and preference endpoints for the UI
4. The image optimization endpoint used by menu uploads

Run with:
    uv run uvicorn api.main:app --reload

Then visit http://localhost:8000/docs for interactive API documentation.
"""

import logging
from contextlib import asynccontextmanager
from dataclasses import asdict
from decimal import Decimal
from typing import Any, Optional

from fastapi import Depends, FastAPI, HTTPException, Request, Response
from pydantic import BaseModel, Field, ValidationError
from starlette.concurrency import run_in_threadpool

from imaging.optimizer import ImageOptimizationError, ImageOptimizer
from notifications.context import NotificationContext
from notifications.presenters import NEW_ORDER, STATUS_CHANGE, NotificationProvider
from notifications.roles import Customer, Owner, Role
from realtime.orders import OrdersTable
from shared.config import configure_logging, get_settings
from shared.data_store import DataStoreError
from shared.formatters import order_detail_route
from shared.models import OrderNotification, OrderStatus, UserAccount, UserPreferences

logger = logging.getLogger("api")


# Request / response models
class SessionRequest(BaseModel):
    user_id: str


class SessionResponse(BaseModel):
    user_id: str
    role: str
    business_id: Optional[str] = None
    customer_id: Optional[str] = None
    listening: bool


class CreateOrderRequest(BaseModel):
    business_id: str
    customer_id: str
    customer_name: str
    total_amount: Decimal = Field(..., ge=0)
    status: OrderStatus = OrderStatus.PENDING
    order_code: Optional[str] = None
    customer_phone: Optional[str] = None
    customer_address: Optional[str] = None
    payment_method: Optional[str] = None
    notes: Optional[str] = None


class UpdateOrderRequest(BaseModel):
    status: Optional[OrderStatus] = None
    customer_name: Optional[str] = None
    total_amount: Optional[Decimal] = Field(default=None, ge=0)
    customer_phone: Optional[str] = None
    customer_address: Optional[str] = None
    payment_method: Optional[str] = None
    notes: Optional[str] = None


class NotificationsResponse(BaseModel):
    notifications: list[OrderNotification]
    count: int
    has_unread: bool


class ReadResponse(BaseModel):
    order_id: str
    redirect: str


class ModalResponse(BaseModel):
    kind: str
    title: str
    description: str
    order_code: str
    status_label: str
    fields: list[tuple[str, str]]
    actions: list[str]


class ToastResponse(BaseModel):
    title: str
    description: str
    duration_ms: int
    variant: str


# Application lifespan
@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the notification context at startup, close it at shutdown."""
    settings = get_settings()
    configure_logging(settings)
    context = NotificationContext(settings)
    app.state.context = context
    app.state.orders = OrdersTable(context.feed)
    app.state.optimizer = ImageOptimizer.from_settings(settings)
    logger.info("Starting order notification API")
    yield
    context.close()
    logger.info("Shutting down")


app = FastAPI(
    title="Order Notifications",
    description="""
    Realtime order notifications for the delivery platform.

    ## Endpoints

    - `/session` - Start or stop listening for a signed-in user
    - `/orders` - Simulated orders table (inserts and updates emit realtime events)
    - `/notifications`, `/modals`, `/toasts` - What the UI renders
    - `/preferences` - Per-user sound/notification preferences
    - `/images/optimize` - Resize and recompress an upload
    """,
    version="1.0.0",
    lifespan=lifespan,
)


def get_context(request: Request) -> NotificationContext:
    return request.app.state.context


def get_orders(request: Request) -> OrdersTable:
    return request.app.state.orders


def get_optimizer(request: Request) -> ImageOptimizer:
    return request.app.state.optimizer


def _session_response(user_id: str, role: Role, listening: bool) -> SessionResponse:
    if isinstance(role, Owner):
        return SessionResponse(user_id=user_id, role="owner", business_id=role.business_id, listening=listening)
    if isinstance(role, Customer):
        return SessionResponse(user_id=user_id, role="customer", customer_id=role.customer_id, listening=listening)
    return SessionResponse(user_id=user_id, role="unknown", listening=listening)


# =============================================================================
# Health Check
# =============================================================================

@app.get("/health", tags=["Health"])
def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "service": "order-notifications"}


# =============================================================================
# Session
# =============================================================================

@app.post("/session", response_model=SessionResponse, tags=["Session"])
def start_session(body: SessionRequest, context: NotificationContext = Depends(get_context)):
    """
    Start listening for a user.

    The role is resolved once (owner, customer or unknown) and the matching
    orders channel is subscribed. Any previous session is stopped first.
    """
    try:
        user = context.data_store.get_user(body.user_id)
    except DataStoreError:
        logger.exception(f"User lookup failed for {body.user_id}")
        user = None
    aggregator = context.start_session(user or UserAccount(id=body.user_id))
    return _session_response(body.user_id, aggregator.role, aggregator.is_active)


@app.delete("/session", tags=["Session"])
def end_session(context: NotificationContext = Depends(get_context)):
    """Stop listening (logout / navigation away)."""
    context.end_session()
    return {"listening": False}


# =============================================================================
# Orders table (simulated backend)
# =============================================================================

@app.post("/orders", status_code=201, tags=["Orders"])
def create_order(body: CreateOrderRequest, orders: OrdersTable = Depends(get_orders)) -> dict[str, Any]:
    """Insert an order row; subscribed sessions receive an INSERT event."""
    columns = body.model_dump(exclude_none=True, mode="json")
    return orders.insert(**columns)


@app.patch("/orders/{order_id}", tags=["Orders"])
def update_order(
    order_id: str,
    body: UpdateOrderRequest,
    orders: OrdersTable = Depends(get_orders),
) -> dict[str, Any]:
    """Update order columns; subscribed sessions receive an UPDATE event."""
    changes = body.model_dump(exclude_none=True, mode="json")
    if not changes:
        raise HTTPException(status_code=400, detail="No changes given")
    row = orders.update(order_id, **changes)
    if row is None:
        raise HTTPException(status_code=404, detail=f"Order not found: {order_id}")
    return row


# =============================================================================
# Notifications
# =============================================================================

@app.get("/notifications", response_model=NotificationsResponse, tags=["Notifications"])
def list_notifications(context: NotificationContext = Depends(get_context)):
    notifications = list(context.store.get_notifications())
    return NotificationsResponse(
        notifications=notifications,
        count=len(notifications),
        has_unread=context.store.has_unread(),
    )


@app.post("/notifications/{order_id}/read", response_model=ReadResponse, tags=["Notifications"])
def mark_as_read(order_id: str, context: NotificationContext = Depends(get_context)):
    """Mark a notification as read and return where the UI should navigate."""
    context.store.remove_notification(order_id)
    return ReadResponse(order_id=order_id, redirect=order_detail_route(order_id))


@app.delete("/notifications", tags=["Notifications"])
def clear_notifications(context: NotificationContext = Depends(get_context)):
    context.store.clear_all()
    return {"count": 0}


# =============================================================================
# Modals and toasts
# =============================================================================

def _provider(context: NotificationContext) -> NotificationProvider:
    if context.aggregator is None:
        raise HTTPException(status_code=409, detail="No active session")
    return context.provider()


@app.get("/modals", tags=["Modals"])
def get_modals(context: NotificationContext = Depends(get_context)) -> dict[str, Optional[ModalResponse]]:
    views = _provider(context).render()
    return {
        kind: ModalResponse(**asdict(view)) if view else None
        for kind, view in views.items()
    }


@app.post("/modals/{kind}/close", tags=["Modals"])
def close_modal(kind: str, context: NotificationContext = Depends(get_context)):
    if kind not in (NEW_ORDER, STATUS_CHANGE):
        raise HTTPException(status_code=404, detail=f"Unknown modal: {kind}")
    _provider(context).close(kind)
    return {"kind": kind, "is_open": False}


@app.get("/toasts", response_model=list[ToastResponse], tags=["Toasts"])
def list_toasts(context: NotificationContext = Depends(get_context)):
    return [
        ToastResponse(title=t.title, description=t.description, duration_ms=t.duration_ms, variant=t.variant)
        for t in context.toaster.toasts
    ]


@app.delete("/toasts", tags=["Toasts"])
def dismiss_toasts(context: NotificationContext = Depends(get_context)):
    context.toaster.dismiss_all()
    return {"count": 0}


# =============================================================================
# Preferences
# =============================================================================

@app.get("/preferences/{user_id}", response_model=UserPreferences, tags=["Preferences"])
def get_preferences(user_id: str, context: NotificationContext = Depends(get_context)):
    try:
        return context.data_store.get_preferences(user_id)
    except DataStoreError:
        logger.exception(f"Could not load preferences for {user_id}")
        return UserPreferences()


@app.patch("/preferences/{user_id}", response_model=UserPreferences, tags=["Preferences"])
def update_preferences(
    user_id: str,
    changes: dict[str, Any],
    context: NotificationContext = Depends(get_context),
):
    """Apply all changes or none of them."""
    try:
        prefs = context.data_store.update_preferences(user_id, changes)
    except KeyError as e:
        raise HTTPException(status_code=400, detail=str(e.args[0]))
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=e.errors(include_url=False))
    except DataStoreError as e:
        raise HTTPException(status_code=503, detail=str(e))
    return prefs


# =============================================================================
# Images
# =============================================================================

@app.post("/images/optimize", tags=["Images"])
async def optimize_image(
    request: Request,
    filename: str = "upload",
    optimizer: ImageOptimizer = Depends(get_optimizer),
):
    """
    Optimize an uploaded image.

    Send the raw file as the request body with its Content-Type. The response
    body is the WebP file; metadata is in the X-* headers.
    """
    data = await request.body()
    content_type = request.headers.get("content-type", "").split(";")[0].strip()
    try:
        result = await run_in_threadpool(optimizer.optimize, data, content_type, filename=filename)
    except ImageOptimizationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return Response(
        content=result.file.data,
        media_type=result.file.content_type,
        headers={
            "Content-Disposition": f'attachment; filename="{result.file.name}"',
            "X-Original-Size": str(result.original_size),
            "X-Final-Size": str(result.final_size),
            "X-Compression-Ratio": f"{result.compression_ratio:.2f}",
            "X-Width": str(result.dimensions.width),
            "X-Height": str(result.dimensions.height),
        },
    )
