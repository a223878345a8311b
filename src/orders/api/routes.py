"""FastAPI routes for the Orders domain — orders, tracking, service orders and stock."""

from dataclasses import asdict
from datetime import date

from fastapi import APIRouter, Header, HTTPException, Request
from fastapi.responses import JSONResponse

from orders.api.schemas import (
    AdjustProductStockRequest,
    CancelOrderRequest,
    CreateOrderRequest,
    OrderListResponse,
    RegisterProductStockRequest,
    TrackingEventRequest,
    TrackingOutcomeResponse,
    UpdateOrderStatusRequest,
    UpdatePaymentStatusRequest,
    UpdateServiceOrderStatusRequest,
)
from orders.carrier import get_carrier
from orders.domain import orders
from orders.exceptions import ConflictError
from orders.lifecycle import OrderLifecycle

lifecycle = OrderLifecycle(orders)


def conflict_error_handler(_request: Request, exc: ConflictError) -> JSONResponse:
    return JSONResponse(status_code=409, content={"error": str(exc)})


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.post("", status_code=201)
async def create_order(body: CreateOrderRequest) -> dict:
    return lifecycle.create_order(
        buyer_id=body.buyer_id,
        seller_id=body.seller_id,
        order_type=body.order_type,
        items=[item.model_dump() for item in body.items],
        quote_id=body.quote_id,
        delivery_address=body.delivery_address,
        billing_address=body.billing_address,
        notes=body.notes,
        estimated_delivery=body.estimated_delivery,
        created_by=body.created_by,
    )


@order_router.get("", response_model=OrderListResponse)
async def list_orders(
    buyer_id: str | None = None,
    seller_id: str | None = None,
    status: str | None = None,
    payment_status: str | None = None,
    order_type: str | None = None,
    date_from: date | None = None,
    date_to: date | None = None,
    page: int = 1,
    limit: int = 10,
) -> dict:
    return lifecycle.get_orders(
        page=page,
        limit=limit,
        buyer_id=buyer_id,
        seller_id=seller_id,
        status=status,
        payment_status=payment_status,
        order_type=order_type,
        date_from=date_from,
        date_to=date_to,
    )


@order_router.get("/analytics")
async def order_analytics(
    seller_id: str | None = None,
    date_from: date | None = None,
    date_to: date | None = None,
) -> dict:
    return lifecycle.get_order_analytics(seller_id=seller_id, date_from=date_from, date_to=date_to)


@order_router.get("/number/{order_number}")
async def get_order_by_number(order_number: str) -> dict:
    return lifecycle.get_order_by_number(order_number)


@order_router.get("/{order_id}")
async def get_order(order_id: str) -> dict:
    return lifecycle.get_order_by_id(order_id)


@order_router.put("/{order_id}/status")
async def update_order_status(order_id: str, body: UpdateOrderStatusRequest) -> dict:
    return lifecycle.update_order_status(
        order_id,
        body.status,
        notes=body.notes,
        updated_by=body.updated_by,
        expected_revision=body.expected_revision,
    )


@order_router.put("/{order_id}/payment-status")
async def update_payment_status(order_id: str, body: UpdatePaymentStatusRequest) -> dict:
    """Payment collaborator callback."""
    return lifecycle.update_payment_status(
        order_id,
        body.payment_status,
        updated_by=body.updated_by,
        expected_revision=body.expected_revision,
    )


@order_router.put("/{order_id}/cancel")
async def cancel_order(order_id: str, body: CancelOrderRequest) -> dict:
    return lifecycle.cancel_order(
        order_id,
        reason=body.reason,
        cancelled_by=body.cancelled_by,
        expected_revision=body.expected_revision,
    )


@order_router.post("/{order_id}/tracking", response_model=TrackingOutcomeResponse)
async def add_tracking_event(
    order_id: str,
    body: TrackingEventRequest,
    request: Request,
    x_carrier_signature: str = Header(default=""),
) -> TrackingOutcomeResponse:
    """Carrier tracking webhook. The signature covers the body bytes as sent."""
    carrier = get_carrier()
    raw_body = (await request.body()).decode("utf-8")
    if not carrier.verify_webhook_signature(raw_body, x_carrier_signature):
        raise HTTPException(status_code=401, detail="Invalid carrier webhook signature")

    outcome = lifecycle.add_tracking_event(order_id, **body.model_dump())
    return TrackingOutcomeResponse(order=outcome.order, cascade=asdict(outcome.cascade))


@order_router.get("/{order_id}/tracking")
async def get_tracking(order_id: str) -> dict:
    return lifecycle.get_tracking(order_id)


@order_router.get("/{order_id}/service-orders")
async def list_service_orders(order_id: str) -> list[dict]:
    return lifecycle.get_service_orders(order_id)


# ---------------------------------------------------------------------------
# Service Order Router
# ---------------------------------------------------------------------------
service_order_router = APIRouter(prefix="/service-orders", tags=["service-orders"])


@service_order_router.put("/{service_order_id}/status")
async def update_service_order_status(service_order_id: str, body: UpdateServiceOrderStatusRequest) -> dict:
    """Appointment collaborator callback."""
    return lifecycle.update_service_order_status(
        service_order_id,
        body.status,
        scheduled_date=body.scheduled_date,
        provider_notes=body.provider_notes,
        customer_notes=body.customer_notes,
        updated_by=body.updated_by,
    )


# ---------------------------------------------------------------------------
# Inventory Router
# ---------------------------------------------------------------------------
inventory_router = APIRouter(prefix="/inventory", tags=["inventory"])


@inventory_router.post("/products", status_code=201)
async def register_product_stock(body: RegisterProductStockRequest) -> dict:
    """Catalogue collaborator: start tracking stock for a product."""
    return lifecycle.register_product_stock(body.product_id, stock_quantity=body.stock_quantity, name=body.name)


@inventory_router.put("/products/{product_id}/adjust")
async def adjust_product_stock(product_id: str, body: AdjustProductStockRequest) -> dict:
    return lifecycle.adjust_product_stock(product_id, body.delta)
