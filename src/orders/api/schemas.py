"""Pydantic request/response schemas for the Orders API.

These are external contracts (anti-corruption layer) — separate from
internal Protean commands.
"""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field


class OrderItemSchema(BaseModel):
    product_id: str | None = None
    service_id: str | None = None
    variant_id: str | None = None
    quantity: int = Field(ge=1)
    unit_price: float = Field(ge=0)


# ---------------------------------------------------------------------------
# Order Request Schemas
# ---------------------------------------------------------------------------
class CreateOrderRequest(BaseModel):
    buyer_id: str
    seller_id: str
    order_type: Literal["product", "service"]
    items: list[OrderItemSchema] = Field(min_length=1)
    quote_id: str | None = None
    delivery_address: dict[str, Any] | None = None  # opaque address blob
    billing_address: dict[str, Any] | None = None  # opaque address blob
    notes: str | None = None
    estimated_delivery: datetime | None = None
    created_by: str | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "buyer_id": "buyer-001",
                    "seller_id": "seller-001",
                    "order_type": "product",
                    "items": [
                        {"product_id": "prod-001", "quantity": 2, "unit_price": 100.0},
                        {"product_id": "prod-002", "quantity": 1, "unit_price": 50.0},
                    ],
                }
            ]
        }
    }


class UpdateOrderStatusRequest(BaseModel):
    status: str
    notes: str | None = None
    updated_by: str | None = None
    expected_revision: int | None = None


class UpdatePaymentStatusRequest(BaseModel):
    payment_status: str
    updated_by: str | None = None
    expected_revision: int | None = None


class CancelOrderRequest(BaseModel):
    reason: str | None = None
    cancelled_by: str | None = None
    expected_revision: int | None = None


class TrackingEventRequest(BaseModel):
    status: str
    location: str | None = None
    description: str | None = None
    provider: str | None = None
    provider_tracking_id: str | None = None
    metadata: dict[str, Any] | None = None
    recorded_by: str | None = None


# ---------------------------------------------------------------------------
# Service Order / Stock Request Schemas
# ---------------------------------------------------------------------------
class UpdateServiceOrderStatusRequest(BaseModel):
    status: str
    scheduled_date: datetime | None = None
    provider_notes: str | None = None
    customer_notes: str | None = None
    updated_by: str | None = None


class RegisterProductStockRequest(BaseModel):
    product_id: str
    name: str | None = None
    stock_quantity: int = Field(default=0, ge=0)


class AdjustProductStockRequest(BaseModel):
    delta: int


# ---------------------------------------------------------------------------
# Response Schemas
# ---------------------------------------------------------------------------
class StatusCascadeResponse(BaseModel):
    attempted: bool
    target_status: str | None = None
    succeeded: bool = False
    error: str | None = None


class TrackingOutcomeResponse(BaseModel):
    order: dict[str, Any]
    cascade: StatusCascadeResponse


class OrderListResponse(BaseModel):
    orders: list[dict[str, Any]]
    total: int
    page: int
    limit: int
    total_pages: int
