"""Read paths: hydrated order views, filtered listings and seller analytics."""

import json
import math
from collections import Counter
from datetime import UTC, date, datetime, time

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from orders.inventory.stock import ProductStock
from orders.order.order import Order, OrderStatus, OrderType
from orders.service_order.service_order import ServiceOrder

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100

_FILTER_FIELDS = ("buyer_id", "seller_id", "status", "payment_status", "order_type")


def _iso(value):
    return value.isoformat() if value else None


def _json(value):
    return json.loads(value) if value else None


def _by_sequence(rows):
    return sorted(rows or [], key=lambda row: row.sequence)


def order_to_dict(order: Order) -> dict:
    """Hydrated order view: items plus every ledger, oldest entry first."""
    return {
        "id": str(order.id),
        "order_number": order.order_number,
        "buyer_id": str(order.buyer_id),
        "seller_id": str(order.seller_id),
        "quote_id": str(order.quote_id) if order.quote_id else None,
        "order_type": order.order_type,
        "status": order.status,
        "payment_status": order.payment_status,
        "subtotal": order.subtotal,
        "tax_amount": order.tax_amount,
        "shipping_amount": order.shipping_amount,
        "discount_amount": order.discount_amount,
        "total_amount": order.total_amount,
        "delivery_address": _json(order.delivery_address),
        "billing_address": _json(order.billing_address),
        "notes": order.notes,
        "estimated_delivery": _iso(order.estimated_delivery),
        "actual_delivery": _iso(order.actual_delivery),
        "tracking_number": order.tracking_number,
        "shipping_provider": order.shipping_provider,
        "cancellation_reason": order.cancellation_reason,
        "inventory_restored": bool(order.inventory_restored),
        "revision": order.revision or 0,
        "items": [
            {
                "id": str(item.id),
                "product_id": str(item.product_id) if item.product_id else None,
                "service_id": str(item.service_id) if item.service_id else None,
                "variant_id": str(item.variant_id) if item.variant_id else None,
                "quantity": item.quantity,
                "unit_price": item.unit_price,
                "total_price": item.total_price,
            }
            for item in order.items or []
        ],
        "status_history": [
            {
                "status": row.status,
                "notes": row.notes,
                "updated_by": str(row.updated_by) if row.updated_by else None,
                "created_at": _iso(row.created_at),
            }
            for row in _by_sequence(order.status_history)
        ],
        "tracking_history": [tracking_row_to_dict(row) for row in _by_sequence(order.tracking_history)],
        "delivery_tracking": [delivery_row_to_dict(row) for row in order.delivery_tracking or []],
        "audit_trail": [
            {
                "action": row.action,
                "details": row.details,
                "user_id": str(row.user_id) if row.user_id else None,
                "created_at": _iso(row.created_at),
            }
            for row in _by_sequence(order.audit_trail)
        ],
        "created_at": _iso(order.created_at),
        "updated_at": _iso(order.updated_at),
    }


def tracking_row_to_dict(row) -> dict:
    return {
        "status": row.status,
        "location": row.location,
        "description": row.description,
        "provider": row.provider,
        "provider_tracking_id": row.provider_tracking_id,
        "metadata": _json(row.provider_metadata),
        "recorded_by": str(row.recorded_by) if row.recorded_by else None,
        "timestamp": _iso(row.timestamp),
    }


def delivery_row_to_dict(row) -> dict:
    return {
        "carrier": row.carrier or None,
        "tracking_number": row.tracking_number,
        "status": row.status,
        "notes": row.notes,
        "actual_delivery": _iso(row.actual_delivery),
        "created_at": _iso(row.created_at),
        "updated_at": _iso(row.updated_at),
    }


def service_order_to_dict(service_order: ServiceOrder) -> dict:
    return {
        "id": str(service_order.id),
        "order_id": str(service_order.order_id),
        "service_id": str(service_order.service_id),
        "quantity": service_order.quantity,
        "unit_price": service_order.unit_price,
        "total_price": service_order.total_price,
        "status": service_order.status,
        "scheduled_date": _iso(service_order.scheduled_date),
        "completed_date": _iso(service_order.completed_date),
        "provider_notes": service_order.provider_notes,
        "customer_notes": service_order.customer_notes,
        "created_at": _iso(service_order.created_at),
        "updated_at": _iso(service_order.updated_at),
    }


def get_order_by_id(order_id) -> dict:
    return order_to_dict(current_domain.repository_for(Order).get(order_id))


def get_order_by_number(order_number: str) -> dict:
    order = current_domain.repository_for(Order).find_by_number(order_number)
    if order is None:
        raise ObjectNotFoundError(f"Order with number {order_number} not found")
    return order_to_dict(order)


def get_service_orders(order_id) -> list[dict]:
    current_domain.repository_for(Order).get(order_id)
    return [service_order_to_dict(so) for so in current_domain.repository_for(ServiceOrder).for_order(order_id)]


def get_tracking(order_id) -> dict:
    """Tracking ledger and per-carrier delivery summaries for one order."""
    order = current_domain.repository_for(Order).get(order_id)
    return {
        "order_id": str(order.id),
        "tracking_number": order.tracking_number,
        "shipping_provider": order.shipping_provider,
        "tracking_history": [tracking_row_to_dict(row) for row in _by_sequence(order.tracking_history)],
        "delivery_tracking": [delivery_row_to_dict(row) for row in order.delivery_tracking or []],
    }


def _start_of(value):
    if isinstance(value, datetime):
        return value
    return datetime.combine(value, time.min, tzinfo=UTC)


def _end_of(value):
    if isinstance(value, datetime):
        return value
    return datetime.combine(value, time.max, tzinfo=UTC)


def build_filters(
    buyer_id=None,
    seller_id=None,
    status=None,
    payment_status=None,
    order_type=None,
    date_from: date | datetime | None = None,
    date_to: date | datetime | None = None,
) -> dict:
    """Translate listing filters into DAO lookups, skipping empty ones."""
    values = {
        "buyer_id": buyer_id,
        "seller_id": seller_id,
        "status": status,
        "payment_status": payment_status,
        "order_type": order_type,
    }
    filters = {field: str(values[field]) for field in _FILTER_FIELDS if values[field]}
    if date_from:
        filters["created_at__gte"] = _start_of(date_from)
    if date_to:
        filters["created_at__lte"] = _end_of(date_to)
    return filters


def get_orders(page: int = 1, limit: int = DEFAULT_PAGE_SIZE, **criteria) -> dict:
    """Newest-first page of orders with a ``{orders, total, page, limit, total_pages}`` envelope."""
    page = max(page, 1)
    limit = min(max(limit, 1), MAX_PAGE_SIZE)
    result = current_domain.repository_for(Order).search(
        build_filters(**criteria),
        offset=(page - 1) * limit,
        limit=limit,
    )
    return {
        "orders": [order_to_dict(order) for order in result.items],
        "total": result.total,
        "page": page,
        "limit": limit,
        "total_pages": math.ceil(result.total / limit) if result.total else 0,
    }


def get_order_analytics(seller_id=None, date_from=None, date_to=None) -> dict:
    """Order count, revenue, average order value and status/type breakdowns."""
    found = current_domain.repository_for(Order).all_matching(
        build_filters(seller_id=seller_id, date_from=date_from, date_to=date_to)
    )

    total_orders = len(found)
    total_revenue = round(sum(order.total_amount or 0.0 for order in found), 2)
    by_status = Counter(order.status for order in found)
    by_type = Counter(order.order_type for order in found)
    recent = sorted(found, key=lambda order: order.created_at, reverse=True)[:10]

    return {
        "total_orders": total_orders,
        "total_revenue": total_revenue,
        "average_order_value": round(total_revenue / total_orders, 2) if total_orders else 0.0,
        "orders_by_status": {status.value: by_status.get(status.value, 0) for status in OrderStatus},
        "orders_by_type": {order_type.value: by_type.get(order_type.value, 0) for order_type in OrderType},
        "recent_orders": [
            {
                "id": str(order.id),
                "order_number": order.order_number,
                "status": order.status,
                "total_amount": order.total_amount,
                "created_at": _iso(order.created_at),
            }
            for order in recent
        ],
    }


def get_service_order(service_order_id) -> dict:
    return service_order_to_dict(current_domain.repository_for(ServiceOrder).get(service_order_id))


def get_product_stock(product_id) -> dict:
    stock = current_domain.repository_for(ProductStock).get(product_id)
    return {
        "product_id": str(stock.product_id),
        "name": stock.name,
        "stock_quantity": stock.stock_quantity,
        "updated_at": _iso(stock.updated_at),
    }
