"""Orders domain API package."""

from orders.api.routes import conflict_error_handler, inventory_router, order_router, service_order_router

__all__ = ["conflict_error_handler", "inventory_router", "order_router", "service_order_router"]
