"""Inventory reconciliation for order creation and cancellation.

Both directions run inside the caller's unit of work, so stock moves
commit or roll back together with the order that caused them.
"""

from collections import defaultdict

import structlog
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from orders.inventory.stock import ProductStock

logger = structlog.get_logger(__name__)


def _quantities_by_product(items):
    wanted = defaultdict(int)
    for item in items:
        product_id = item.get("product_id") if isinstance(item, dict) else item.product_id
        quantity = item.get("quantity") if isinstance(item, dict) else item.quantity
        if product_id:
            wanted[str(product_id)] += quantity
    return wanted


def reserve_for(items_data) -> None:
    """Draw stock for every product line.

    All lines are checked before any counter moves, so a shortfall on the
    last line leaves every product untouched. Raises ``ObjectNotFoundError``
    for an unknown product and ``ValidationError`` for insufficient stock.
    """
    repo = current_domain.repository_for(ProductStock)
    wanted = _quantities_by_product(items_data)

    stocks = {}
    for product_id, quantity in wanted.items():
        try:
            stock = repo.get(product_id)
        except ObjectNotFoundError:
            raise ObjectNotFoundError(f"Product {product_id} not found") from None
        stock.draw(quantity)
        stocks[product_id] = stock

    for stock in stocks.values():
        repo.add(stock)


def restore_for(order) -> int:
    """Put back the product quantities of a cancelled order, exactly once.

    Returns the number of units restored (0 if already restored).
    """
    if order.inventory_restored:
        logger.info("Inventory already restored, skipping", order_id=str(order.id))
        return 0

    repo = current_domain.repository_for(ProductStock)
    restored = 0
    for product_id, quantity in _quantities_by_product(order.product_items()).items():
        try:
            stock = repo.get(product_id)
        except ObjectNotFoundError:
            logger.warning(
                "Product stock missing during restore, skipping line",
                order_id=str(order.id),
                product_id=product_id,
                quantity=quantity,
            )
            continue
        stock.restock(quantity)
        repo.add(stock)
        restored += quantity

    order.mark_inventory_restored()
    return restored
