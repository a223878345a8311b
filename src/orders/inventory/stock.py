"""ProductStock aggregate — sellable quantity per product.

The catalogue owns products; this context only keeps the counter that
order creation draws down and cancellation puts back.
"""

from datetime import UTC, datetime

from protean.exceptions import ValidationError
from protean.fields import DateTime, Identifier, Integer, String

from orders.domain import orders


@orders.aggregate
class ProductStock:
    product_id = Identifier(identifier=True, required=True)
    name = String(max_length=255)
    stock_quantity = Integer(default=0, min_value=0)
    updated_at = DateTime()

    @classmethod
    def register(cls, product_id, stock_quantity=0, name=None):
        return cls(
            product_id=product_id,
            name=name,
            stock_quantity=stock_quantity,
            updated_at=datetime.now(UTC),
        )

    def can_supply(self, quantity: int) -> bool:
        return (self.stock_quantity or 0) >= quantity

    def draw(self, quantity: int):
        if not self.can_supply(quantity):
            raise ValidationError(
                {"stock_quantity": [f"Insufficient stock for product {self.product_id}"]},
            )
        self.stock_quantity -= quantity
        self.updated_at = datetime.now(UTC)

    def restock(self, quantity: int):
        self.stock_quantity = (self.stock_quantity or 0) + quantity
        self.updated_at = datetime.now(UTC)

    def adjust(self, delta: int):
        if (self.stock_quantity or 0) + delta < 0:
            raise ValidationError(
                {"stock_quantity": [f"Adjustment would make stock negative for product {self.product_id}"]},
            )
        self.stock_quantity = (self.stock_quantity or 0) + delta
        self.updated_at = datetime.now(UTC)
