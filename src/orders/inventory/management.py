"""Stock registration and manual adjustment — commands and handler."""

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier, Integer, String
from protean.utils.globals import current_domain

from orders.domain import orders
from orders.inventory.stock import ProductStock


@orders.command(part_of="ProductStock")
class RegisterProductStock:
    product_id = Identifier(required=True)
    name = String(max_length=255)
    stock_quantity = Integer(default=0, min_value=0)


@orders.command(part_of="ProductStock")
class AdjustProductStock:
    product_id = Identifier(required=True)
    delta = Integer(required=True)


@orders.command_handler(part_of=ProductStock)
class ProductStockHandler:
    @handle(RegisterProductStock)
    def register_product_stock(self, command):
        repo = current_domain.repository_for(ProductStock)
        existing = repo._dao.query.filter(product_id=command.product_id).all().first
        if existing is not None:
            raise ValidationError({"product_id": [f"Stock for product {command.product_id} already registered"]})

        stock = ProductStock.register(
            product_id=command.product_id,
            stock_quantity=command.stock_quantity or 0,
            name=command.name,
        )
        repo.add(stock)
        return str(stock.product_id)

    @handle(AdjustProductStock)
    def adjust_product_stock(self, command):
        repo = current_domain.repository_for(ProductStock)
        stock = repo.get(command.product_id)
        stock.adjust(command.delta)
        repo.add(stock)
        return stock.stock_quantity
