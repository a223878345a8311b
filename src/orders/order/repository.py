"""Repository for the Order aggregate."""

from orders.domain import orders
from orders.order.order import Order


@orders.repository(part_of=Order)
class OrderRepository:
    """Lookups beyond ``get`` by id."""

    def find_by_number(self, order_number: str) -> Order | None:
        return self._dao.query.filter(order_number=order_number).all().first

    def search(self, filters: dict, offset: int = 0, limit: int = 10):
        """Newest-first page of orders matching ``filters``; returns a ResultSet."""
        return self._dao.query.filter(**filters).order_by("-created_at").offset(offset).limit(limit).all()

    def all_matching(self, filters: dict, batch_size: int = 500) -> list[Order]:
        """Every order matching ``filters``, read in batches."""
        found = []
        offset = 0
        while True:
            page = self._dao.query.filter(**filters).order_by("created_at").offset(offset).limit(batch_size).all()
            found.extend(page.items)
            if len(page.items) < batch_size:
                return found
            offset += batch_size
