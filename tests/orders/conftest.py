import pytest
from orders.carrier import reset_carrier
from orders.domain import orders
from orders.inventory.management import RegisterProductStock
from orders.lifecycle import OrderLifecycle
from orders.notifier import get_notifier, reset_notifier
from protean import current_domain


@pytest.fixture(autouse=True)
def _adapters(monkeypatch):
    monkeypatch.setenv("ORDERS_NOTIFIER", "fake")
    monkeypatch.setenv("CARRIER_ADAPTER", "fake")
    reset_notifier()
    reset_carrier()
    yield
    reset_notifier()
    reset_carrier()


@pytest.fixture()
def notifier():
    return get_notifier()


@pytest.fixture()
def lifecycle():
    return OrderLifecycle(orders)


@pytest.fixture()
def register_stock():
    def _register(product_id, quantity):
        current_domain.process(
            RegisterProductStock(product_id=product_id, stock_quantity=quantity),
            asynchronous=False,
        )

    return _register


@pytest.fixture()
def stocked_products(register_stock):
    """``prod-a`` with 10 units and ``prod-b`` with 5."""
    register_stock("prod-a", 10)
    register_stock("prod-b", 5)
    return ["prod-a", "prod-b"]
