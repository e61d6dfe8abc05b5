import pytest
from catalogue.lookup import FakeCatalog
from inventory.ledger import InventoryLedger
from ordering.placement.saga import OrderPlacement
from ordering.placement.settings import PlacementSettings
from ordering.store import FakeOrderStore


@pytest.fixture(autouse=True)
def _ctx(ordering_bed):
    with ordering_bed.domain_context():
        yield


@pytest.fixture
def catalog():
    catalog = FakeCatalog()
    catalog.add_product("P1", 10.00, sku="APPLE-1KG", name="Apples 1kg")
    catalog.add_product("P2", 5.00, sku="PEAR-1KG", name="Pears 1kg")
    catalog.add_product("P3", 3.25, sku="PLUM-500G", name="Plums 500g")
    return catalog


@pytest.fixture
def ledger():
    return InventoryLedger(lock_timeout=0.5)


@pytest.fixture
def order_store():
    return FakeOrderStore()


@pytest.fixture
def settings():
    return PlacementSettings(lock_timeout=0.1, max_attempts=3, retry_backoff=0.0)


@pytest.fixture
def placement(ledger, catalog, order_store, settings):
    return OrderPlacement(ledger, catalog, order_store, settings=settings)
