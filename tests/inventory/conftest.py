import pytest
from inventory.ledger import InventoryLedger


@pytest.fixture
def ledger():
    return InventoryLedger(lock_timeout=0.5)
