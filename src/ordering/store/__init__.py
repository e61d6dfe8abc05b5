"""Durable order store adapters.

- FakeOrderStore for development and testing
- RepositoryOrderStore for the ordering domain's Order repository
"""

from ordering.store.fake_adapter import FakeOrderStore
from ordering.store.port import OrderNotFound, OrderStore, PersistenceError
from ordering.store.repository_adapter import RepositoryOrderStore

__all__ = [
    "FakeOrderStore",
    "OrderNotFound",
    "OrderStore",
    "PersistenceError",
    "RepositoryOrderStore",
]
