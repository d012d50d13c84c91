"""ItemStore implementations."""

from cloudnative.items.stores.inmemory import InMemoryItemStore
from cloudnative.items.stores.postgres import PostgresItemStore

__all__ = ["InMemoryItemStore", "PostgresItemStore"]
