"""Items resource: models and storage."""

from cloudnative.items.models import Item, ItemCreate
from cloudnative.items.store import ItemStore

__all__ = ["Item", "ItemCreate", "ItemStore"]
