"""ItemStore abstract interface."""

from abc import ABC, abstractmethod

from cloudnative.items.models import Item


class ItemStore(ABC):
    """Abstract interface for the items table.

    Implementations raise StoreError subclasses for every backend failure.
    """

    async def connect(self) -> None:
        """Open backend resources. No-op by default."""

    async def close(self) -> None:
        """Release backend resources. No-op by default."""

    @abstractmethod
    async def list_items(self) -> list[Item]:
        """Return every item, newest (highest id) first."""
        pass

    @abstractmethod
    async def create_item(self, name: str | None, description: str | None) -> Item:
        """Insert an item and return the stored row."""
        pass

    @abstractmethod
    async def delete_item(self, item_id: str) -> int:
        """Delete an item by id, returning the number of rows removed.

        Deleting an id that does not exist is not an error.
        """
        pass
