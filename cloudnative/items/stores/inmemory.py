"""In-memory implementation of ItemStore."""

from datetime import UTC, datetime

from cloudnative.db.errors import ValidationError
from cloudnative.items.models import Item
from cloudnative.items.store import ItemStore

NAME_MAX_LENGTH = 255


class InMemoryItemStore(ItemStore):
    """In-memory implementation of ItemStore for testing and development.

    Mirrors the table constraints that matter to callers: ids are
    assigned sequentially, ``name`` is required and at most 255 characters.
    """

    def __init__(self) -> None:
        """Initialize empty storage."""
        self._items: dict[int, Item] = {}
        self._next_id = 1

    async def list_items(self) -> list[Item]:
        """Return every item, newest first."""
        return [self._items[item_id] for item_id in sorted(self._items, reverse=True)]

    async def create_item(self, name: str | None, description: str | None) -> Item:
        """Insert an item and return it."""
        if name is None:
            raise ValidationError('null value in column "name" violates not-null constraint')
        if len(name) > NAME_MAX_LENGTH:
            raise ValidationError(
                f"value too long for type character varying({NAME_MAX_LENGTH})"
            )

        item = Item(
            id=self._next_id,
            name=name,
            description=description,
            created_at=datetime.now(UTC),
        )
        self._items[item.id] = item
        self._next_id += 1
        return item

    async def delete_item(self, item_id: str) -> int:
        """Delete an item by id."""
        key = _parse_id(item_id)
        return 1 if self._items.pop(key, None) is not None else 0


def _parse_id(item_id: str) -> int:
    try:
        return int(item_id)
    except ValueError as e:
        raise ValidationError(f'invalid input syntax for type integer: "{item_id}"', cause=e) from e
