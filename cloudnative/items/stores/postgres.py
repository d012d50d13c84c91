"""PostgreSQL implementation of ItemStore.

Uses asyncpg through the shared PostgresPool.
"""

from cloudnative.db.errors import ConnectionError, ValidationError
from cloudnative.db.pool import PostgresPool
from cloudnative.items.models import Item
from cloudnative.items.store import ItemStore
from cloudnative.observability.logging import get_logger

logger = get_logger(__name__)

ITEMS_TABLE = "items"

CREATE_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS items (
    id SERIAL PRIMARY KEY,
    name VARCHAR(255) NOT NULL,
    description TEXT,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
)
"""


class PostgresItemStore(ItemStore):
    """PostgreSQL implementation of ItemStore."""

    def __init__(self, pool: PostgresPool, *, create_schema: bool = False) -> None:
        """Initialize with connection pool.

        Args:
            pool: PostgreSQL connection pool
            create_schema: Create the items table if missing, on connect or
                before the first statement when the connect failed
        """
        self._pool = pool
        self._create_schema = create_schema
        self._schema_ready = not create_schema

    async def connect(self) -> None:
        await self._pool.connect()
        if self._create_schema:
            await self.ensure_schema()

    async def close(self) -> None:
        await self._pool.close()

    async def ensure_schema(self) -> None:
        """Create the items table if it does not exist."""
        try:
            async with self._pool.acquire() as conn:
                await conn.execute(CREATE_TABLE_SQL)
        except ConnectionError:
            raise
        except Exception as e:
            logger.error("postgres_create_schema_error", error=str(e))
            raise ConnectionError(f"Failed to create items table: {e}", cause=e) from e
        self._schema_ready = True
        logger.info("items_schema_ensured")

    async def _prepare(self) -> None:
        if not self._schema_ready:
            await self.ensure_schema()

    async def list_items(self) -> list[Item]:
        """Return every item, newest first."""
        try:
            await self._prepare()
            async with self._pool.acquire() as conn:
                rows = await conn.fetch("SELECT * FROM items ORDER BY id DESC")
                return [Item.model_validate(dict(row)) for row in rows]
        except ConnectionError:
            raise
        except Exception as e:
            logger.error("postgres_list_items_error", error=str(e))
            raise ConnectionError(f"Failed to list items: {e}", cause=e) from e

    async def create_item(self, name: str | None, description: str | None) -> Item:
        """Insert an item and return the stored row."""
        try:
            await self._prepare()
            async with self._pool.acquire() as conn:
                row = await conn.fetchrow(
                    "INSERT INTO items (name, description) VALUES ($1, $2) RETURNING *",
                    name,
                    description,
                )
                return Item.model_validate(dict(row))
        except ConnectionError:
            raise
        except Exception as e:
            logger.error("postgres_create_item_error", error=str(e))
            raise ConnectionError(f"Failed to create item: {e}", cause=e) from e

    async def delete_item(self, item_id: str) -> int:
        """Delete an item by id."""
        try:
            key = int(item_id)
        except ValueError as e:
            raise ValidationError(f"Invalid item id: {item_id!r}", cause=e) from e

        try:
            await self._prepare()
            async with self._pool.acquire() as conn:
                status = await conn.execute("DELETE FROM items WHERE id = $1", key)
        except ConnectionError:
            raise
        except Exception as e:
            logger.error("postgres_delete_item_error", item_id=item_id, error=str(e))
            raise ConnectionError(f"Failed to delete item: {e}", cause=e) from e

        # asyncpg returns the command tag, e.g. "DELETE 1"
        return int(status.split()[-1])
