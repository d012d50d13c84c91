"""Items CRUD endpoints.

Every database call runs inside an operation span. Store failures are
logged, recorded on the span, and surfaced as a 500 with a fixed message.
"""

from fastapi import APIRouter, Request, status

from cloudnative.api.dependencies import ItemsTracerDep, ItemStoreDep, MetricsDep
from cloudnative.api.exceptions import ItemOperationError
from cloudnative.db.errors import StoreError
from cloudnative.items.models import Item, ItemCreate
from cloudnative.observability.attributes import http_attributes
from cloudnative.observability.logging import get_logger
from cloudnative.observability.middleware import resolve_route
from cloudnative.observability.tracing import set_span_attributes

logger = get_logger(__name__)

router = APIRouter(prefix="/api/items")


@router.get("", response_model=list[Item])
async def list_items(
    request: Request,
    store: ItemStoreDep,
    db_tracer: ItemsTracerDep,
    metrics: MetricsDep,
) -> list[Item]:
    """List all items, newest first."""
    try:
        with db_tracer.operation(
            "db.items.list",
            "SELECT",
            http_attributes(request.method, resolve_route(request)),
        ) as span:
            items = await store.list_items()
            set_span_attributes(span, **{"db.rows_returned": len(items)})
    except StoreError as e:
        logger.error("items_fetch_failed", error=str(e))
        raise ItemOperationError("Failed to fetch items") from e

    metrics.set_item_count(len(items))
    return items


@router.post("", response_model=Item, status_code=status.HTTP_201_CREATED)
async def create_item(
    request: Request,
    store: ItemStoreDep,
    db_tracer: ItemsTracerDep,
    body: ItemCreate | None = None,
) -> Item:
    """Create an item.

    A missing body counts as an empty one; the store decides what it accepts.
    """
    body = body or ItemCreate()
    attributes = {
        **http_attributes(request.method, resolve_route(request)),
        "item.name": body.name,
    }
    try:
        with db_tracer.operation("db.items.create", "INSERT", attributes) as span:
            item = await store.create_item(body.name, body.description)
            set_span_attributes(span, **{"item.id": item.id})
    except StoreError as e:
        logger.error("item_create_failed", error=str(e))
        raise ItemOperationError("Failed to create item") from e

    logger.info("item_created", item_id=item.id)
    return item


@router.delete("/{item_id}")
async def delete_item(
    request: Request,
    item_id: str,
    store: ItemStoreDep,
    db_tracer: ItemsTracerDep,
) -> dict[str, str]:
    """Delete an item. Succeeds whether or not the id exists."""
    attributes = {
        **http_attributes(request.method, resolve_route(request)),
        "item.id": item_id,
    }
    try:
        with db_tracer.operation("db.items.delete", "DELETE", attributes) as span:
            deleted = await store.delete_item(item_id)
            set_span_attributes(span, **{"db.rows_affected": deleted})
    except StoreError as e:
        logger.error("item_delete_failed", item_id=item_id, error=str(e))
        raise ItemOperationError("Failed to delete item") from e

    return {"message": "Item deleted successfully"}
