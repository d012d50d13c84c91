"""Item domain models."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class Item(BaseModel):
    """A row of the items table."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str | None = None
    description: str | None = None
    created_at: datetime | None = None


class ItemCreate(BaseModel):
    """Request body for POST /api/items.

    Both fields are optional and unbounded at the HTTP layer; the table's
    own constraints (NOT NULL, VARCHAR(255)) decide what is acceptable.
    """

    name: str | None = None
    description: str | None = None
