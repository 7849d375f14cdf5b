"""
Loading and saving content items (messages and comments).
"""

from __future__ import annotations

from utiopia.core.errors import NotFound
from utiopia.core.models import CONTENT_MODELS, ContentItem, ContentKind
from utiopia.storage.base import Collections, MetadataStorage

COLLECTIONS: dict[ContentKind, str] = {
    ContentKind.MESSAGE: Collections.MESSAGES,
    ContentKind.COMMENT: Collections.COMMENTS,
}


async def load_content(
    storage: MetadataStorage,
    kind: ContentKind,
    content_id: int,
    include_deleted: bool = False,
) -> ContentItem:
    """Load a live content item, raising NotFound for missing or soft-deleted rows."""
    row = await storage.get(COLLECTIONS[kind], content_id)
    if row is None:
        raise NotFound(f"{kind.value} {content_id} does not exist")

    item = CONTENT_MODELS[kind].model_validate(row)
    if item.is_deleted and not include_deleted:
        raise NotFound(f"{kind.value} {content_id} is deleted")
    return item


async def insert_content(storage: MetadataStorage, item: ContentItem) -> int:
    item.id = await storage.insert(COLLECTIONS[item.kind], item.model_dump(exclude={"id"}))
    return item.id


async def save_content(storage: MetadataStorage, item: ContentItem) -> None:
    await storage.update(COLLECTIONS[item.kind], item.id, item.model_dump(exclude={"id"}))


async def load_all(storage: MetadataStorage, kind: ContentKind, **filters) -> list[ContentItem]:
    """Every row of a kind (deleted ones included), newest first."""
    rows = await storage.query(
        COLLECTIONS[kind],
        filters=filters or None,
        descending=True,
        limit=None,
    )
    return [CONTENT_MODELS[kind].model_validate(row) for row in rows]
