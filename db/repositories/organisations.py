"""Organisation repository — CRUD and name search."""
import logging
from typing import Any, Optional, Sequence

from db.errors import NotFoundError
from db.repositories.base import utc_now_iso, validated_patch
from db.store import DocumentStore, Filter, new_document_id
from schemas.organisation import Organisation

logger = logging.getLogger(__name__)

COLLECTION = "organisations"


async def create(store: DocumentStore, data: dict[str, Any]) -> Organisation:
    """Create an organisation and return it.

    data dict keys: name, type, status, industry, website, notes,
    billing_address, shipping_address
    """
    now = utc_now_iso()
    org = Organisation.model_validate(
        {**data, "id": data.get("id") or new_document_id(), "created_at": now, "updated_at": now}
    )
    await store.create(COLLECTION, org.model_dump(mode="json"))
    logger.info("Created organisation %s (%s)", org.id, org.name)
    return org


async def get(store: DocumentStore, org_id: str) -> Optional[Organisation]:
    """Return the Organisation with this id, or None."""
    doc = await store.get(COLLECTION, org_id)
    return Organisation.model_validate(doc) if doc is not None else None


async def require(store: DocumentStore, org_id: str) -> Organisation:
    """Return the Organisation with this id or raise NotFoundError."""
    org = await get(store, org_id)
    if org is None:
        raise NotFoundError(COLLECTION, org_id)
    return org


async def list_all(
    store: DocumentStore,
    filters: Optional[Sequence[Filter]] = None,
    sort_field: str = "name",
    direction: str = "asc",
    limit: Optional[int] = None,
) -> list[Organisation]:
    docs = await store.query(COLLECTION, filters, (sort_field, direction), limit)
    return [Organisation.model_validate(d) for d in docs]


async def update(store: DocumentStore, org_id: str, fields: dict[str, Any]) -> None:
    """Patch an organisation. Renaming does not touch names copied onto links.

    Raises NotFoundError or ValidationError without writing.
    """
    current = await require(store, org_id)
    await store.update(COLLECTION, org_id, validated_patch(Organisation, current, fields))


async def delete(store: DocumentStore, org_id: str) -> None:
    """Delete an organisation. Contact links and lead references are left as they are."""
    await store.delete(COLLECTION, org_id)
    logger.info("Deleted organisation %s (dependent links not cleaned up)", org_id)


async def search(store: DocumentStore, term: str, limit: int = 10) -> list[Organisation]:
    """Case-insensitive substring search over name, industry and status."""
    docs = await store.search(COLLECTION, ("name", "industry", "status"), term, ("name", "asc"), limit)
    return [Organisation.model_validate(d) for d in docs]
