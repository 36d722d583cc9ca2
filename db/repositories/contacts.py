"""Contact repository — CRUD, search and the organisation link collection."""
import logging
from typing import Any, Optional, Sequence

from db.errors import NotFoundError
from db.repositories.base import utc_now_iso, validated_patch
from db.store import DocumentStore, Filter, new_document_id
from schemas.contact import Contact, OrganisationLink, join_name

logger = logging.getLogger(__name__)

COLLECTION = "contacts"


async def create(store: DocumentStore, data: dict[str, Any]) -> Contact:
    """Create a contact and return it.

    data dict keys: first_name, last_name, email, phone, mobile, role, status,
    notes, organisations. full_name is derived from first/last name.
    """
    now = utc_now_iso()
    payload = {**data, "id": data.get("id") or new_document_id(), "created_at": now, "updated_at": now}
    if "full_name" not in data:
        payload["full_name"] = join_name(data.get("first_name"), data.get("last_name"))
    payload.setdefault("organisations", [])
    contact = Contact.model_validate(payload)
    await store.create(COLLECTION, contact.model_dump(mode="json"))
    logger.info("Created contact %s (%s)", contact.id, contact.email)
    return contact


async def get(store: DocumentStore, contact_id: str) -> Optional[Contact]:
    """Return the Contact with this id, or None."""
    doc = await store.get(COLLECTION, contact_id)
    return Contact.model_validate(doc) if doc is not None else None


async def require(store: DocumentStore, contact_id: str) -> Contact:
    """Return the Contact with this id or raise NotFoundError."""
    contact = await get(store, contact_id)
    if contact is None:
        raise NotFoundError(COLLECTION, contact_id)
    return contact


async def list_all(
    store: DocumentStore,
    filters: Optional[Sequence[Filter]] = None,
    sort_field: str = "full_name",
    direction: str = "asc",
    limit: Optional[int] = None,
) -> list[Contact]:
    docs = await store.query(COLLECTION, filters, (sort_field, direction), limit)
    return [Contact.model_validate(d) for d in docs]


async def update(store: DocumentStore, contact_id: str, fields: dict[str, Any]) -> None:
    """Patch a contact, re-deriving full_name when either name half changes.

    Raises NotFoundError for an unknown contact and ValidationError when the
    patched contact would be invalid; nothing is written in either case.
    """
    current = await require(store, contact_id)
    patch = dict(fields)
    if "first_name" in patch or "last_name" in patch:
        patch["full_name"] = join_name(
            patch.get("first_name", current.first_name),
            patch.get("last_name", current.last_name),
        )
    await store.update(COLLECTION, contact_id, validated_patch(Contact, current, patch))


async def set_links(
    store: DocumentStore, contact_id: str, links: Sequence[OrganisationLink]
) -> None:
    """Rewrite the contact's organisation link collection in one field update."""
    await store.update(
        COLLECTION,
        contact_id,
        {
            "organisations": [link.model_dump(mode="json") for link in links],
            "updated_at": utc_now_iso(),
        },
    )


async def delete(store: DocumentStore, contact_id: str) -> None:
    """Delete a contact. Lead contact_ids that reference it are left as they are."""
    await store.delete(COLLECTION, contact_id)
    logger.info("Deleted contact %s (lead references not cleaned up)", contact_id)


async def search(store: DocumentStore, term: str, limit: int = 10) -> list[Contact]:
    """Case-insensitive substring search over full name and email."""
    docs = await store.search(COLLECTION, ("full_name", "email"), term, ("full_name", "asc"), limit)
    return [Contact.model_validate(d) for d in docs]
