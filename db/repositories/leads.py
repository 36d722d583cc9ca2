"""Lead repository — CRUD, search and relationship finders."""
import logging
from typing import Any, Optional, Sequence

from db.errors import NotFoundError
from db.repositories.base import utc_now_iso, validated_patch
from db.store import DocumentStore, Filter, new_document_id
from schemas.lead import Lead, check_lead_organisation_pair

logger = logging.getLogger(__name__)

COLLECTION = "leads"
SEARCH_FIELDS = (
    "contact_person.full_name",
    "contact_person.email",
    "contact_person.phone",
    "contact_person.job_title",
    "organisation_name",
    "status",
    "source",
)


async def create(store: DocumentStore, data: dict[str, Any]) -> Lead:
    """Create a lead and return it.

    data dict keys: contact_person, organisation_id, organisation_name,
    status, source, notes, contact_ids
    """
    now = utc_now_iso()
    payload = {
        "organisation_id": None,
        "organisation_name": None,
        "contact_ids": [],
        **data,
        "id": data.get("id") or new_document_id(),
        "created_at": now,
        "updated_at": now,
    }
    lead = Lead.model_validate(payload)
    await store.create(COLLECTION, lead.model_dump(mode="json"))
    logger.info("Created lead %s (%s)", lead.id, lead.contact_person.full_name)
    return lead


async def get(store: DocumentStore, lead_id: str) -> Optional[Lead]:
    """Return the Lead with this id, or None."""
    doc = await store.get(COLLECTION, lead_id)
    return Lead.model_validate(doc) if doc is not None else None


async def require(store: DocumentStore, lead_id: str) -> Lead:
    """Return the Lead with this id or raise NotFoundError."""
    lead = await get(store, lead_id)
    if lead is None:
        raise NotFoundError(COLLECTION, lead_id)
    return lead


async def list_all(
    store: DocumentStore,
    filters: Optional[Sequence[Filter]] = None,
    sort_field: str = "created_at",
    direction: str = "desc",
    limit: Optional[int] = None,
) -> list[Lead]:
    docs = await store.query(COLLECTION, filters, (sort_field, direction), limit)
    return [Lead.model_validate(d) for d in docs]


async def update(store: DocumentStore, lead_id: str, fields: dict[str, Any]) -> None:
    """Patch a lead.

    organisation_id and organisation_name must be patched together, and
    contact_ids is written deduplicated. Raises NotFoundError for an unknown
    lead and ValueError (including ValidationError) for a patch that would
    leave the lead invalid; nothing is written in either case.
    """
    patch = dict(fields)
    has_id = "organisation_id" in patch
    has_name = "organisation_name" in patch
    if has_id != has_name:
        raise ValueError("organisation_id and organisation_name must be updated together")
    if has_id:
        check_lead_organisation_pair(patch["organisation_id"], patch["organisation_name"])
    if "contact_ids" in patch:
        patch["contact_ids"] = list(dict.fromkeys(patch["contact_ids"]))
    current = await require(store, lead_id)
    await store.update(COLLECTION, lead_id, validated_patch(Lead, current, patch))


async def delete(store: DocumentStore, lead_id: str) -> None:
    await store.delete(COLLECTION, lead_id)
    logger.info("Deleted lead %s", lead_id)


async def search(store: DocumentStore, term: str, limit: int = 10) -> list[Lead]:
    """Case-insensitive substring search over the contact person, organisation
    name, status and source."""
    docs = await store.search(COLLECTION, SEARCH_FIELDS, term, ("created_at", "desc"), limit)
    return [Lead.model_validate(d) for d in docs]


async def by_organisation(store: DocumentStore, organisation_id: str) -> list[Lead]:
    """Return leads referencing this organisation, newest first."""
    return await list_all(store, [("organisation_id", "==", organisation_id)])


async def by_contact(store: DocumentStore, contact_id: str) -> list[Lead]:
    """Return leads whose contact_ids include this contact, newest first."""
    return await list_all(store, [("contact_ids", "array-contains", contact_id)])
