"""Website repository — CRUD, domain search and organisation resolution."""
import logging
from typing import Any, Optional, Sequence

from db.errors import NotFoundError
from db.repositories import organisations as organisations_repo
from db.repositories.base import utc_now_iso, validated_patch
from db.store import DocumentStore, Filter, new_document_id
from schemas.organisation import OrganisationSummary
from schemas.website import Website, WebsiteWithOrganisation

logger = logging.getLogger(__name__)

COLLECTION = "websites"


async def create(store: DocumentStore, data: dict[str, Any]) -> Website:
    """Create a website and return it.

    data dict keys: domain, url, organisation_id, status, hosting_provider,
    cms, notes
    """
    now = utc_now_iso()
    website = Website.model_validate(
        {**data, "id": data.get("id") or new_document_id(), "created_at": now, "updated_at": now}
    )
    await store.create(COLLECTION, website.model_dump(mode="json"))
    logger.info("Created website %s (%s)", website.id, website.domain)
    return website


async def get(store: DocumentStore, website_id: str) -> Optional[Website]:
    doc = await store.get(COLLECTION, website_id)
    return Website.model_validate(doc) if doc is not None else None


async def require(store: DocumentStore, website_id: str) -> Website:
    website = await get(store, website_id)
    if website is None:
        raise NotFoundError(COLLECTION, website_id)
    return website


async def list_all(
    store: DocumentStore,
    filters: Optional[Sequence[Filter]] = None,
    sort_field: str = "domain",
    direction: str = "asc",
    limit: Optional[int] = None,
) -> list[Website]:
    docs = await store.query(COLLECTION, filters, (sort_field, direction), limit)
    return [Website.model_validate(d) for d in docs]


async def update(store: DocumentStore, website_id: str, fields: dict[str, Any]) -> None:
    current = await require(store, website_id)
    await store.update(COLLECTION, website_id, validated_patch(Website, current, fields))


async def delete(store: DocumentStore, website_id: str) -> None:
    await store.delete(COLLECTION, website_id)
    logger.info("Deleted website %s", website_id)


async def search(store: DocumentStore, term: str, limit: int = 10) -> list[Website]:
    """Case-insensitive substring search over the domain."""
    docs = await store.search(COLLECTION, ("domain",), term, ("domain", "asc"), limit)
    return [Website.model_validate(d) for d in docs]


async def by_organisation(store: DocumentStore, organisation_id: str) -> list[Website]:
    return await list_all(store, [("organisation_id", "==", organisation_id)])


async def with_organisations(
    store: DocumentStore, websites: Sequence[Website]
) -> list[WebsiteWithOrganisation]:
    """Attach an organisation summary to each website.

    Each distinct organisation is read once. A website whose organisation is
    unset or no longer exists gets organisation=None.
    """
    summaries: dict[str, Optional[OrganisationSummary]] = {}
    for org_id in dict.fromkeys(w.organisation_id for w in websites if w.organisation_id):
        org = await organisations_repo.get(store, org_id)
        summaries[org_id] = (
            OrganisationSummary(organisation_id=org.id, organisation_name=org.name)
            if org is not None
            else None
        )
    return [
        WebsiteWithOrganisation(
            **w.model_dump(),
            organisation=summaries.get(w.organisation_id) if w.organisation_id else None,
        )
        for w in websites
    ]
