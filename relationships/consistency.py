"""Invariant helpers and consistency reports for the relationship layer.

Deleting an organisation or contact never cascades: references to it are
left in place (orphan-and-ignore). find_dangling_references() is how such
orphans are surfaced, and resync_organisation_name() is the only way a
renamed organisation's name reaches the copies stored on leads and links.
"""
import logging
import uuid
from dataclasses import dataclass
from typing import Iterable

import db.repositories.contacts as contacts_repo
import db.repositories.leads as leads_repo
import db.repositories.organisations as organisations_repo
from db.repositories.base import utc_now
from db.store import DocumentStore
from schemas.lead import check_lead_organisation_pair

logger = logging.getLogger(__name__)

PRIMARY_PRIORITY = 1
DEFAULT_PRIORITY = 10

__all__ = [
    "DanglingReference",
    "check_lead_organisation_pair",
    "default_priority",
    "find_dangling_references",
    "find_primary_conflicts",
    "new_relationship_id",
    "resync_organisation_name",
    "union_ids",
    "without_id",
]


def new_relationship_id() -> str:
    return uuid.uuid4().hex


def default_priority(is_primary: bool) -> int:
    return PRIMARY_PRIORITY if is_primary else DEFAULT_PRIORITY


def union_ids(ids: Iterable[str], new_id: str) -> list[str]:
    """Order-preserving, duplicate-free ids plus new_id."""
    out = list(dict.fromkeys(ids))
    if new_id not in out:
        out.append(new_id)
    return out


def without_id(ids: Iterable[str], removed_id: str) -> list[str]:
    """Order-preserving, duplicate-free ids minus removed_id."""
    return [i for i in dict.fromkeys(ids) if i != removed_id]


@dataclass(frozen=True)
class DanglingReference:
    source_collection: str
    source_id: str
    field: str
    target_collection: str
    target_id: str


async def find_dangling_references(store: DocumentStore) -> list[DanglingReference]:
    """Report lead and contact references to documents that no longer exist."""
    org_ids = {o.id for o in await organisations_repo.list_all(store)}
    contacts = await contacts_repo.list_all(store)
    contact_ids = {c.id for c in contacts}

    dangling: list[DanglingReference] = []
    for lead in await leads_repo.list_all(store):
        if lead.organisation_id is not None and lead.organisation_id not in org_ids:
            dangling.append(DanglingReference(
                "leads", lead.id, "organisation_id", "organisations", lead.organisation_id
            ))
        for contact_id in lead.contact_ids:
            if contact_id not in contact_ids:
                dangling.append(DanglingReference(
                    "leads", lead.id, "contact_ids", "contacts", contact_id
                ))
    for contact in contacts:
        for link in contact.organisations:
            if link.organisation_id not in org_ids:
                dangling.append(DanglingReference(
                    "contacts", contact.id, "organisations", "organisations", link.organisation_id
                ))

    if dangling:
        logger.warning("Found %d dangling references", len(dangling))
    return dangling


async def find_primary_conflicts(store: DocumentStore) -> dict[str, list[str]]:
    """Return organisation id -> contact ids for organisations with more than
    one primary contact. Reported only; nothing is demoted."""
    primaries: dict[str, list[str]] = {}
    for contact in await contacts_repo.list_all(store):
        for link in contact.organisations:
            if link.is_primary:
                primaries.setdefault(link.organisation_id, []).append(contact.id)
    return {org_id: ids for org_id, ids in primaries.items() if len(set(ids)) > 1}


async def resync_organisation_name(store: DocumentStore, organisation_id: str) -> int:
    """Copy the organisation's current name onto every lead and contact link
    that references it. Returns the number of documents rewritten.

    Each document is written independently; if a write fails, earlier
    rewrites stand and the call can simply be repeated.
    """
    org = await organisations_repo.require(store, organisation_id)
    rewritten = 0

    for lead in await leads_repo.by_organisation(store, organisation_id):
        if lead.organisation_name != org.name:
            await leads_repo.update(
                store, lead.id, {"organisation_id": org.id, "organisation_name": org.name}
            )
            rewritten += 1

    now = utc_now()
    for contact in await contacts_repo.list_all(store):
        stale = [
            link for link in contact.organisations
            if link.organisation_id == organisation_id and link.organisation_name != org.name
        ]
        if not stale:
            continue
        links = [
            link.model_copy(update={"organisation_name": org.name, "updated_at": now})
            if link in stale else link
            for link in contact.organisations
        ]
        await contacts_repo.set_links(store, contact.id, links)
        rewritten += 1

    logger.info("Resynced organisation name %r onto %d documents", org.name, rewritten)
    return rewritten
