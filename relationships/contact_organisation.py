"""Contact <-> Organisation links.

Links live only on the contact, in its `organisations` collection. The
organisation document is never written. Linking the same pair twice is
allowed and produces two links with distinct relationship ids.
"""
import logging
from typing import Optional

import db.repositories.contacts as contacts_repo
import db.repositories.organisations as organisations_repo
from db.repositories.base import utc_now
from db.store import DocumentStore
from relationships.consistency import default_priority, new_relationship_id
from schemas.contact import Contact, OrganisationLink, OrganisationMember

logger = logging.getLogger(__name__)


async def link_contact_to_organisation(
    store: DocumentStore,
    contact_id: str,
    organisation_id: str,
    role: Optional[str],
    is_primary: bool,
    priority: Optional[int] = None,
    organisation_name: Optional[str] = None,
) -> None:
    """Append a new organisation link to the contact.

    The organisation's existence is not checked. When organisation_name is
    not given it is looked up; an absent organisation leaves the name empty.
    priority defaults to 1 for primary links and 10 otherwise.

    Raises NotFoundError if the contact does not exist.
    """
    contact = await contacts_repo.require(store, contact_id)
    if organisation_name is None:
        org = await organisations_repo.get(store, organisation_id)
        organisation_name = org.name if org is not None else ""

    now = utc_now()
    link = OrganisationLink(
        relationship_id=new_relationship_id(),
        organisation_id=organisation_id,
        organisation_name=organisation_name,
        role=role,
        is_primary=is_primary,
        priority=default_priority(is_primary) if priority is None else priority,
        created_at=now,
        updated_at=now,
    )
    await contacts_repo.set_links(store, contact_id, [*contact.organisations, link])
    logger.info(
        "Linked contact %s to organisation %s (relationship=%s, primary=%s)",
        contact_id, organisation_id, link.relationship_id, is_primary,
    )


async def _find_link_holder(
    store: DocumentStore, relationship_id: str, contact_id: Optional[str]
) -> Optional[Contact]:
    if contact_id is not None:
        contact = await contacts_repo.get(store, contact_id)
        candidates = [contact] if contact is not None else []
    else:
        candidates = await contacts_repo.list_all(store)
    for contact in candidates:
        if any(link.relationship_id == relationship_id for link in contact.organisations):
            return contact
    return None


async def unlink_contact_from_organisation(
    store: DocumentStore, relationship_id: str, contact_id: Optional[str] = None
) -> None:
    """Remove the link with this relationship id.

    Passing contact_id avoids scanning every contact. An unknown relationship
    id completes without error and without writing anything.
    """
    contact = await _find_link_holder(store, relationship_id, contact_id)
    if contact is None:
        logger.debug("No organisation link %s found; nothing to unlink", relationship_id)
        return
    remaining = [l for l in contact.organisations if l.relationship_id != relationship_id]
    await contacts_repo.set_links(store, contact.id, remaining)
    logger.info("Unlinked relationship %s from contact %s", relationship_id, contact.id)


async def update_contact_organisation_link(
    store: DocumentStore,
    relationship_id: str,
    *,
    role: Optional[str] = None,
    is_primary: Optional[bool] = None,
    priority: Optional[int] = None,
    contact_id: Optional[str] = None,
) -> None:
    """Edit role, primary flag or priority of an existing link in place.

    Only the given fields change. Other primary links for the same
    organisation are left alone. An unknown relationship id is a no-op.
    """
    contact = await _find_link_holder(store, relationship_id, contact_id)
    if contact is None:
        logger.debug("No organisation link %s found; nothing to update", relationship_id)
        return

    changes: dict = {"updated_at": utc_now()}
    if role is not None:
        changes["role"] = role
    if is_primary is not None:
        changes["is_primary"] = is_primary
    if priority is not None:
        changes["priority"] = priority

    links = [
        link.model_copy(update=changes) if link.relationship_id == relationship_id else link
        for link in contact.organisations
    ]
    await contacts_repo.set_links(store, contact.id, links)
    logger.info("Updated relationship %s on contact %s", relationship_id, contact.id)


async def organisations_for_contact(
    store: DocumentStore, contact_id: str
) -> list[OrganisationLink]:
    """The contact's organisation links, highest precedence first."""
    contact = await contacts_repo.require(store, contact_id)
    return sorted(contact.organisations, key=lambda link: link.priority)


async def contacts_for_organisation(
    store: DocumentStore, organisation_id: str
) -> list[OrganisationMember]:
    """Every (contact, link) pair pointing at this organisation, highest
    precedence first. Found by scanning contacts; there is no reverse index."""
    members = [
        OrganisationMember(contact=contact, link=link)
        for contact in await contacts_repo.list_all(store)
        for link in contact.organisations
        if link.organisation_id == organisation_id
    ]
    members.sort(key=lambda m: m.link.priority)
    return members
