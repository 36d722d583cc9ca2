"""Lead <-> Contact links, stored as the lead's `contact_ids` list.

Both operations read the lead, compute the new list and write it back
whole. Two concurrent calls on the same lead can therefore lose one
update: each reads the same starting list and the later write wins.
"""
import logging
from typing import Optional, Union

import db.repositories.contacts as contacts_repo
import db.repositories.leads as leads_repo
from db.store import DocumentStore
from relationships.consistency import union_ids, without_id
from schemas.contact import Contact
from schemas.lead import ContactDetails

logger = logging.getLogger(__name__)


async def link_lead_to_contact(
    store: DocumentStore,
    lead_id: str,
    contact_id: str,
    contact_details: Optional[Union[ContactDetails, dict]] = None,
) -> None:
    """Add contact_id to the lead. No write when it is already linked.

    contact_details is accepted for callers that have it to hand but is not
    stored; the lead keeps only the id.
    Raises NotFoundError if the lead does not exist.
    """
    lead = await leads_repo.require(store, lead_id)
    if contact_id in lead.contact_ids:
        logger.debug("Contact %s already linked to lead %s", contact_id, lead_id)
        return
    await leads_repo.update(
        store, lead_id, {"contact_ids": union_ids(lead.contact_ids, contact_id)}
    )
    logger.info("Linked lead %s to contact %s", lead_id, contact_id)


async def unlink_lead_from_contact(
    store: DocumentStore, lead_id: str, contact_id: str
) -> None:
    """Remove contact_id from the lead. No write when it is not linked.

    Raises NotFoundError if the lead does not exist.
    """
    lead = await leads_repo.require(store, lead_id)
    if contact_id not in lead.contact_ids:
        logger.debug("Contact %s not linked to lead %s", contact_id, lead_id)
        return
    await leads_repo.update(
        store, lead_id, {"contact_ids": without_id(lead.contact_ids, contact_id)}
    )
    logger.info("Unlinked lead %s from contact %s", lead_id, contact_id)


async def contacts_for_lead(store: DocumentStore, lead_id: str) -> list[Contact]:
    """Resolve the lead's contact ids in order, skipping deleted contacts."""
    lead = await leads_repo.require(store, lead_id)
    contacts = []
    for contact_id in lead.contact_ids:
        contact = await contacts_repo.get(store, contact_id)
        if contact is None:
            logger.debug("Lead %s references missing contact %s", lead_id, contact_id)
            continue
        contacts.append(contact)
    return contacts
