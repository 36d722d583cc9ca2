"""Lead <-> Organisation reference.

A lead carries at most one organisation as the pair (organisation_id,
organisation_name). Both are always written in the same update.
"""
import logging

import db.repositories.leads as leads_repo
from db.store import DocumentStore

logger = logging.getLogger(__name__)


async def link_lead_to_organisation(
    store: DocumentStore, lead_id: str, organisation_id: str, organisation_name: str
) -> None:
    """Point the lead at an organisation.

    The caller resolves organisation_name; it is stored as given and not
    checked against the organisation document. Both values must be non-empty.
    Raises NotFoundError if the lead does not exist.
    """
    if not organisation_id or not organisation_name:
        raise ValueError(
            "Linking a lead to an organisation needs both an organisation id and name"
        )
    await leads_repo.update(
        store,
        lead_id,
        {"organisation_id": organisation_id, "organisation_name": organisation_name},
    )
    logger.info("Linked lead %s to organisation %s", lead_id, organisation_id)


async def unlink_lead_from_organisation(store: DocumentStore, lead_id: str) -> None:
    """Clear the lead's organisation id and name together."""
    await leads_repo.update(
        store, lead_id, {"organisation_id": None, "organisation_name": None}
    )
    logger.info("Unlinked lead %s from its organisation", lead_id)
