"""Lead hooks: the lead list/detail hook and the two lead relationship hooks.

The relationship hooks do not hold lead data themselves. Bind them to a
LeadsHook and it is refreshed after every successful link or unlink.
"""
from typing import Optional

import db.repositories.leads as leads_repo
from db.store import DocumentStore
from hooks.state import ActionError, EntityHook, Hook
from relationships import (
    contacts_for_lead,
    link_lead_to_contact,
    link_lead_to_organisation,
    unlink_lead_from_contact,
    unlink_lead_from_organisation,
)
from schemas.contact import Contact
from schemas.lead import ContactDetails


class LeadsHook(EntityHook):
    repo = leads_repo
    noun = "lead"
    ACTIONS = EntityHook.ACTIONS + ("by_organisation", "by_contact")

    @property
    def leads(self):
        return self.items

    @property
    def selected_lead(self):
        return self.selected

    async def by_organisation(self, organisation_id: str) -> None:
        self._last_query = (self.by_organisation, (organisation_id,))
        await self._load(
            f"Failed to fetch leads for organisation {organisation_id}",
            leads_repo.by_organisation(self.store, organisation_id),
        )

    async def by_contact(self, contact_id: str) -> None:
        self._last_query = (self.by_contact, (contact_id,))
        await self._load(
            f"Failed to fetch leads for contact {contact_id}",
            leads_repo.by_contact(self.store, contact_id),
        )


class _LeadLinkHook(Hook):
    FLAGS = ("linking", "unlinking")
    ERRORS = ("link_error", "unlink_error")

    def __init__(self, store: DocumentStore, leads_hook: Optional[LeadsHook] = None):
        super().__init__(store)
        self.leads_hook = leads_hook
        self.linking = False
        self.unlinking = False
        self.link_error: Optional[ActionError] = None
        self.unlink_error: Optional[ActionError] = None

    async def _refresh(self, lead_id: str) -> None:
        if self.leads_hook is not None:
            await self.leads_hook.refresh(lead_id)


class LeadOrganisationsHook(_LeadLinkHook):
    ACTIONS = ("link", "unlink", "clear_errors")

    async def link(self, lead_id: str, organisation_id: str, organisation_name: str) -> None:
        async with self._tracking(
            "linking", "link_error", f"Failed to link lead {lead_id} to organisation {organisation_id}", reraise=True
        ):
            await link_lead_to_organisation(self.store, lead_id, organisation_id, organisation_name)
            await self._refresh(lead_id)

    async def unlink(self, lead_id: str) -> None:
        async with self._tracking(
            "unlinking", "unlink_error", f"Failed to unlink lead {lead_id} from its organisation", reraise=True
        ):
            await unlink_lead_from_organisation(self.store, lead_id)
            await self._refresh(lead_id)


class LeadContactsHook(_LeadLinkHook):
    DATA = ("contacts",)
    FLAGS = _LeadLinkHook.FLAGS + ("loading",)
    ERRORS = _LeadLinkHook.ERRORS + ("error",)
    ACTIONS = ("fetch_for_lead", "link", "unlink", "clear_errors")

    def __init__(self, store: DocumentStore, leads_hook: Optional[LeadsHook] = None):
        super().__init__(store, leads_hook)
        self.contacts: list[Contact] = []
        self.loading = False
        self.error: Optional[ActionError] = None
        self._lead_id: Optional[str] = None

    async def fetch_for_lead(self, lead_id: str) -> None:
        self._lead_id = lead_id
        async with self._tracking("loading", "error", f"Failed to fetch contacts for lead {lead_id}", reraise=False):
            self.contacts = await contacts_for_lead(self.store, lead_id)

    async def _refresh(self, lead_id: str) -> None:
        if self._lead_id == lead_id:
            await self.fetch_for_lead(lead_id)
        await super()._refresh(lead_id)

    async def link(
        self, lead_id: str, contact_id: str, contact_details: Optional[ContactDetails] = None
    ) -> None:
        async with self._tracking(
            "linking", "link_error", f"Failed to link lead {lead_id} to contact {contact_id}", reraise=True
        ):
            await link_lead_to_contact(self.store, lead_id, contact_id, contact_details)
            await self._refresh(lead_id)

    async def unlink(self, lead_id: str, contact_id: str) -> None:
        async with self._tracking(
            "unlinking", "unlink_error", f"Failed to unlink contact {contact_id} from lead {lead_id}", reraise=True
        ):
            await unlink_lead_from_contact(self.store, lead_id, contact_id)
            await self._refresh(lead_id)
