"""Contact hooks: the contact list/detail hook and the contact <-> organisation
relationship hook."""
from typing import Optional

import db.repositories.contacts as contacts_repo
from db.store import DocumentStore
from hooks.state import ActionError, EntityHook, Hook
from relationships import (
    contacts_for_organisation,
    link_contact_to_organisation,
    organisations_for_contact,
    unlink_contact_from_organisation,
    update_contact_organisation_link,
)
from schemas.contact import OrganisationLink, OrganisationMember


class ContactsHook(EntityHook):
    repo = contacts_repo
    noun = "contact"

    @property
    def contacts(self):
        return self.items

    @property
    def selected_contact(self):
        return self.selected


class OrganisationContactsHook(Hook):
    """Contacts of one organisation and organisations of one contact.

    Mutations reload whichever of the two views is open and, when bound,
    the contacts hook, since links are stored on contacts.
    """

    DATA = ("organisation_contacts", "contact_organisations")
    FLAGS = ("loading", "submitting")
    ERRORS = ("error", "submit_error")
    ACTIONS = (
        "fetch_for_organisation",
        "fetch_for_contact",
        "add_contact_to_organisation",
        "update_link",
        "remove_contact_from_organisation",
        "clear_errors",
    )

    def __init__(self, store: DocumentStore, contacts_hook: Optional[ContactsHook] = None):
        super().__init__(store)
        self.contacts_hook = contacts_hook
        self.organisation_contacts: list[OrganisationMember] = []
        self.contact_organisations: list[OrganisationLink] = []
        self.loading = False
        self.submitting = False
        self.error: Optional[ActionError] = None
        self.submit_error: Optional[ActionError] = None
        self._organisation_id: Optional[str] = None
        self._contact_id: Optional[str] = None

    async def fetch_for_organisation(self, organisation_id: str) -> None:
        self._organisation_id = organisation_id
        async with self._tracking(
            "loading", "error", f"Failed to fetch contacts for organisation {organisation_id}", reraise=False
        ):
            self.organisation_contacts = await contacts_for_organisation(self.store, organisation_id)

    async def fetch_for_contact(self, contact_id: str) -> None:
        self._contact_id = contact_id
        async with self._tracking(
            "loading", "error", f"Failed to fetch organisations for contact {contact_id}", reraise=False
        ):
            self.contact_organisations = await organisations_for_contact(self.store, contact_id)

    async def _refresh(self, contact_id: Optional[str] = None) -> None:
        if self._organisation_id is not None:
            await self.fetch_for_organisation(self._organisation_id)
        if self._contact_id is not None:
            await self.fetch_for_contact(self._contact_id)
        if self.contacts_hook is not None:
            await self.contacts_hook.refresh(contact_id)

    async def add_contact_to_organisation(
        self,
        contact_id: str,
        organisation_id: str,
        role: Optional[str] = None,
        is_primary: bool = False,
        priority: Optional[int] = None,
        organisation_name: Optional[str] = None,
    ) -> None:
        async with self._tracking(
            "submitting",
            "submit_error",
            f"Failed to add contact {contact_id} to organisation {organisation_id}",
            reraise=True,
        ):
            await link_contact_to_organisation(
                self.store, contact_id, organisation_id, role, is_primary, priority, organisation_name
            )
            self._organisation_id = organisation_id
            await self._refresh(contact_id)

    async def update_link(
        self,
        relationship_id: str,
        *,
        role: Optional[str] = None,
        is_primary: Optional[bool] = None,
        priority: Optional[int] = None,
        contact_id: Optional[str] = None,
    ) -> None:
        async with self._tracking(
            "submitting", "submit_error", f"Failed to update relationship {relationship_id}", reraise=True
        ):
            await update_contact_organisation_link(
                self.store,
                relationship_id,
                role=role,
                is_primary=is_primary,
                priority=priority,
                contact_id=contact_id,
            )
            await self._refresh(contact_id)

    async def remove_contact_from_organisation(
        self, relationship_id: str, contact_id: Optional[str] = None
    ) -> None:
        async with self._tracking(
            "submitting", "submit_error", f"Failed to remove relationship {relationship_id}", reraise=True
        ):
            await unlink_contact_from_organisation(self.store, relationship_id, contact_id)
            await self._refresh(contact_id)
