"""Relationship coordination between contacts, organisations and leads.

Links are one-sided: a contact stores its organisation links, a lead stores
its organisation reference and contact ids. Organisations store nothing.
Every operation writes a single document, so there is no partial-failure
window between two writes.
"""
from .contact_organisation import (
    contacts_for_organisation,
    link_contact_to_organisation,
    organisations_for_contact,
    unlink_contact_from_organisation,
    update_contact_organisation_link,
)
from .lead_contact import contacts_for_lead, link_lead_to_contact, unlink_lead_from_contact
from .lead_organisation import link_lead_to_organisation, unlink_lead_from_organisation

__all__ = [
    "link_contact_to_organisation",
    "unlink_contact_from_organisation",
    "update_contact_organisation_link",
    "organisations_for_contact",
    "contacts_for_organisation",
    "link_lead_to_organisation",
    "unlink_lead_from_organisation",
    "link_lead_to_contact",
    "unlink_lead_from_contact",
    "contacts_for_lead",
]
