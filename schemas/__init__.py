from .organisation import Address, Organisation, OrganisationSummary
from .contact import Contact, OrganisationLink, OrganisationMember
from .lead import (
    ContactDetails,
    ContactPerson,
    Lead,
    LeadStatus,
    check_lead_organisation_pair,
)
from .website import Website, WebsiteWithOrganisation

__all__ = [
    "Address", "Organisation", "OrganisationSummary",
    "Contact", "OrganisationLink", "OrganisationMember",
    "ContactDetails", "ContactPerson", "Lead", "LeadStatus",
    "check_lead_organisation_pair",
    "Website", "WebsiteWithOrganisation",
]
