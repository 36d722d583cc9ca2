from .contacts import ContactsHook, OrganisationContactsHook
from .leads import LeadContactsHook, LeadOrganisationsHook, LeadsHook
from .organisations import OrganisationsHook
from .state import ActionError
from .websites import WebsitesHook

__all__ = [
    "ActionError",
    "OrganisationsHook",
    "ContactsHook",
    "LeadsHook",
    "WebsitesHook",
    "OrganisationContactsHook",
    "LeadOrganisationsHook",
    "LeadContactsHook",
]
