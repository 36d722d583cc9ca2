"""Contact and contact-organisation link schemas."""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, model_validator


class OrganisationLink(BaseModel):
    """One contact's membership of one organisation, stored on the contact.

    organisation_name is a snapshot taken when the link was written; it is
    not refreshed when the organisation is renamed.
    """

    relationship_id: str
    organisation_id: str
    organisation_name: str = ""
    role: Optional[str] = None
    is_primary: bool = False
    priority: int = 10  # lower = shown first
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class Contact(BaseModel):
    id: str
    first_name: str = ""
    last_name: str = ""
    full_name: str = ""
    email: str
    phone: Optional[str] = None
    mobile: Optional[str] = None
    role: Optional[str] = None
    status: str = "active"
    notes: Optional[str] = None
    organisations: List[OrganisationLink] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @model_validator(mode="after")
    def _derive_full_name(self) -> "Contact":
        if not self.full_name:
            self.full_name = join_name(self.first_name, self.last_name)
        return self

    def primary_link(self) -> Optional[OrganisationLink]:
        """The link flagged primary, else the highest-precedence link, else None."""
        if not self.organisations:
            return None
        for link in self.organisations:
            if link.is_primary:
                return link
        return min(self.organisations, key=lambda link: link.priority)


class OrganisationMember(BaseModel):
    """A contact as seen from an organisation: the contact plus its link."""

    contact: Contact
    link: OrganisationLink


def join_name(first_name: Optional[str], last_name: Optional[str]) -> str:
    return f"{first_name or ''} {last_name or ''}".strip()
