"""Lead schemas."""
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

LeadStatus = Literal["new", "contacted", "qualified", "unqualified", "converted"]


class ContactPerson(BaseModel):
    """Contact details copied onto a lead. A snapshot, not a reference."""

    full_name: str
    email: str
    phone: Optional[str] = None
    job_title: Optional[str] = None


class ContactDetails(BaseModel):
    """Details passed alongside a lead-contact link. Not persisted on the lead."""

    full_name: str = ""
    email: str = ""
    phone: Optional[str] = None
    job_title: Optional[str] = None


class Lead(BaseModel):
    id: str
    contact_person: ContactPerson
    organisation_id: Optional[str] = None
    organisation_name: Optional[str] = None
    status: LeadStatus = "new"
    source: str = ""
    notes: str = ""
    contact_ids: List[str] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("contact_ids")
    @classmethod
    def _dedupe_contact_ids(cls, value: List[str]) -> List[str]:
        return list(dict.fromkeys(value))

    @model_validator(mode="after")
    def _check_organisation_pair(self) -> "Lead":
        check_lead_organisation_pair(self.organisation_id, self.organisation_name)
        return self


def check_lead_organisation_pair(
    organisation_id: Optional[str], organisation_name: Optional[str]
) -> None:
    """Raise ValueError unless the id and name are both set or both cleared."""
    if (organisation_id is None) != (organisation_name is None):
        raise ValueError(
            "organisation_id and organisation_name must be set or cleared together "
            f"(got id={organisation_id!r}, name={organisation_name!r})"
        )
