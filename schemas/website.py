"""Website schemas."""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from schemas.organisation import OrganisationSummary


class Website(BaseModel):
    id: str
    domain: str
    url: Optional[str] = None
    organisation_id: Optional[str] = None
    status: str = "active"
    hosting_provider: Optional[str] = None
    cms: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class WebsiteWithOrganisation(Website):
    organisation: Optional[OrganisationSummary] = None
