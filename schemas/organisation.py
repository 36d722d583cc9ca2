"""Organisation schemas."""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class Address(BaseModel):
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    postcode: Optional[str] = None
    country: Optional[str] = None


class Organisation(BaseModel):
    """An organisation. Holds no relationship fields of its own: contacts and
    leads record their links to it."""

    id: str
    name: str
    type: Optional[str] = None
    status: str = "active"
    industry: Optional[str] = None
    website: Optional[str] = None
    notes: Optional[str] = None
    billing_address: Optional[Address] = None
    shipping_address: Optional[Address] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class OrganisationSummary(BaseModel):
    organisation_id: str
    organisation_name: str
