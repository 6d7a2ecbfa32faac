"""Client-side rental draft held for the lifetime of one form session."""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Optional

NOT_SURE = "not-sure"

PROJECT_TYPES: list[str] = [
    "Roofing",
    "Landscaping",
    "General Construction",
    "Restoration",
    "Home Renovation",
    "Commercial Project",
    "Other",
]


class CustomerType(str, Enum):
    COMPANY_CONTRACTOR = "company_contractor"
    INDIVIDUAL_HOMEOWNER = "individual_homeowner"


class LeadStatus(str, Enum):
    DRAFT = "draft"
    SUBMITTED = "submitted"
    CLOSED = "closed"


def project_type_slug(label: str) -> str:
    """Turn a project type label into the value stored on the lead.

    >>> project_type_slug("General Construction")
    'general-construction'
    """
    return "-".join(label.lower().split())


def project_type_label(slug: Optional[str]) -> Optional[str]:
    """Reverse of project_type_slug; unknown slugs are returned unchanged."""
    if not slug:
        return None
    for label in PROJECT_TYPES:
        if project_type_slug(label) == slug:
            return label
    return slug


@dataclass
class DateRange:
    start: Optional[date] = None
    end: Optional[date] = None


@dataclass
class ContactInfo:
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    phone: str = ""
    comments: str = ""


@dataclass
class RentalDraft:
    """
    In-progress rental request.

    Only ``lead_id`` survives a restart; every other field starts empty
    when the form mounts and lives in memory until the request is sent.
    """
    lead_id: Optional[str] = None
    zip_code: str = ""
    equipment_selection: str = ""
    date_range: DateRange = field(default_factory=DateRange)
    customer_type: Optional[CustomerType] = None
    company_name: str = ""
    project_type: Optional[str] = None
    contact: ContactInfo = field(default_factory=ContactInfo)
    status: LeadStatus = LeadStatus.DRAFT

    @property
    def needs_guidance(self) -> bool:
        """True when the user asked for help choosing equipment."""
        return self.equipment_selection == NOT_SURE

    @property
    def is_company(self) -> bool:
        return self.customer_type == CustomerType.COMPANY_CONTRACTOR

    def set_customer_type(self, customer_type: Optional[CustomerType]) -> None:
        """Change the renter type, dropping a company name that no longer applies."""
        self.customer_type = customer_type
        if customer_type != CustomerType.COMPANY_CONTRACTOR:
            self.company_name = ""
