"""Lead store wire models: request payload and create/update responses."""

import logging
import math
from datetime import date
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from rental_request.schemas.draft_schema import RentalDraft

logger = logging.getLogger(__name__)

# Renter type is only reported once the user has reached the details step.
RENTER_TYPE_FROM_STEP = 4


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


class LeadPayload(BaseModel):
    """Body sent on POST /lead and PUT /lead/{id}.

    The full draft is sent on every step; ``step__c`` records which step
    the user just completed so the backend can track progress.
    """

    zip__c: Optional[str] = None
    help_me_choose__c: Optional[bool] = None
    selected_model__c: Optional[str] = None
    project_type__c: Optional[str] = None
    email__c: Optional[str] = None
    first_name__c: Optional[str] = None
    last_name__c: Optional[str] = None
    comments__c: Optional[str] = None
    renter_type__c: Optional[str] = None
    start_date__c: Optional[date] = None
    end_date__c: Optional[date] = None
    status__c: str = "draft"
    phone__c: Optional[str] = None
    company_name__c: Optional[str] = None
    step__c: Optional[int] = None

    @classmethod
    def from_draft(cls, draft: RentalDraft, step: int) -> "LeadPayload":
        """Build the payload for the call that completes ``step``."""
        renter_type = None
        if step >= RENTER_TYPE_FROM_STEP and draft.customer_type is not None:
            renter_type = draft.customer_type.value

        return cls(
            zip__c=_blank_to_none(draft.zip_code),
            help_me_choose__c=True if draft.needs_guidance else None,
            selected_model__c=(
                None if draft.needs_guidance else _blank_to_none(draft.equipment_selection)
            ),
            project_type__c=_blank_to_none(draft.project_type),
            email__c=_blank_to_none(draft.contact.email),
            first_name__c=_blank_to_none(draft.contact.first_name),
            last_name__c=_blank_to_none(draft.contact.last_name),
            comments__c=_blank_to_none(draft.contact.comments),
            renter_type__c=renter_type,
            start_date__c=draft.date_range.start,
            end_date__c=draft.date_range.end,
            status__c=draft.status.value,
            phone__c=_blank_to_none(draft.contact.phone),
            company_name__c=(
                _blank_to_none(draft.company_name) if draft.is_company else None
            ),
            step__c=step,
        )

    def to_json(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


class NearestLocation(BaseModel):
    """Rental location returned with the final step's response."""

    model_config = ConfigDict(
        populate_by_name=True, extra="ignore", coerce_numbers_to_str=True
    )

    name: Optional[str] = Field(default=None, alias="locName")
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip: Optional[str] = None
    country: Optional[str] = None
    phone: Optional[str] = None
    distance: Optional[float] = None

    @field_validator("distance", mode="before")
    @classmethod
    def _parse_distance(cls, value: Any) -> Optional[float]:
        # Anything that is not a finite number (blank, "12 mi", NaN) means no distance.
        if value is None or isinstance(value, bool):
            return None
        try:
            distance = float(value)
        except (TypeError, ValueError):
            return None
        return distance if math.isfinite(distance) else None

    def distance_label(self) -> str:
        if self.distance is None:
            return ""
        unit = "mile" if self.distance == 1 else "miles"
        return f"Approx {self.distance:.1f} {unit} from your location"

    def address_line(self) -> str:
        parts = [self.street, self.city, self.state, self.country, self.zip]
        return " - ".join(p for p in parts if p)

    def is_empty(self) -> bool:
        return not any([self.name, self.street, self.phone, self.distance is not None])


class LeadResponse(BaseModel):
    """Parsed ``{"data": {...}}`` body of a successful create/update."""

    lead_id: Optional[str] = None
    status_code: int = 200
    data: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_body(cls, body: Any, status_code: int) -> "LeadResponse":
        data = body.get("data") if isinstance(body, dict) else None
        if not isinstance(data, dict):
            data = {}
        raw_id = data.get("id")
        return cls(
            lead_id=str(raw_id) if raw_id not in (None, "") else None,
            status_code=status_code,
            data=data,
        )

    def nearest_location(self) -> Optional[NearestLocation]:
        """Location fields carried by the step 5 response, if any.

        A malformed location never fails the response: the lead was already
        accepted, so it is logged and dropped.
        """
        try:
            location = NearestLocation.model_validate(self.data)
        except ValidationError as exc:
            logger.warning(
                "Ignoring malformed location for lead %s: %d field error(s)",
                self.lead_id, exc.error_count(),
            )
            return None
        return None if location.is_empty() else location
