"""
Client for the CMS forms API.

Submits a finished rental draft as a form entry (POST /api/forms/submit)
and reads an entry back with its nearest rental location
(GET /api/forms/entry/{id}).
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

import httpx
from pydantic import BaseModel, Field

from rental_request.config import settings
from rental_request.errors import ConfigurationError, LeadStoreError, LeadStoreErrorKind
from rental_request.logging_context import get_session_logger
from rental_request.schemas.draft_schema import RentalDraft, project_type_label
from rental_request.schemas.lead_schema import NearestLocation

logger = get_session_logger(__name__)

DEFAULT_FORM_TITLE = "Rental Request Form"


class FormField(BaseModel):
    fieldId: str
    fieldLabel: str
    fieldType: str
    value: str


class FormSubmission(BaseModel):
    form_ref: str
    form_title: str = DEFAULT_FORM_TITLE
    fields: list[FormField] = Field(default_factory=list)
    metadata: dict[str, str] = Field(default_factory=dict)


def build_form_fields(draft: RentalDraft) -> list[FormField]:
    """Flatten a draft into labelled form fields; empty values are skipped."""
    start = draft.date_range.start.isoformat() if draft.date_range.start else ""
    end = draft.date_range.end.isoformat() if draft.date_range.end else ""
    rows = [
        ("zipCode", "ZIP Code", "text", draft.zip_code),
        ("equipment", "Equipment", "select", draft.equipment_selection),
        ("startDate", "Start Date", "date", start),
        ("endDate", "End Date", "date", end),
        ("customerType", "Renter Type", "radio",
         draft.customer_type.value if draft.customer_type else ""),
        ("companyName", "Company Name", "text", draft.company_name if draft.is_company else ""),
        ("projectType", "Project Type", "select", project_type_label(draft.project_type) or ""),
        ("firstName", "First Name", "text", draft.contact.first_name),
        ("lastName", "Last Name", "text", draft.contact.last_name),
        ("email", "Email Address", "email", draft.contact.email),
        ("phone", "Phone Number", "tel", draft.contact.phone),
        ("comments", "Additional Comments", "textarea", draft.contact.comments),
    ]
    return [
        FormField(fieldId=fid, fieldLabel=label, fieldType=ftype, value=value.strip())
        for fid, label, ftype, value in rows
        if value and value.strip()
    ]


class FormsApiClient:
    """Posts rental requests as CMS form entries."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        root = settings.lead_api.forms_base if base_url is None else base_url
        self.base_url = (root or "").strip().rstrip("/")
        self.timeout = settings.lead_api.timeout_sec if timeout is None else timeout
        self._transport = transport

    def _require_base(self) -> None:
        if not self.base_url:
            raise ConfigurationError(
                "Forms API URL is not configured. Set RENTAL_FORMS_SUBMIT_URL in .env"
            )

    async def _request(self, method: str, path: str, **kwargs: Any) -> tuple[int, Any]:
        self._require_base()
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                resp = await client.request(method, f"{self.base_url}{path}", **kwargs)
        except httpx.TransportError as exc:
            logger.warning("%s %s failed before a response: %s", method, path, exc)
            raise LeadStoreError(
                LeadStoreErrorKind.NETWORK,
                "Could not reach the server. If you are on a device, use your "
                "computer's IP address instead of localhost in RENTAL_FORMS_SUBMIT_URL.",
            ) from exc
        try:
            body = resp.json()
        except ValueError:
            body = {}
        return resp.status_code, body if isinstance(body, dict) else {}

    async def submit_form(self, submission: FormSubmission) -> str:
        """Submit a form entry and return its id."""
        body = {
            "formId": submission.form_ref,
            "form": {"_type": "reference", "_ref": submission.form_ref},
            "formTitle": submission.form_title or DEFAULT_FORM_TITLE,
            "submittedAt": datetime.now(timezone.utc).isoformat(),
            "sourceUrl": "mobile-app",
            "userAgent": settings.client_name,
            "fields": [f.model_dump() for f in submission.fields],
            "metadata": submission.metadata,
        }
        status, data = await self._request(
            "POST",
            "/api/forms/submit",
            json=body,
            headers={"Content-Type": "application/json"},
        )
        if status >= 400:
            raise LeadStoreError(
                LeadStoreErrorKind.UNKNOWN,
                str(data.get("message") or data.get("error") or "Submission failed"),
                status_code=status,
            )
        if data.get("success") and data.get("entryId"):
            logger.info("Form entry %s submitted", data["entryId"])
            return str(data["entryId"])
        raise LeadStoreError(
            LeadStoreErrorKind.UNKNOWN,
            str(data.get("message") or data.get("error") or "Unknown error"),
            status_code=status,
        )

    async def fetch_entry(self, entry_id: str) -> tuple[dict[str, Any], Optional[NearestLocation]]:
        """Load a submitted entry and its nearest rental location."""
        status, data = await self._request("GET", f"/api/forms/entry/{entry_id}")
        if status >= 400 or data.get("success") is False:
            raise LeadStoreError(
                LeadStoreErrorKind.NOT_FOUND if status == 404 else LeadStoreErrorKind.UNKNOWN,
                str(data.get("error") or "Failed to load entry"),
                status_code=status,
            )
        location = None
        raw_location = data.get("nearestLocation")
        if isinstance(raw_location, dict):
            # The forms API reports postal codes as postalCode.
            raw_location = {**raw_location}
            if "postalCode" in raw_location and "zip" not in raw_location:
                raw_location["zip"] = raw_location["postalCode"]
            location = NearestLocation.model_validate(raw_location)
        entry = data.get("entry")
        return (entry if isinstance(entry, dict) else {}), location
