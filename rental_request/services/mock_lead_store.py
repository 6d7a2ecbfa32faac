"""
In-memory lead store.

Behaves like the remote backend closely enough to drive the form offline:
leads get short ids, unknown ZIP codes are rejected, leads can be purged
to simulate server-side expiry, and a request budget can simulate rate
limiting. Used by the console demo and by tests.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Optional

from rental_request.errors import LeadStoreError, LeadStoreErrorKind
from rental_request.schemas.lead_schema import LeadPayload, LeadResponse

logger = logging.getLogger(__name__)

FINAL_STEP = 5

DEFAULT_LOCATION: dict[str, Any] = {
    "locName": "Equipter Lancaster",
    "street": "100 Rental Way",
    "city": "Lancaster",
    "state": "PA",
    "zip": "17601",
    "country": "US",
    "phone": "7175550100",
    "distance": 3.4,
}


class InMemoryLeadStore:
    """Mock lead backend with the same interface as LeadStoreClient."""

    def __init__(
        self,
        *,
        invalid_zips: Optional[set[str]] = None,
        request_budget: Optional[int] = None,
        location: Optional[dict[str, Any]] = None,
    ) -> None:
        self.leads: dict[str, dict[str, Any]] = {}
        self.calls: list[tuple[str, Optional[str], int]] = []
        self.invalid_zips = set(invalid_zips or ())
        self.request_budget = request_budget
        self.location = dict(DEFAULT_LOCATION if location is None else location)

    def _charge(self) -> None:
        if self.request_budget is None:
            return
        if self.request_budget <= 0:
            raise LeadStoreError(
                LeadStoreErrorKind.RATE_LIMITED, "Too many requests", status_code=429
            )
        self.request_budget -= 1

    def _check_zip(self, payload: LeadPayload) -> None:
        if payload.zip__c and payload.zip__c in self.invalid_zips:
            raise LeadStoreError(
                LeadStoreErrorKind.INVALID_ZIP, "Invalid zip code", status_code=400
            )

    def _response(self, lead_id: str, payload: LeadPayload, status_code: int) -> LeadResponse:
        data: dict[str, Any] = {"id": lead_id}
        if payload.step__c == FINAL_STEP:
            data.update(self.location)
        return LeadResponse(lead_id=lead_id, status_code=status_code, data=data)

    async def create_lead(
        self, payload: LeadPayload, *, timeout: Optional[float] = None
    ) -> LeadResponse:
        self.calls.append(("create", None, payload.step__c or 0))
        self._charge()
        self._check_zip(payload)
        lead_id = f"L-{uuid.uuid4().hex[:8].upper()}"
        self.leads[lead_id] = {
            **payload.to_json(),
            "created_at": datetime.now(timezone.utc).isoformat(),
        }
        logger.info("Mock lead created: %s", lead_id)
        return self._response(lead_id, payload, 201)

    async def update_lead(self, lead_id: str, payload: LeadPayload) -> LeadResponse:
        self.calls.append(("update", lead_id, payload.step__c or 0))
        self._charge()
        if lead_id not in self.leads:
            raise LeadStoreError(
                LeadStoreErrorKind.NOT_FOUND, "Failed to update lead", status_code=404
            )
        self._check_zip(payload)
        self.leads[lead_id].update(payload.to_json())
        logger.info("Mock lead updated: %s (step %s)", lead_id, payload.step__c)
        return self._response(lead_id, payload, 200)

    def purge(self, lead_id: Optional[str] = None) -> None:
        """Drop one lead (or all), as a server-side expiry would."""
        if lead_id is None:
            self.leads.clear()
        else:
            self.leads.pop(lead_id, None)
        logger.info("Mock leads purged: %s", lead_id or "all")

    def get_lead(self, lead_id: str) -> Optional[dict[str, Any]]:
        return self.leads.get(lead_id)
