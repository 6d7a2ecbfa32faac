"""
HTTP client for the remote lead store.

POST /lead creates a lead, PUT /lead/{id} updates it. Every failure is
raised as a LeadStoreError carrying a typed kind, so callers never have
to look at backend wording or status codes themselves.
"""

from __future__ import annotations

from typing import Any, Optional

import httpx

from rental_request.config import settings
from rental_request.errors import ConfigurationError, LeadStoreError, LeadStoreErrorKind
from rental_request.logging_context import get_session_logger
from rental_request.schemas.lead_schema import LeadPayload, LeadResponse
from rental_request.utils import generate_request_id

logger = get_session_logger(__name__)

SUCCESS_STATUSES = (200, 201)
INVALID_ZIP_MESSAGE = "Invalid zip code"
UPDATE_FAILED_MESSAGE = "Failed to update lead"


def classify_failure(status_code: Optional[int], message: str) -> LeadStoreErrorKind:
    """Map a failed response to an error kind, checked in priority order."""
    if status_code == 400 and message == INVALID_ZIP_MESSAGE:
        return LeadStoreErrorKind.INVALID_ZIP
    if status_code == 429:
        return LeadStoreErrorKind.RATE_LIMITED
    if status_code == 404 or message == UPDATE_FAILED_MESSAGE:
        return LeadStoreErrorKind.NOT_FOUND
    return LeadStoreErrorKind.UNKNOWN


def _read_json(resp: httpx.Response) -> Any:
    try:
        return resp.json()
    except ValueError:
        return {}


def _error_message(body: Any) -> str:
    if isinstance(body, dict):
        return str(body.get("message") or body.get("error") or "")
    return ""


class LeadStoreClient:
    """Creates and updates rental leads on the backend."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        api_prefix: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        root = settings.lead_api.api_base if base_url is None else base_url
        prefix = settings.lead_api.api_prefix if api_prefix is None else api_prefix
        root = (root or "").strip().rstrip("/")
        self.base_url = f"{root}{prefix}" if root else ""
        self.timeout = settings.lead_api.timeout_sec if timeout is None else timeout
        self._transport = transport

    def _headers(self) -> dict[str, str]:
        platform = settings.lead_api.platform
        return {
            "Content-Type": "application/json",
            "X-Client-Type": settings.lead_api.client_type,
            "X-Platform": platform,
            "User-Agent": f"{settings.client_name}/{platform}",
            "x-request-signature-id": generate_request_id(),
        }

    async def _send(
        self,
        method: str,
        path: str,
        *,
        json: Optional[dict[str, Any]] = None,
        timeout: Optional[float] = None,
    ) -> httpx.Response:
        if not self.base_url:
            raise ConfigurationError(
                "Lead API base URL is not configured. Set RENTAL_API_BASE in .env"
            )
        url = f"{self.base_url}{path}"
        try:
            async with httpx.AsyncClient(
                timeout=timeout or self.timeout, transport=self._transport
            ) as client:
                return await client.request(method, url, headers=self._headers(), json=json)
        except httpx.TransportError as exc:
            logger.warning("%s %s failed before a response: %s", method, path, exc)
            raise LeadStoreError(
                LeadStoreErrorKind.NETWORK,
                "Could not reach the server. Check your connection and try again.",
            ) from exc

    def _parse(self, method: str, path: str, resp: httpx.Response) -> LeadResponse:
        body = _read_json(resp)
        if resp.status_code not in SUCCESS_STATUSES:
            message = _error_message(body)
            kind = classify_failure(resp.status_code, message)
            logger.warning(
                "%s %s returned %d (%s)", method, path, resp.status_code, kind.value
            )
            raise LeadStoreError(kind, message, status_code=resp.status_code)
        return LeadResponse.from_body(body, resp.status_code)

    async def create_lead(
        self, payload: LeadPayload, *, timeout: Optional[float] = None
    ) -> LeadResponse:
        """Create a lead and return the response carrying its new id."""
        resp = await self._send("POST", "/lead", json=payload.to_json(), timeout=timeout)
        result = self._parse("POST", "/lead", resp)
        if not result.lead_id:
            raise LeadStoreError(
                LeadStoreErrorKind.UNKNOWN,
                "Lead created without an id",
                status_code=resp.status_code,
            )
        logger.info("Lead %s created at step %s", result.lead_id, payload.step__c)
        return result

    async def update_lead(self, lead_id: str, payload: LeadPayload) -> LeadResponse:
        """Update an existing lead with the full draft."""
        path = f"/lead/{lead_id}"
        resp = await self._send("PUT", path, json=payload.to_json())
        result = self._parse("PUT", path, resp)
        logger.info("Lead %s updated at step %s", lead_id, payload.step__c)
        return result

    async def ping(self) -> bool:
        """Check that the API answers GET /models."""
        logger.info("Testing API connection to %s", self.base_url or "<unset>")
        try:
            resp = await self._send("GET", "/models")
        except LeadStoreError as exc:
            logger.error("API connection failed: %s", exc)
            return False
        if resp.status_code in (401, 403):
            logger.error(
                "API connection refused with %d; the server may be blocking this client",
                resp.status_code,
            )
            return False
        if resp.status_code >= 400:
            logger.error("API connection failed with status %d", resp.status_code)
            return False
        logger.info("API connection successful")
        return True
