"""Shared test fixtures and helpers."""

from typing import Any, Optional, Union

import httpx
import pytest

from rental_request.errors import LeadStoreError
from rental_request.form.controller import RentalFormController
from rental_request.form.persistence import InMemoryDraftStore
from rental_request.form.state_machine import FormStateMachine
from rental_request.schemas.lead_schema import LeadPayload, LeadResponse

VALID_ANSWERS: dict[int, dict[str, Any]] = {
    1: {"zipCode": "17601"},
    2: {"equipment": "m-4000"},
    3: {"startDate": "2030-05-04", "endDate": "2030-05-08"},
    4: {
        "customerType": "company_contractor",
        "companyName": "Summit Roofing",
        "firstName": "Jordan",
        "lastName": "Reyes",
        "projectType": "Roofing",
    },
    5: {"email": "jordan@summitroofing.com", "phone": "717-555-0142"},
}

Outcome = Union[LeadResponse, LeadStoreError]


class ScriptedLeadStore:
    """Fake lead store: records every call and replays queued outcomes.

    With nothing queued, creates succeed with ids L1, L2, ... and updates
    succeed for whatever id they were given.
    """

    def __init__(self) -> None:
        self.calls: list[tuple[str, Optional[str], LeadPayload, Optional[float]]] = []
        self.script: list[Outcome] = []
        self._created = 0

    def queue(self, *outcomes: Outcome) -> None:
        self.script.extend(outcomes)

    def _next(self, default: LeadResponse) -> LeadResponse:
        if self.script:
            outcome = self.script.pop(0)
            if isinstance(outcome, LeadStoreError):
                raise outcome
            return outcome
        return default

    async def create_lead(
        self, payload: LeadPayload, *, timeout: Optional[float] = None
    ) -> LeadResponse:
        self.calls.append(("create", None, payload, timeout))
        self._created += 1
        lead_id = f"L{self._created}"
        return self._next(LeadResponse(lead_id=lead_id, status_code=201, data={"id": lead_id}))

    async def update_lead(self, lead_id: str, payload: LeadPayload) -> LeadResponse:
        self.calls.append(("update", lead_id, payload, None))
        return self._next(LeadResponse(lead_id=lead_id, status_code=200, data={"id": lead_id}))

    @property
    def operations(self) -> list[str]:
        return [c[0] for c in self.calls]


class RecordingDraftStore(InMemoryDraftStore):
    """In-memory draft store that keeps a log of mutations."""

    def __init__(self, initial: Optional[dict[str, str]] = None) -> None:
        super().__init__(initial)
        self.ops: list[tuple[str, ...]] = []

    def set(self, key: str, value: str) -> None:
        self.ops.append(("set", key, value))
        super().set(key, value)

    def remove(self, key: str) -> None:
        self.ops.append(("remove", key))
        super().remove(key)

    def clear(self) -> None:
        self.ops.append(("clear",))
        super().clear()


@pytest.fixture
def state_machine():
    return FormStateMachine()


@pytest.fixture
def lead_store():
    return ScriptedLeadStore()


@pytest.fixture
def draft_store():
    return RecordingDraftStore()


@pytest.fixture
def controller(lead_store, draft_store):
    return RentalFormController(lead_store, draft_store, session_id="FORM-test")


def fill_step(controller: RentalFormController, step: int, **overrides: Any) -> None:
    """Apply valid answers for ``step``, with optional per-field overrides."""
    answers = {**VALID_ANSWERS[step], **overrides}
    for name, value in answers.items():
        controller.update_field(name, value)


async def advance_to(controller: RentalFormController, step: int) -> None:
    """Fill and submit steps until the controller sits on ``step``."""
    while int(controller.current_step) < step:
        fill_step(controller, int(controller.current_step))
        result = await controller.advance()
        assert result.succeeded, result


def mock_transport(handler) -> httpx.MockTransport:
    return httpx.MockTransport(handler)
