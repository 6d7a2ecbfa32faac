"""End-to-end rental requests against the in-memory lead store."""

import pytest

from rental_request.config import settings
from rental_request.form import (
    LEAD_ID_KEY,
    InMemoryDraftStore,
    JsonFileDraftStore,
    RentalFormController,
    SyncOutcome,
)
from rental_request.form.state_machine import FormStep
from rental_request.services.mock_lead_store import InMemoryLeadStore
from tests.conftest import advance_to, fill_step


@pytest.fixture
def backend():
    return InMemoryLeadStore(invalid_zips={"00000"})


@pytest.fixture
def flow(backend):
    return RentalFormController(backend, InMemoryDraftStore())


class TestHappyPath:
    @pytest.mark.asyncio
    async def test_full_request(self, flow, backend):
        await advance_to(flow, 6)

        assert flow.is_complete()
        assert [c[0] for c in backend.calls] == ["create", "update", "update", "update", "update"]
        assert len(backend.leads) == 1
        lead = next(iter(backend.leads.values()))
        assert lead["step__c"] == 5
        assert lead["company_name__c"] == "Summit Roofing"
        assert lead["renter_type__c"] == "company_contractor"
        assert lead["project_type__c"] == "roofing"
        assert lead["phone__c"] == "7175550142"

    @pytest.mark.asyncio
    async def test_location_shown_after_submit(self, flow):
        await advance_to(flow, 6)
        assert flow.location_result.name == "Equipter Lancaster"
        assert flow.location_result.distance_label() == "Approx 3.4 miles from your location"

    @pytest.mark.asyncio
    async def test_lead_id_forgotten_after_submit(self, flow):
        await advance_to(flow, 6)
        assert flow.draft_store.get(LEAD_ID_KEY) is None
        assert flow.draft.status.value == "submitted"

    @pytest.mark.asyncio
    async def test_step_trace(self, flow):
        await advance_to(flow, 6)
        assert flow.state_machine.get_step_trace() == [1, 2, 3, 4, 5, 6]


class TestRecovery:
    @pytest.mark.asyncio
    async def test_purged_lead_is_recreated(self, flow, backend):
        await advance_to(flow, 3)
        old_id = flow.draft.lead_id
        backend.purge()
        fill_step(flow, 3)

        result = await flow.advance()

        assert result.outcome == SyncOutcome.RECREATED
        assert flow.current_step == FormStep.DETAILS
        assert flow.draft.lead_id != old_id
        assert backend.calls[-2:] == [("update", old_id, 3), ("create", None, 3)]
        assert backend.get_lead(flow.draft.lead_id)["zip__c"] == "17601"

    @pytest.mark.asyncio
    async def test_purged_lead_at_final_step_still_completes(self, flow, backend):
        await advance_to(flow, 5)
        backend.purge()
        fill_step(flow, 5)
        result = await flow.advance()
        assert result.outcome == SyncOutcome.RECREATED
        assert flow.is_complete()
        assert flow.location_result is not None

    @pytest.mark.asyncio
    async def test_rate_limit_keeps_user_on_step(self, backend):
        backend.request_budget = 2
        flow = RentalFormController(backend, InMemoryDraftStore())
        await advance_to(flow, 3)
        fill_step(flow, 3)

        result = await flow.advance()

        assert result.outcome == SyncOutcome.RATE_LIMITED
        assert result.banner == settings.form.rate_limit_message
        assert flow.current_step == FormStep.DATES

    @pytest.mark.asyncio
    async def test_rejected_zip(self, flow, backend):
        fill_step(flow, 1, zipCode="00000")
        result = await flow.advance()
        assert result.outcome == SyncOutcome.INVALID
        assert "zipCode" in result.field_errors
        assert backend.leads == {}

        fill_step(flow, 1)
        assert (await flow.advance()).outcome == SyncOutcome.ADVANCED


class TestResume:
    @pytest.mark.asyncio
    async def test_reopened_form_updates_same_lead(self, backend, tmp_path):
        path = tmp_path / "draft.json"
        first = RentalFormController(backend, JsonFileDraftStore(path))
        await advance_to(first, 3)
        lead_id = first.draft.lead_id

        second = RentalFormController(backend, JsonFileDraftStore(path))
        assert second.draft.lead_id == lead_id
        assert second.current_step == FormStep.ZIP_CODE

        fill_step(second, 1)
        await second.advance()
        assert backend.calls[-1] == ("update", lead_id, 1)
        assert len(backend.leads) == 1
