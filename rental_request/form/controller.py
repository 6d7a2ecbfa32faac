"""
Rental form controller: step validation, lead sync and error recovery.

The controller owns the draft and the step state machine. Moving forward
validates the current step, sends the whole draft to the lead store
(create on the first sync, update afterwards) and only advances once the
remote call succeeds. Failed calls are classified by kind and turned into
inline field errors or a banner; a lead that vanished server-side is
recreated transparently from the same payload.

Usage:
    controller = RentalFormController(LeadStoreClient(), JsonFileDraftStore(path))
    controller.update_field("zipCode", "17601")
    result = await controller.advance()
"""

import uuid
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Callable, Optional, Protocol

from rental_request.config import settings
from rental_request.errors import LeadStoreError, LeadStoreErrorKind
from rental_request.form import validator
from rental_request.form.persistence import LEAD_ID_KEY, DraftStore
from rental_request.form.state_machine import (
    FormStateMachine,
    FormStep,
    RemoteOperation,
    StepTrigger,
)
from rental_request.logging_context import get_session_logger, session_scope
from rental_request.schemas.draft_schema import (
    PROJECT_TYPES,
    CustomerType,
    LeadStatus,
    RentalDraft,
    project_type_slug,
)
from rental_request.schemas.lead_schema import LeadPayload, LeadResponse, NearestLocation
from rental_request.utils import digits_only

logger = get_session_logger(__name__)

INVALID_ZIP_FIELD_MESSAGE = "Please enter a valid ZIP code. The postal code should be valid."


class LeadStore(Protocol):
    """Remote lead operations the controller depends on."""

    async def create_lead(
        self, payload: LeadPayload, *, timeout: Optional[float] = None
    ) -> LeadResponse: ...

    async def update_lead(self, lead_id: str, payload: LeadPayload) -> LeadResponse: ...


class SyncOutcome(str, Enum):
    """What happened when the user pressed next."""
    ADVANCED = "advanced"
    RECREATED = "recreated"
    INVALID = "invalid"
    RATE_LIMITED = "rate_limited"
    FAILED = "failed"
    RESTARTED = "restarted"
    MOVED_BACK = "moved_back"
    IGNORED = "ignored"


@dataclass
class StepResult:
    """Outcome of one advance/previous action."""
    outcome: SyncOutcome
    step: int
    field_errors: dict[str, str] = field(default_factory=dict)
    banner: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.outcome in (SyncOutcome.ADVANCED, SyncOutcome.RECREATED)


def _coerce_date(value: Any) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value).strip()[:10])


def _coerce_customer_type(value: Any) -> Optional[CustomerType]:
    if value is None or value == "":
        return None
    return CustomerType(value)


def _coerce_project_type(value: Any) -> Optional[str]:
    if not value:
        return None
    value = str(value).strip()
    if value in PROJECT_TYPES:
        return project_type_slug(value)
    return value


class RentalFormController:
    """
    Drives one rental form session.

    Only one remote call may be in flight at a time: ``advance()`` and
    ``previous()`` are ignored while ``is_submitting`` is set, so a result
    always lands on the step that requested it.
    """

    _CONTACT_ATTRS = {
        "firstName": "first_name",
        "lastName": "last_name",
        "email": "email",
        "comments": "comments",
    }

    def __init__(
        self,
        lead_store: LeadStore,
        draft_store: DraftStore,
        *,
        on_submitting_change: Optional[Callable[[bool], None]] = None,
        session_id: Optional[str] = None,
    ) -> None:
        self.lead_store = lead_store
        self.draft_store = draft_store
        self.session_id = session_id or f"FORM-{uuid.uuid4().hex[:8]}"
        self.draft = RentalDraft()
        self.field_errors: dict[str, str] = {}
        self.api_error_banner: Optional[str] = None
        self.is_submitting = False
        self.location_result: Optional[NearestLocation] = None
        self._on_submitting_change = on_submitting_change
        self._sm = FormStateMachine(on_enter=self._on_step_entered)
        with session_scope(self.session_id):
            self._rehydrate()

    # ------------------------------------------------------------------ #
    # Exposed state
    # ------------------------------------------------------------------ #

    @property
    def current_step(self) -> FormStep:
        return self._sm.current_step

    @property
    def state_machine(self) -> FormStateMachine:
        return self._sm

    def is_complete(self) -> bool:
        return self._sm.is_terminal()

    # ------------------------------------------------------------------ #
    # Persistence
    # ------------------------------------------------------------------ #

    def _rehydrate(self) -> None:
        """Read the persisted lead id once; an empty store is wiped as a fresh install."""
        lead_id = self.draft_store.get(LEAD_ID_KEY)
        if not lead_id:
            self.draft_store.clear()
            self.draft.lead_id = None
            logger.debug("No saved lead; starting a fresh draft")
            return
        self.draft.lead_id = lead_id
        logger.info("Resuming lead %s", lead_id)

    def _remember_lead(self, lead_id: str) -> None:
        self.draft.lead_id = lead_id
        self.draft_store.set(LEAD_ID_KEY, lead_id)

    def _forget_lead(self) -> None:
        self.draft.lead_id = None
        self.draft_store.remove(LEAD_ID_KEY)

    def _on_step_entered(self, step: FormStep) -> None:
        if step == FormStep.SUCCESS:
            logger.info("Request complete; retiring lead %s", self.draft.lead_id)
            self._forget_lead()

    # ------------------------------------------------------------------ #
    # Field edits
    # ------------------------------------------------------------------ #

    def update_field(self, name: str, value: Any) -> bool:
        """
        Set one draft field by its form name and clear that field's error.

        Returns:
            False when the edit was rejected by the input mask
            (a phone number longer than allowed), True otherwise.

        Raises:
            ValueError: For an unknown field or an unparseable value.
        """
        d = self.draft
        if name == "zipCode":
            d.zip_code = digits_only(str(value or ""), limit=settings.form.max_zip_digits)
        elif name == "equipment":
            d.equipment_selection = str(value or "")
        elif name == "startDate":
            d.date_range.start = _coerce_date(value)
        elif name == "endDate":
            d.date_range.end = _coerce_date(value)
        elif name == "customerType":
            d.set_customer_type(_coerce_customer_type(value))
            self.field_errors.pop("companyName", None)
        elif name == "companyName":
            d.company_name = str(value or "")
        elif name == "projectType":
            d.project_type = _coerce_project_type(value)
        elif name == "phone":
            phone = digits_only(str(value or ""))
            if len(phone) > settings.form.phone_digits:
                return False
            d.contact.phone = phone
        elif name in self._CONTACT_ATTRS:
            setattr(d.contact, self._CONTACT_ATTRS[name], str(value or ""))
        else:
            raise ValueError(f"Unknown field: {name}")

        self.field_errors.pop(name, None)
        return True

    # ------------------------------------------------------------------ #
    # Navigation
    # ------------------------------------------------------------------ #

    def _clear_errors(self) -> None:
        self.field_errors = {}
        self.api_error_banner = None

    def _move(self, trigger: StepTrigger) -> FormStep:
        step = self._sm.transition(trigger)
        self._clear_errors()
        return step

    def _result(self, outcome: SyncOutcome) -> StepResult:
        return StepResult(
            outcome=outcome,
            step=int(self._sm.current_step),
            field_errors=dict(self.field_errors),
            banner=self.api_error_banner,
        )

    def previous(self) -> StepResult:
        """Go back one step locally; no remote call is made."""
        if self.is_submitting or self._sm.is_terminal():
            return self._result(SyncOutcome.IGNORED)
        self._move(StepTrigger.STEP_BACK)
        return self._result(SyncOutcome.MOVED_BACK)

    def reset(self) -> StepResult:
        """Start over with an empty draft and no saved lead."""
        with session_scope(self.session_id):
            self._forget_lead()
            self.draft = RentalDraft()
            self.location_result = None
            self._move(StepTrigger.RESET)
            logger.info("Form reset")
        return self._result(SyncOutcome.RESTARTED)

    def _set_submitting(self, value: bool, final: bool) -> None:
        self.is_submitting = value
        if final and self._on_submitting_change is not None:
            self._on_submitting_change(value)

    async def advance(self) -> StepResult:
        """Validate the current step, sync the draft and move forward on success."""
        with session_scope(self.session_id):
            return await self._advance()

    async def _advance(self) -> StepResult:
        if self.is_submitting:
            logger.warning("Advance ignored: a request is already in flight")
            return self._result(SyncOutcome.IGNORED)
        if self._sm.is_terminal():
            return self._result(SyncOutcome.IGNORED)

        step = self._sm.current_step
        self.api_error_banner = None
        errors = validator.validate_step(self.draft, step)
        if errors:
            self.field_errors.update(errors)
            return self._result(SyncOutcome.INVALID)

        payload = LeadPayload.from_draft(self.draft, int(step))
        operation = self._sm.operation_for(has_lead_id=bool(self.draft.lead_id))
        final = step == FormStep.CONTACT

        self._set_submitting(True, final)
        try:
            return await self._sync(step, operation, payload)
        finally:
            self._set_submitting(False, final)

    # ------------------------------------------------------------------ #
    # Remote sync
    # ------------------------------------------------------------------ #

    async def _sync(
        self, step: FormStep, operation: RemoteOperation, payload: LeadPayload
    ) -> StepResult:
        try:
            if operation == RemoteOperation.CREATE:
                response = await self.lead_store.create_lead(payload)
                self._remember_lead(response.lead_id)
            else:
                response = await self.lead_store.update_lead(self.draft.lead_id, payload)
        except LeadStoreError as exc:
            return await self._handle_failure(step, payload, exc)

        return self._complete(step, self._sm.trigger_for(operation), response, SyncOutcome.ADVANCED)

    def _complete(
        self,
        step: FormStep,
        trigger: StepTrigger,
        response: LeadResponse,
        outcome: SyncOutcome,
    ) -> StepResult:
        if step == FormStep.CONTACT:
            self.location_result = response.nearest_location()
            self.draft.status = LeadStatus.SUBMITTED
        self._move(trigger)
        return self._result(outcome)

    def _banner_for(self, exc: LeadStoreError) -> str:
        if exc.kind == LeadStoreErrorKind.RATE_LIMITED:
            return settings.form.rate_limit_message
        if exc.kind == LeadStoreErrorKind.CONFIGURATION and exc.message:
            return exc.message
        return settings.form.generic_error_message

    async def _handle_failure(
        self, step: FormStep, payload: LeadPayload, exc: LeadStoreError
    ) -> StepResult:
        self._clear_errors()
        logger.warning("Sync failed at step %d: %s", step, exc.kind.value)

        if exc.kind == LeadStoreErrorKind.INVALID_ZIP:
            self.field_errors[validator.ZIP_CODE] = INVALID_ZIP_FIELD_MESSAGE
            return self._result(SyncOutcome.INVALID)
        if exc.kind == LeadStoreErrorKind.RATE_LIMITED:
            self.api_error_banner = self._banner_for(exc)
            return self._result(SyncOutcome.RATE_LIMITED)
        if exc.kind == LeadStoreErrorKind.NOT_FOUND:
            return await self._recreate(step, payload)

        self.api_error_banner = self._banner_for(exc)
        return self._result(SyncOutcome.FAILED)

    async def _recreate(self, step: FormStep, payload: LeadPayload) -> StepResult:
        """Replace a lead the backend no longer knows with a fresh one."""
        if not self.draft.zip_code.strip():
            logger.info("Stale lead with no ZIP; returning to the first step")
            self._move(StepTrigger.ZIP_MISSING)
            return self._result(SyncOutcome.RESTARTED)

        stale_id = self.draft.lead_id
        self._forget_lead()
        try:
            response = await self.lead_store.create_lead(
                payload, timeout=settings.lead_api.recreate_timeout_sec
            )
        except LeadStoreError as retry_exc:
            logger.warning("Recreating stale lead %s failed: %s", stale_id, retry_exc.kind.value)
            self.api_error_banner = self._banner_for(retry_exc)
            return self._result(
                SyncOutcome.RATE_LIMITED
                if retry_exc.kind == LeadStoreErrorKind.RATE_LIMITED
                else SyncOutcome.FAILED
            )

        self._remember_lead(response.lead_id)
        logger.info("Stale lead %s replaced by %s", stale_id, response.lead_id)
        return self._complete(step, StepTrigger.LEAD_RECREATED, response, SyncOutcome.RECREATED)
