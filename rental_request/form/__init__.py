from rental_request.form.controller import RentalFormController, StepResult, SyncOutcome
from rental_request.form.persistence import (
    LEAD_ID_KEY,
    DraftStore,
    InMemoryDraftStore,
    JsonFileDraftStore,
)
from rental_request.form.state_machine import (
    FormStateMachine,
    FormStep,
    RemoteOperation,
    StepTrigger,
)
from rental_request.form.validator import validate_step

__all__ = [
    "RentalFormController",
    "StepResult",
    "SyncOutcome",
    "FormStateMachine",
    "FormStep",
    "RemoteOperation",
    "StepTrigger",
    "DraftStore",
    "InMemoryDraftStore",
    "JsonFileDraftStore",
    "LEAD_ID_KEY",
    "validate_step",
]
