"""
Per-step validation for the rental form.

Each step has a rule that inspects the draft and returns a mapping of
field name to a human-readable message. An empty mapping means the step
is valid. Rules are pure and never touch the network or persistence.

Usage:
    errors = validate_step(draft, FormStep.ZIP_CODE)
    if errors:
        ...  # show inline, do not call the lead store
"""

import logging
import re
from typing import Callable

from rental_request.config import settings
from rental_request.form.state_machine import FormStep
from rental_request.schemas.draft_schema import CustomerType, RentalDraft
from rental_request.utils import digits_only

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")

FieldErrors = dict[str, str]

# Field names as the presentation layer knows them
ZIP_CODE = "zipCode"
EQUIPMENT = "equipment"
START_DATE = "startDate"
END_DATE = "endDate"
CUSTOMER_TYPE = "customerType"
FIRST_NAME = "firstName"
LAST_NAME = "lastName"
COMPANY_NAME = "companyName"
EMAIL = "email"
PHONE = "phone"


def is_valid_email(value: str) -> bool:
    return bool(EMAIL_PATTERN.match(value.strip()))


def is_valid_zip(value: str) -> bool:
    return len(digits_only(value)) >= settings.form.min_zip_digits


def is_valid_phone(value: str) -> bool:
    return len(digits_only(value)) == settings.form.phone_digits


def _validate_zip_step(draft: RentalDraft) -> FieldErrors:
    if not is_valid_zip(draft.zip_code):
        return {
            ZIP_CODE: "Please enter a valid ZIP code "
            "(we need your location to find nearby rentals).",
        }
    return {}


def _validate_equipment_step(draft: RentalDraft) -> FieldErrors:
    # The "not sure" sentinel is a real choice.
    if not draft.equipment_selection.strip():
        return {EQUIPMENT: "Please select the Equipter model you'd like to rent."}
    return {}


def _validate_dates_step(draft: RentalDraft) -> FieldErrors:
    start, end = draft.date_range.start, draft.date_range.end
    if start is None:
        return {START_DATE: "Please select a start date for your rental."}
    if end is not None and end < start:
        return {END_DATE: "The end date can't be before the start date."}
    return {}


def _validate_details_step(draft: RentalDraft) -> FieldErrors:
    if draft.customer_type is None:
        return {CUSTOMER_TYPE: "Please tell us who the rental is for."}

    errors: FieldErrors = {}
    if not draft.contact.first_name.strip():
        errors[FIRST_NAME] = "Please enter your first name."
    if not draft.contact.last_name.strip():
        errors[LAST_NAME] = "Please enter your last name."
    if draft.customer_type == CustomerType.COMPANY_CONTRACTOR and not draft.company_name.strip():
        errors[COMPANY_NAME] = "Company name is required for business rentals."
    return errors


def _validate_contact_step(draft: RentalDraft) -> FieldErrors:
    errors: FieldErrors = {}
    email = draft.contact.email.strip()
    if not email:
        errors[EMAIL] = "Please provide your contact email."
    elif not is_valid_email(email):
        errors[EMAIL] = "Please enter a valid email address."

    phone = digits_only(draft.contact.phone)
    if not phone:
        errors[PHONE] = "Please provide your contact phone number."
    elif not is_valid_phone(phone):
        errors[PHONE] = (
            f"Please enter a valid {settings.form.phone_digits}-digit phone number."
        )
    return errors


STEP_RULES: dict[FormStep, Callable[[RentalDraft], FieldErrors]] = {
    FormStep.ZIP_CODE: _validate_zip_step,
    FormStep.EQUIPMENT: _validate_equipment_step,
    FormStep.DATES: _validate_dates_step,
    FormStep.DETAILS: _validate_details_step,
    FormStep.CONTACT: _validate_contact_step,
}


def validate_step(draft: RentalDraft, step: int) -> FieldErrors:
    """Validate the fields owned by ``step``; returns {} when the step is valid."""
    try:
        rule = STEP_RULES.get(FormStep(step))
    except ValueError:
        rule = None
    if rule is None:
        return {}
    errors = rule(draft)
    if errors:
        logger.debug("Step %d failed validation on %s", step, sorted(errors))
    return errors
