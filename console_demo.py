"""
Console front-end for the rental request form.

Drives the real form controller from the terminal. By default it runs
offline against the in-memory lead store; pass --live to talk to the
backend configured in .env.

Usage:
    python console_demo.py
    python console_demo.py --scenario happy
    python console_demo.py --scenario stale
    python console_demo.py --live
"""

import argparse
import asyncio
from typing import Any, Optional

from rental_request.config import settings
from rental_request.errors import CatalogError
from rental_request.form.controller import RentalFormController, StepResult, SyncOutcome
from rental_request.form.persistence import InMemoryDraftStore, JsonFileDraftStore
from rental_request.form.state_machine import FormStep
from rental_request.schemas.catalog_schema import EquipmentModel, EquipmentOption
from rental_request.schemas.draft_schema import PROJECT_TYPES, CustomerType
from rental_request.services.catalog import CatalogClient, build_equipment_options
from rental_request.services.lead_store import LeadStoreClient
from rental_request.services.mock_lead_store import InMemoryLeadStore

BLUE = "\033[94m"
GREEN = "\033[92m"
YELLOW = "\033[93m"
RED = "\033[91m"
DIM = "\033[2m"
RESET = "\033[0m"
BOLD = "\033[1m"

OFFLINE_MODELS = [
    EquipmentModel(id="m-ac", code="AC", name="Equipter AC", blurb="Capacity 2,000 lbs"),
    EquipmentModel(id="m-4000", code="4000", name="Equipter 4000", blurb="Capacity 4,000 lbs"),
    EquipmentModel(id="m-rb4000", code="RB4000", name="Equipter RB4000", blurb="Capacity 4,000 lbs"),
]

STEP_TITLES = {
    FormStep.ZIP_CODE: "Where do you need the equipment?",
    FormStep.EQUIPMENT: "What Equipter equipment do you need?",
    FormStep.DATES: "When do you need it?",
    FormStep.DETAILS: "Tell us about you and your project",
    FormStep.CONTACT: "How can we reach you?",
}

SCENARIO_ANSWERS: dict[int, dict[str, Any]] = {
    1: {"zipCode": "17601"},
    2: {"equipment": "m-4000"},
    3: {"startDate": "2026-11-02", "endDate": "2026-11-06"},
    4: {
        "customerType": "company_contractor",
        "companyName": "Summit Roofing",
        "firstName": "Jordan",
        "lastName": "Reyes",
        "projectType": "Roofing",
    },
    5: {"email": "jordan@summitroofing.com", "phone": "(717) 555-0142", "comments": ""},
}


class ConsoleSession:
    """Runs one rental request from the terminal."""

    def __init__(self, live: bool = False) -> None:
        self.live = live
        self.mock_store: Optional[InMemoryLeadStore] = None
        if live:
            lead_store: Any = LeadStoreClient()
            draft_store: Any = JsonFileDraftStore(settings.form.draft_store_path)
        else:
            self.mock_store = InMemoryLeadStore(invalid_zips={"00000"})
            lead_store = self.mock_store
            draft_store = InMemoryDraftStore()
        self.controller = RentalFormController(
            lead_store,
            draft_store,
            on_submitting_change=self._on_submitting,
        )
        self.options: list[EquipmentOption] = build_equipment_options(OFFLINE_MODELS)

    def say(self, text: str) -> None:
        print(f"{GREEN}{text}{RESET}")

    def system_log(self, text: str) -> None:
        print(f"{DIM}  >> {text}{RESET}")

    def _on_submitting(self, submitting: bool) -> None:
        if submitting:
            self.system_log("Submitting...")

    async def load_equipment(self) -> None:
        if not self.live:
            return
        try:
            catalog = await CatalogClient().fetch_equipment()
        except CatalogError as exc:
            self.system_log(f"Using offline equipment list ({exc})")
            return
        if catalog.models:
            self.options = build_equipment_options(catalog.models)

    # ------------------------------------------------------------------ #
    # Scripted scenarios
    # ------------------------------------------------------------------ #

    async def run_scenario(self, scenario: str) -> None:
        """Auto-play a pre-scripted request."""
        self._banner(f"RENTAL REQUEST - Scenario: {scenario}")
        while not self.controller.is_complete():
            step = int(self.controller.current_step)
            for name, value in SCENARIO_ANSWERS[step].items():
                self.controller.update_field(name, value)
            if scenario == "stale" and step == 3 and self.mock_store is not None:
                self.system_log("Server purges the draft lead")
                self.mock_store.purge()
            result = await self.controller.advance()
            self._report(result)
            if not result.succeeded:
                break
        self._finish()

    # ------------------------------------------------------------------ #
    # Interactive
    # ------------------------------------------------------------------ #

    async def run(self) -> None:
        self._banner("RENTAL REQUEST - Console")
        print(f"{BOLD}  Type 'back' to go back, 'quit' to exit{RESET}")
        await self.load_equipment()

        while not self.controller.is_complete():
            step = self.controller.current_step
            self.say(f"\nStep {int(step)} of 5: {STEP_TITLES[step]}")
            answers = self._ask_step(step)
            if answers is None:
                print(f"\n{DIM}Session ended.{RESET}")
                return
            if answers == "back":
                self.controller.previous()
                continue
            for name, value in answers.items():
                try:
                    self.controller.update_field(name, value)
                except ValueError as exc:
                    print(f"{RED}  {exc}{RESET}")
            self._report(await self.controller.advance())
        self._finish()

    def _prompt(self, label: str) -> Optional[str]:
        text = input(f"{BLUE}  {label}: {RESET}").strip()
        if text.lower() in ("quit", "exit", "q"):
            return None
        return text

    def _ask_step(self, step: FormStep) -> Any:
        fields: list[tuple[str, str]] = []
        if step == FormStep.ZIP_CODE:
            fields = [("zipCode", "ZIP code")]
        elif step == FormStep.EQUIPMENT:
            for i, option in enumerate(self.options, 1):
                print(f"    {i}. {option.label}  {DIM}{option.description}{RESET}")
            choice = self._prompt("Choose a number")
            if choice is None or choice == "back":
                return choice
            try:
                return {"equipment": self.options[int(choice) - 1].value}
            except (ValueError, IndexError):
                return {"equipment": ""}
        elif step == FormStep.DATES:
            fields = [("startDate", "Start date (YYYY-MM-DD)"), ("endDate", "End date (optional)")]
        elif step == FormStep.DETAILS:
            kind = self._prompt("1 = company/contractor, 2 = individual/homeowner")
            if kind is None or kind == "back":
                return kind
            customer_type = {
                "1": CustomerType.COMPANY_CONTRACTOR,
                "2": CustomerType.INDIVIDUAL_HOMEOWNER,
            }.get(kind)
            answers: dict[str, Any] = {"customerType": customer_type}
            fields = [("firstName", "First name"), ("lastName", "Last name")]
            if customer_type == CustomerType.COMPANY_CONTRACTOR:
                fields.append(("companyName", "Company name"))
            fields.append(("projectType", f"Project type, optional ({', '.join(PROJECT_TYPES)})"))
            rest = self._ask_fields(fields)
            if not isinstance(rest, dict):
                return rest
            answers.update(rest)
            return answers
        elif step == FormStep.CONTACT:
            fields = [("email", "Email"), ("phone", "Phone"), ("comments", "Comments")]
        return self._ask_fields(fields)

    def _ask_fields(self, fields: list[tuple[str, str]]) -> Any:
        answers: dict[str, Any] = {}
        for name, label in fields:
            value = self._prompt(label)
            if value is None or value == "back":
                return value
            answers[name] = value
        return answers

    # ------------------------------------------------------------------ #
    # Output
    # ------------------------------------------------------------------ #

    def _banner(self, title: str) -> None:
        print()
        print(f"{BOLD}{'=' * 60}{RESET}")
        print(f"{BOLD}  {title}{RESET}")
        print(f"{BOLD}  Mode: {'live' if self.live else 'offline'}{RESET}")
        print(f"{BOLD}{'=' * 60}{RESET}")

    def _report(self, result: StepResult) -> None:
        self.system_log(f"{result.outcome.value} -> step {result.step}")
        for name, message in result.field_errors.items():
            print(f"{RED}  {name}: {message}{RESET}")
        if result.banner:
            print(f"{YELLOW}  {result.banner}{RESET}")
        if result.outcome == SyncOutcome.RECREATED:
            self.system_log("Lead expired server-side; a new one was created")

    def _finish(self) -> None:
        print(f"\n{BOLD}{'=' * 60}{RESET}")
        if self.controller.is_complete():
            self.say("Thank you! Your rental request has been submitted.")
            location = self.controller.location_result
            if location is not None:
                self.say(f"Nearest location: {location.name}")
                if location.address_line():
                    self.say(f"  {location.address_line()}")
                if location.distance_label():
                    self.say(f"  {location.distance_label()}")
                if location.phone:
                    self.say(f"  Call {location.phone}")
            else:
                self.say(f"Find a location near you: {settings.site.rent_url}")
        trace = " -> ".join(str(s) for s in self.controller.state_machine.get_step_trace())
        print(f"{DIM}  Step trace: {trace}{RESET}")
        print(f"{BOLD}{'=' * 60}{RESET}")


def main() -> None:
    parser = argparse.ArgumentParser(description="Rental request console")
    parser.add_argument(
        "--scenario",
        choices=["happy", "stale"],
        default=None,
        help="Auto-play a pre-scripted request instead of interactive mode",
    )
    parser.add_argument(
        "--live",
        action="store_true",
        help="Use the configured backend instead of the in-memory lead store",
    )
    args = parser.parse_args()

    session = ConsoleSession(live=args.live)
    if args.scenario:
        asyncio.run(session.run_scenario(args.scenario))
    else:
        asyncio.run(session.run())


if __name__ == "__main__":
    main()
