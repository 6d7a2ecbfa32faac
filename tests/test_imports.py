"""Tests for import chains and module integrity.

Ensures all public modules can be imported without errors and
that re-exports from __init__.py files work correctly.
"""

import pytest


class TestSchemaImports:
    def test_import_draft_schema(self):
        from rental_request.schemas.draft_schema import RentalDraft, CustomerType
        draft = RentalDraft()
        assert draft.lead_id is None
        assert CustomerType.COMPANY_CONTRACTOR == "company_contractor"

    def test_import_lead_schema(self):
        from rental_request.schemas.lead_schema import LeadPayload, LeadResponse
        assert LeadPayload().status__c == "draft"

    def test_import_catalog_schema(self):
        from rental_request.schemas.catalog_schema import Catalog
        assert Catalog().models == []


class TestFormImports:
    def test_import_form_package(self):
        from rental_request.form import (
            RentalFormController, FormStateMachine, FormStep, validate_step,
            InMemoryDraftStore, LEAD_ID_KEY,
        )
        assert LEAD_ID_KEY == "formID"
        assert FormStateMachine().current_step == FormStep.ZIP_CODE


class TestServiceImports:
    def test_import_lead_store(self):
        from rental_request.services.lead_store import LeadStoreClient, classify_failure
        assert callable(classify_failure)

    def test_import_catalog(self):
        from rental_request.services.catalog import CatalogClient, NOT_SURE_OPTION
        assert NOT_SURE_OPTION.value == "not-sure"

    def test_import_forms_api(self):
        from rental_request.services.forms_api import FormsApiClient
        assert FormsApiClient is not None

    def test_import_mock_store(self):
        from rental_request.services.mock_lead_store import InMemoryLeadStore
        assert InMemoryLeadStore().leads == {}


class TestConfigImport:
    def test_import_config(self):
        from rental_request.config import settings
        assert settings.lead_api.api_prefix is not None
        assert settings.form.min_zip_digits >= 1


class TestConsoleDemo:
    def test_console_session_imports(self):
        from console_demo import ConsoleSession
        session = ConsoleSession()
        assert session.mock_store is not None
        assert session.options[-1].value == "not-sure"

    def test_main_entry_point(self):
        import main
        assert callable(main._run_ping)
        assert callable(main._run_console_mode)
