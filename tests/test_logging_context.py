"""Tests for session id propagation into log records."""

import asyncio
import logging

import pytest

from rental_request.logging_context import (
    NO_SESSION,
    SessionIdFilter,
    get_session_logger,
    install_session_filter,
    session_scope,
)


def _tagged_id() -> str:
    """Session id the filter would stamp on a record created right now."""
    record = logging.LogRecord("httpx", logging.INFO, __file__, 1, "GET", None, None)
    SessionIdFilter().filter(record)
    return record.session_id


class TestSessionScope:
    def test_outside_any_scope(self):
        assert _tagged_id() == NO_SESSION

    def test_scope_restores_previous_id(self):
        with session_scope("FORM-outer"):
            with session_scope("FORM-inner"):
                assert _tagged_id() == "FORM-inner"
            assert _tagged_id() == "FORM-outer"
        assert _tagged_id() == NO_SESSION

    def test_scope_restored_on_error(self):
        with pytest.raises(RuntimeError):
            with session_scope("FORM-x"):
                raise RuntimeError("boom")
        assert _tagged_id() == NO_SESSION

    @pytest.mark.asyncio
    async def test_tasks_keep_their_own_id(self):
        async def worker(session_id: str) -> str:
            with session_scope(session_id):
                await asyncio.sleep(0)
                return _tagged_id()

        results = await asyncio.gather(worker("FORM-a"), worker("FORM-b"))
        assert results == ["FORM-a", "FORM-b"]


class TestSessionLogger:
    def test_filter_attached_once(self):
        logger = get_session_logger("rental_request.tests.once")
        get_session_logger("rental_request.tests.once")
        assert sum(isinstance(f, SessionIdFilter) for f in logger.filters) == 1

    def test_record_carries_session_id(self, caplog):
        logger = get_session_logger("rental_request.tests.record")
        with caplog.at_level(logging.INFO, logger="rental_request.tests.record"):
            with session_scope("FORM-abc123"):
                logger.info("Lead created")
        assert caplog.records[-1].session_id == "FORM-abc123"

    def test_existing_session_id_kept(self):
        record = logging.LogRecord("x", logging.INFO, __file__, 1, "msg", None, None)
        record.session_id = "FORM-fixed"
        with session_scope("FORM-other"):
            SessionIdFilter().filter(record)
        assert record.session_id == "FORM-fixed"

    def test_install_on_handlers(self):
        logger = logging.getLogger("rental_request.tests.handlers")
        handler = logging.NullHandler()
        logger.addHandler(handler)
        try:
            install_session_filter(logger)
            install_session_filter(logger)
            assert sum(isinstance(f, SessionIdFilter) for f in handler.filters) == 1
        finally:
            logger.removeHandler(handler)
