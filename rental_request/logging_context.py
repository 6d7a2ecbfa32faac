"""Form-session correlation id for log records.

Every log line written while a controller is handling a user action carries
the id of that form session, so one user's trip through the form
(validation, lead create/update, recovery) can be followed in the logs even
when several sessions share a process.

Usage:
    from rental_request.logging_context import get_session_logger, session_scope

    logger = get_session_logger(__name__)
    with session_scope("FORM-abc123"):
        logger.info("Lead created")  # record.session_id == "FORM-abc123"
"""

import logging
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator, Optional

NO_SESSION = "-"

SESSION_LOG_FORMAT = "%(asctime)s [%(name)s] [%(session_id)s] %(levelname)s: %(message)s"

_session_id: ContextVar[str] = ContextVar("session_id", default=NO_SESSION)


@contextmanager
def session_scope(session_id: str) -> Iterator[None]:
    """Tag records with ``session_id`` until the block exits, then restore the previous id."""
    token = _session_id.set(session_id)
    try:
        yield
    finally:
        _session_id.reset(token)


class SessionIdFilter(logging.Filter):
    """Adds ``session_id`` to records; records that already carry one are left alone."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "session_id"):
            record.session_id = _session_id.get()  # type: ignore[attr-defined]
        return True


def get_session_logger(name: str) -> logging.Logger:
    """Return a module logger whose records always carry ``session_id``."""
    logger = logging.getLogger(name)
    if not any(isinstance(f, SessionIdFilter) for f in logger.filters):
        logger.addFilter(SessionIdFilter())
    return logger


def install_session_filter(logger: Optional[logging.Logger] = None) -> None:
    """Attach the filter to every handler of ``logger`` (root by default).

    Needed before a handler formats with SESSION_LOG_FORMAT, since records
    from third-party loggers (httpx, for one) never pass a session logger.
    """
    target = logger or logging.getLogger()
    for handler in target.handlers:
        if not any(isinstance(f, SessionIdFilter) for f in handler.filters):
            handler.addFilter(SessionIdFilter())
