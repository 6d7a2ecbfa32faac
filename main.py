"""
Rental request entry point.

Usage:
    Console form:        python main.py console
    Offline scenario:    python main.py console --scenario happy
    API connectivity:    python main.py ping
"""

import asyncio
import logging
import sys

from rental_request.config import settings

logger = logging.getLogger(__name__)


def _run_console_mode() -> None:
    """Start the terminal form (offline unless --live is passed)."""
    from console_demo import main as console_main

    sys.argv = [sys.argv[0], *sys.argv[2:]]
    console_main()


def _run_ping() -> int:
    """Check the lead API answers; exit status 0 when it does."""
    from rental_request.services.lead_store import LeadStoreClient

    ok = asyncio.run(LeadStoreClient().ping())
    logger.info(
        "Lead API at %s is %s",
        settings.lead_api.api_base or "<unset>",
        "reachable" if ok else "unreachable",
    )
    return 0 if ok else 1


if __name__ == "__main__":
    command = sys.argv[1] if len(sys.argv) > 1 else "console"
    if command == "ping":
        sys.exit(_run_ping())
    elif command == "console":
        _run_console_mode()
    else:
        print(f"Unknown command: {command}. Use 'console' or 'ping'.")
        sys.exit(2)
