"""Exception types shared by the form controller and the remote clients."""

from enum import Enum
from typing import Optional


class RentalFormError(Exception):
    """Base class for all rental request errors."""


class LeadStoreErrorKind(str, Enum):
    """Typed classification of a failed remote call."""

    INVALID_ZIP = "invalid_zip"
    RATE_LIMITED = "rate_limited"
    NOT_FOUND = "not_found"
    NETWORK = "network"
    CONFIGURATION = "configuration"
    UNKNOWN = "unknown"


class LeadStoreError(RentalFormError):
    """Raised by the lead store adapter when a create/update call fails."""

    def __init__(
        self,
        kind: LeadStoreErrorKind,
        message: str = "",
        status_code: Optional[int] = None,
    ) -> None:
        super().__init__(message or kind.value)
        self.kind = kind
        self.message = message
        self.status_code = status_code

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(kind={self.kind.value!r}, "
            f"message={self.message!r}, status_code={self.status_code!r})"
        )


class ConfigurationError(LeadStoreError):
    """Raised when a backend URL or project id is missing."""

    def __init__(self, message: str) -> None:
        super().__init__(LeadStoreErrorKind.CONFIGURATION, message)


class CatalogError(RentalFormError):
    """Raised when the equipment catalog cannot be loaded."""


class InvalidTransitionError(RentalFormError):
    """Raised when a transition is not valid from the current step."""
