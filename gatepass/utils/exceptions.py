# =======================================================================================
# gatepass/utils/exceptions.py - Custom Exceptions
# =======================================================================================
from enum import Enum


class GatePassError(Exception):
    """Base exception for the gate access system."""
    pass


class DecodeErrorReason(str, Enum):
    MALFORMED = "Malformed"
    MISSING_FIELD = "MissingField"


class DecodeError(GatePassError):
    """Raised when a scanned payload cannot be turned into a user id."""

    def __init__(self, reason: DecodeErrorReason, message: str = ""):
        super().__init__(message or reason.value)
        self.reason = reason


class DirectoryErrorReason(str, Enum):
    NOT_FOUND = "NotFound"
    UNAVAILABLE = "Unavailable"


class DirectoryError(GatePassError):
    """Raised by directory lookups."""

    def __init__(self, reason: DirectoryErrorReason, message: str = ""):
        super().__init__(message or reason.value)
        self.reason = reason


class LedgerErrorReason(str, Enum):
    CONTENTION = "Contention"
    UNAVAILABLE = "Unavailable"


class LedgerError(GatePassError):
    """Raised when the movement ledger cannot record an attempt."""

    def __init__(self, reason: LedgerErrorReason, message: str = ""):
        super().__init__(message or reason.value)
        self.reason = reason


class SessionErrorReason(str, Enum):
    PERSIST_FAILED = "PersistFailed"


class SessionError(GatePassError):
    """Raised when a gate change is not persisted."""

    def __init__(self, reason: SessionErrorReason, message: str = ""):
        super().__init__(message or reason.value)
        self.reason = reason


class ConfigurationError(GatePassError):
    """Raised when static configuration is inconsistent."""
    pass
