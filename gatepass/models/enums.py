# =======================================================================================
# gatepass/models/enums.py - Enums and Constants
# =======================================================================================
from enum import Enum

from ..utils.validators import normalize_role_code


class Role(str, Enum):
    """Access category printed on the credential. Closed set."""
    A = "A"
    B = "B"
    C = "C"
    D = "D"
    E = "E"
    P = "P"
    X = "X"
    X_TEC = "X - TEC"
    C_COM = "C - COM"

    @classmethod
    def _missing_(cls, value):
        # the store and the CSV imports use both "X - TEC" and "X-TEC"
        if isinstance(value, str):
            code = normalize_role_code(value)
            for member in cls:
                if normalize_role_code(member.value) == code:
                    return member
        return None


class Gate(str, Enum):
    """Physical checkpoint."""
    S1 = "S1"
    S2 = "S2"
    S3 = "S3"
    S4 = "S4"


class Movement(str, Enum):
    INGRESS = "ingress"
    EGRESS = "egress"

    @property
    def label(self) -> str:
        """Operator-facing wording."""
        return "entering" if self is Movement.INGRESS else "exiting"


class MovementState(str, Enum):
    """Side of the barrier a user is currently recorded on."""
    OUTSIDE = "outside"
    INSIDE = "inside"

    def toggled(self) -> "MovementState":
        return MovementState.INSIDE if self is MovementState.OUTSIDE else MovementState.OUTSIDE

    @property
    def next_movement(self) -> Movement:
        return Movement.INGRESS if self is MovementState.OUTSIDE else Movement.EGRESS


class DenyReason(str, Enum):
    """Stable reason codes stored with every denial."""
    DISABLED = "Disabled"
    RESTRICTED = "Restricted"
    NOT_PERMITTED_FOR_ROLE = "NotPermittedForRole"
    UNKNOWN_USER = "UnknownUser"
    CONTENTION = "Contention"


class UndeterminedReason(str, Enum):
    MALFORMED = "Malformed"
    MISSING_FIELD = "MissingField"
    STORE_UNAVAILABLE = "StoreUnavailable"
    TIMEOUT = "Timeout"
    CONTENTION = "Contention"


class ScanStatus(str, Enum):
    ALLOW = "ALLOW"
    DENY = "DENY"
    UNDETERMINED = "UNDETERMINED"


class EventCode(Enum):
    """Event codes written back to the scanner."""
    DENIED = 0
    ENTRY = 1
    EXIT = 2
    RESCAN = 3
