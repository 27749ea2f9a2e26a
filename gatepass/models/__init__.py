# =======================================================================================
# gatepass/models/__init__.py - Models Package
# =======================================================================================
from .schemas import *
from .enums import *

__all__ = [
    "User", "Restriction", "Controller", "Decision", "AccessEvent", "ScanOutcome",
    "CredentialPayload", "ScanRequest", "ScanResponse", "GateChangeRequest",
    "ControllerResponse", "MovementResponse", "EventsResponse", "CredentialResponse",
    "EnabledUpdateRequest", "UserUpdateResponse", "HealthResponse",
    "Role", "Gate", "Movement", "MovementState", "DenyReason", "UndeterminedReason",
    "ScanStatus", "EventCode",
]
