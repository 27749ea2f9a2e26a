# =======================================================================================
# gatepass/services/__init__.py - Services Package
# =======================================================================================
from .access_control import AccessControlService
from .credential_codec import CredentialCodec
from .directory import Directory
from .movement_ledger import MovementLedger
from .gate_session import GateSession, SessionRegistry
from .scan_service import ScanService
from .user_service import UserService

__all__ = [
    "AccessControlService", "CredentialCodec", "Directory", "MovementLedger",
    "GateSession", "SessionRegistry", "ScanService", "UserService",
]
