# =======================================================================================
# gatepass/utils/__init__.py - Utils Package
# =======================================================================================
from .exceptions import *
from .validators import *

__all__ = [
    "GatePassError", "DecodeError", "DecodeErrorReason", "DirectoryError",
    "DirectoryErrorReason", "LedgerError", "LedgerErrorReason", "SessionError",
    "SessionErrorReason", "ConfigurationError", "normalize_role_code", "is_valid_user_id",
]
