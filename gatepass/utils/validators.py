# =======================================================================================
# gatepass/utils/validators.py - Validation Helpers
# =======================================================================================
from typing import Any


def normalize_role_code(value: str) -> str:
    """'X - TEC', 'x-tec' and 'X-TEC' all normalize to 'X-TEC'."""
    return "".join(value.split()).upper()


def is_valid_user_id(value: Any) -> bool:
    """User ids are positive integers. Booleans are rejected even though they are ints."""
    return isinstance(value, int) and not isinstance(value, bool) and value > 0
