# =======================================================================================
# gatepass/models/schemas.py - Pydantic Models
# =======================================================================================
from datetime import date, datetime
from typing import Optional, List
from pydantic import BaseModel, ConfigDict, Field
from .enums import (
    DenyReason, Gate, Movement, MovementState, Role, ScanStatus, UndeterminedReason,
)

# ========== Directory records ==========

class User(BaseModel):
    """A credential holder as read from the store."""
    model_config = ConfigDict(frozen=True)

    id: int
    dni: int
    name: str
    lastname: str
    role: Role
    group_id: Optional[int] = None
    group_name: Optional[str] = None
    enabled: bool = True

    @property
    def full_name(self) -> str:
        return f"{self.name} {self.lastname}"


class Restriction(BaseModel):
    """Group-wide denial for one calendar day."""
    model_config = ConfigDict(frozen=True)

    id: int
    group_id: int
    date: date


class Controller(BaseModel):
    """Operator bound to a scanning device and the gate it currently serves."""
    model_config = ConfigDict(frozen=True)

    id: int
    email: str
    name: str
    lastname: str
    dni: int
    gate: Gate


# ========== Decision + ledger ==========

class Decision(BaseModel):
    model_config = ConfigDict(frozen=True)

    allow: bool
    reason: Optional[DenyReason] = None

    @classmethod
    def allowed(cls) -> "Decision":
        return cls(allow=True)

    @classmethod
    def denied(cls, reason: DenyReason) -> "Decision":
        return cls(allow=False, reason=reason)


class AccessEvent(BaseModel):
    """Immutable audit record of one access attempt."""
    model_config = ConfigDict(frozen=True)

    id: int
    timestamp: datetime
    as_of: date
    user_id: int
    gate: Gate
    controller_id: int
    allowed: bool
    reason: Optional[DenyReason] = None
    from_state: Optional[MovementState] = None
    to_state: Optional[MovementState] = None

    @property
    def movement(self) -> Optional[Movement]:
        if not self.allowed or self.from_state is None:
            return None
        return self.from_state.next_movement


class ScanOutcome(BaseModel):
    """What the operator sees after one scan."""
    model_config = ConfigDict(frozen=True)

    status: ScanStatus
    message: str
    reason: Optional[str] = None
    user_id: Optional[int] = None
    user_name: Optional[str] = None
    movement: Optional[Movement] = None
    event: Optional[AccessEvent] = None

    @classmethod
    def undetermined(cls, reason: UndeterminedReason, user_id: Optional[int] = None,
                     event: Optional[AccessEvent] = None) -> "ScanOutcome":
        return cls(
            status=ScanStatus.UNDETERMINED,
            reason=reason.value,
            message="Could not verify credential - please rescan",
            user_id=user_id,
            event=event,
        )


# ========== Scan payload ==========

class CredentialPayload(BaseModel):
    """JSON object carried by the QR code."""
    id: Optional[int] = Field(None, gt=0, description="User id")


# ========== API ==========

class ScanRequest(BaseModel):
    """Scan submitted by a handheld device."""
    payload: str = Field(..., min_length=1, max_length=512, description="Raw QR text")
    controller_email: str = Field(..., description="Operator identity of the scanning device")
    as_of: Optional[date] = Field(None, description="Evaluation date, defaults to today")


class ScanResponse(BaseModel):
    status: ScanStatus
    message: str
    reason: Optional[str] = None
    user_id: Optional[int] = None
    user_name: Optional[str] = None
    movement: Optional[Movement] = None
    movement_label: Optional[str] = None
    event_id: Optional[int] = None


class GateChangeRequest(BaseModel):
    gate: Gate


class ControllerResponse(BaseModel):
    id: int
    email: str
    name: str
    lastname: str
    gate: Gate


class MovementResponse(BaseModel):
    user_id: int
    state: MovementState


class EventsResponse(BaseModel):
    events: List[AccessEvent]


class CredentialResponse(BaseModel):
    user_id: int
    payload: str


class EnabledUpdateRequest(BaseModel):
    enabled: bool


class UserUpdateResponse(BaseModel):
    success: bool
    message: str


# ========== Health ==========

class HealthResponse(BaseModel):
    status: str                 # "ok" | "error"
    dataAvailable: bool
    message: Optional[str] = None
