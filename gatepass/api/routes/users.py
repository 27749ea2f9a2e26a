# =======================================================================================
# gatepass/api/routes/users.py - User Endpoints
# =======================================================================================
from fastapi import APIRouter, Depends, HTTPException
from ...models.schemas import (
    CredentialResponse,
    EnabledUpdateRequest,
    EventsResponse,
    MovementResponse,
    UserUpdateResponse,
)
from ...services import CredentialCodec, MovementLedger, UserService
from ...utils.exceptions import LedgerError
from ...utils.validators import is_valid_user_id
from ..dependencies import get_ledger, get_user_service

router = APIRouter()
codec = CredentialCodec()


@router.get("/users/{user_id}/movement", response_model=MovementResponse)
def get_movement(user_id: int, ledger: MovementLedger = Depends(get_ledger)):
    try:
        state = ledger.current_state(user_id)
    except LedgerError:
        raise HTTPException(status_code=503, detail="Store unavailable")
    return MovementResponse(user_id=user_id, state=state)


@router.get("/users/{user_id}/events", response_model=EventsResponse)
def get_events(user_id: int, ledger: MovementLedger = Depends(get_ledger)):
    try:
        events = ledger.history(user_id)
    except LedgerError:
        raise HTTPException(status_code=503, detail="Store unavailable")
    return EventsResponse(events=events)


# ---- payload consumed by the credential card renderer ----

@router.get("/users/{user_id}/credential", response_model=CredentialResponse)
def get_credential(user_id: int):
    if not is_valid_user_id(user_id):
        raise HTTPException(status_code=422, detail="Invalid user id")
    return CredentialResponse(user_id=user_id, payload=codec.encode(user_id))


@router.put("/users/{user_id}/enabled", response_model=UserUpdateResponse)
def set_enabled(
    user_id: int,
    request: EnabledUpdateRequest,
    user_service: UserService = Depends(get_user_service),
):
    response = user_service.set_enabled(user_id, request.enabled)
    if not response.success and response.message == "User not found":
        raise HTTPException(status_code=404, detail=response.message)
    return response
