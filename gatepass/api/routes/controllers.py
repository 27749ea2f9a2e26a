# =======================================================================================
# gatepass/api/routes/controllers.py - Controller / Gate Endpoints
# =======================================================================================
from fastapi import APIRouter, Depends, HTTPException
from ...models.schemas import Controller, ControllerResponse, GateChangeRequest
from ...services import SessionRegistry
from ...utils.exceptions import SessionError
from ..dependencies import get_sessions, resolve_session

router = APIRouter()


def _to_response(controller: Controller) -> ControllerResponse:
    return ControllerResponse(
        id=controller.id,
        email=controller.email,
        name=controller.name,
        lastname=controller.lastname,
        gate=controller.gate,
    )


@router.get("/controllers/{email}", response_model=ControllerResponse)
def get_controller(email: str, sessions: SessionRegistry = Depends(get_sessions)):
    return _to_response(resolve_session(sessions, email).controller)


@router.put("/controllers/{email}/gate", response_model=ControllerResponse)
def change_gate(
    email: str,
    request: GateChangeRequest,
    sessions: SessionRegistry = Depends(get_sessions),
):
    session = resolve_session(sessions, email)
    try:
        controller = session.change_gate(request.gate)
    except SessionError:
        raise HTTPException(
            status_code=503,
            detail=f"Gate change did not take effect, still at {session.gate.value}",
        )
    return _to_response(controller)
