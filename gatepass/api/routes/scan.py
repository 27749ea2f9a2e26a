# =======================================================================================
# gatepass/api/routes/scan.py - Scan Endpoints
# =======================================================================================
from fastapi import APIRouter, Depends, HTTPException
from ...models.schemas import ScanRequest, ScanResponse
from ...services import ScanService, SessionRegistry
from ..dependencies import get_scan_service, get_sessions, resolve_session

router = APIRouter()

@router.post("/scan", response_model=ScanResponse)
def handle_scan(
    request: ScanRequest,
    scan_service: ScanService = Depends(get_scan_service),
    sessions: SessionRegistry = Depends(get_sessions),
):
    """Decide and record one scan. Denials are normal 200 responses."""
    session = resolve_session(sessions, request.controller_email)
    outcome = scan_service.process_scan(session, request.payload, request.as_of)
    if outcome is None:
        raise HTTPException(status_code=409, detail="Previous scan still in progress")

    return ScanResponse(
        status=outcome.status,
        message=outcome.message,
        reason=outcome.reason,
        user_id=outcome.user_id,
        user_name=outcome.user_name,
        movement=outcome.movement,
        movement_label=outcome.movement.label if outcome.movement else None,
        event_id=outcome.event.id if outcome.event else None,
    )
