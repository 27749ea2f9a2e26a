# =======================================================================================
# gatepass/api/dependencies.py - FastAPI Dependencies
# =======================================================================================
from fastapi import HTTPException, Request
from ..services import Directory, MovementLedger, ScanService, SessionRegistry, UserService
from ..services.gate_session import GateSession
from ..utils.exceptions import DirectoryError, DirectoryErrorReason

def get_directory(request: Request) -> Directory:
    return request.app.state.directory

def get_ledger(request: Request) -> MovementLedger:
    return request.app.state.ledger

def get_scan_service(request: Request) -> ScanService:
    return request.app.state.scan_service

def get_sessions(request: Request) -> SessionRegistry:
    return request.app.state.sessions

def get_user_service(request: Request) -> UserService:
    return request.app.state.user_service

def resolve_session(sessions: SessionRegistry, email: str) -> GateSession:
    """Session for ``email``, as 404 / 503 HTTP errors when it cannot be loaded."""
    try:
        return sessions.get(email)
    except DirectoryError as e:
        if e.reason is DirectoryErrorReason.NOT_FOUND:
            raise HTTPException(status_code=404, detail="Controller not found")
        raise HTTPException(status_code=503, detail="Store unavailable")
