# =======================================================================================
# gatepass/main.py - FastAPI Application Entry Point
# =======================================================================================
import logging
from typing import Optional
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError
from .config import config
from .api.routes.scan import router as scan_router
from .api.routes.controllers import router as controllers_router
from .api.routes.users import router as users_router
from .database import DatabaseManager, db_manager
from .logger import setup_logging
from .models.schemas import HealthResponse
from .services import Directory, MovementLedger, ScanService, SessionRegistry, UserService
from .workers.scanner_worker import ScannerWorker

logger = logging.getLogger(__name__)


def create_app(db: Optional[DatabaseManager] = None, start_worker: bool = True) -> FastAPI:
    db = db or db_manager

    app = FastAPI(
        title="Gate Access Control API",
        version="1.0.0",
        description="Scan decisions and movement ledger for gated event checkpoints",
        debug=config.API_DEBUG,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Services shared by every request
    app.state.db = db
    app.state.directory = Directory(db)
    app.state.ledger = MovementLedger(db)
    app.state.sessions = SessionRegistry(app.state.directory, db)
    app.state.scan_service = ScanService(app.state.directory, app.state.ledger)
    app.state.user_service = UserService(db)
    app.state.scanner_worker = ScannerWorker(app.state.scan_service, app.state.sessions)

    # Routers
    app.include_router(scan_router, prefix="/api", tags=["scan"])
    app.include_router(controllers_router, prefix="/api", tags=["controllers"])
    app.include_router(users_router, prefix="/api", tags=["users"])

    @app.get("/api/health", response_model=HealthResponse, tags=["health"])
    def api_health():
        try:
            db.fetch_one("SELECT 1")
            return HealthResponse(status="ok", dataAvailable=True, message=None)
        except SQLAlchemyError as e:
            return HealthResponse(status="error", dataAvailable=False, message=str(e))

    @app.on_event("startup")
    async def startup_event():
        if start_worker:
            app.state.scanner_worker.start()
        logger.info("Gate Access Control API started")

    @app.on_event("shutdown")
    async def shutdown_event():
        app.state.scanner_worker.stop()
        app.state.scan_service.shutdown()

    return app


setup_logging()
app = create_app()
