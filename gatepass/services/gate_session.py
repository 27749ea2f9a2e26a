# =======================================================================================
# gatepass/services/gate_session.py - Per-device Gate Binding
# =======================================================================================
import logging
import threading
from typing import Dict

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError

from ..database import DatabaseManager
from ..models.enums import Gate
from ..models.schemas import Controller
from ..schema import controllers
from ..utils.exceptions import SessionError, SessionErrorReason
from .directory import Directory

logger = logging.getLogger(__name__)


class GateSession:
    """
    The controller a device is operating as, and the gate it stands at.

    The in-memory controller only changes after the store confirmed the new
    gate. The session also guards its device's scan pipeline: one scan at a
    time.
    """

    def __init__(self, controller: Controller, db: DatabaseManager):
        self._controller = controller
        self.db = db
        self._change_lock = threading.Lock()
        self._scan_lock = threading.Lock()

    @property
    def controller(self) -> Controller:
        return self._controller

    @property
    def gate(self) -> Gate:
        return self._controller.gate

    def change_gate(self, new_gate: Gate) -> Controller:
        """Persist ``new_gate`` for this controller and return the updated record."""
        with self._change_lock:
            current = self._controller
            if new_gate == current.gate:
                return current

            try:
                with self.db.get_connection() as conn:
                    result = conn.execute(
                        update(controllers)
                        .where(controllers.c.id == current.id)
                        .values(gate=new_gate.value)
                    )
                    if result.rowcount != 1:
                        raise SessionError(
                            SessionErrorReason.PERSIST_FAILED,
                            f"Controller {current.id} not found in store",
                        )
            except SQLAlchemyError as exc:
                logger.error("Gate change for controller=%s failed: %s", current.id, exc)
                raise SessionError(SessionErrorReason.PERSIST_FAILED, "Gate change not saved") from exc

            self._controller = current.model_copy(update={"gate": new_gate})
            logger.info("Controller %s moved %s -> %s", current.email, current.gate.value, new_gate.value)
            return self._controller

    # ----------------------------------------------------------------------
    # Scan guard
    # ----------------------------------------------------------------------
    def try_begin_scan(self) -> bool:
        """Claim the pipeline; False when a previous scan is still unresolved."""
        return self._scan_lock.acquire(blocking=False)

    def end_scan(self) -> None:
        self._scan_lock.release()


class SessionRegistry:
    """GateSession per controller email, loaded on first use."""

    def __init__(self, directory: Directory, db: DatabaseManager):
        self.directory = directory
        self.db = db
        self._sessions: Dict[str, GateSession] = {}
        self._lock = threading.Lock()

    def get(self, email: str) -> GateSession:
        """Raises DirectoryError when the controller is unknown or the store is down."""
        with self._lock:
            session = self._sessions.get(email)
            if session is None:
                session = GateSession(self.directory.get_controller(email), self.db)
                self._sessions[email] = session
            return session
