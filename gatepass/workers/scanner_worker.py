# =======================================================================================
# gatepass/workers/scanner_worker.py - Background Serial Scanner Worker
# =======================================================================================
import json
import logging
import time
import threading
from typing import Any, Dict, Optional
from ..config import config
from ..models.enums import EventCode, Movement, ScanStatus
from ..models.schemas import ScanOutcome
from ..services.gate_session import SessionRegistry
from ..services.scan_service import ScanService
from ..utils.exceptions import DirectoryError

try:
    import serial
except ImportError:
    serial = None

logger = logging.getLogger(__name__)


def create_response_message(outcome: ScanOutcome) -> Dict[str, Any]:
    """JSON-serializable line sent back to the scanner display."""
    if outcome.status is ScanStatus.ALLOW:
        event = EventCode.ENTRY if outcome.movement is Movement.INGRESS else EventCode.EXIT
    elif outcome.status is ScanStatus.DENY:
        event = EventCode.DENIED
    else:
        event = EventCode.RESCAN
    return {
        "t": "resp",
        "status": 1 if outcome.status is ScanStatus.ALLOW else 0,
        "ts": int(time.time()),
        "event": event.value,
        "reason": outcome.reason,
        "msg": outcome.message,
        "name": outcome.user_name or "Guest",
    }


class ScannerWorker:
    """Reads QR payloads from a serial-attached scanner and answers each one."""

    def __init__(self, scan_service: ScanService, sessions: SessionRegistry):
        self.scan_service = scan_service
        self.sessions = sessions
        self.running = False

    # ------------------------------------------------------------------
    # Start / Stop
    # ------------------------------------------------------------------
    def start(self) -> bool:
        """Start the worker in a background thread."""
        if not self._should_start():
            return False

        self.running = True
        thread = threading.Thread(target=self._run_loop, daemon=True)
        thread.start()
        logger.info("Scanner worker started on %s", config.SERIAL_PORT)
        return True

    def stop(self):
        self.running = False

    # ------------------------------------------------------------------
    # Checks
    # ------------------------------------------------------------------
    def _should_start(self) -> bool:
        if serial is None:
            logger.info("pyserial not installed; skipping scanner worker.")
            return False

        if not config.SERIAL_PORT:
            logger.info("SERIAL_PORT not configured; skipping scanner worker.")
            return False

        if not config.CONTROLLER_EMAIL:
            logger.info("CONTROLLER_EMAIL not configured; skipping scanner worker.")
            return False

        return True

    # ------------------------------------------------------------------
    # Main loop
    # ------------------------------------------------------------------
    def _run_loop(self):
        while self.running:
            try:
                self._handle_serial_connection()
            except Exception as e:
                logger.error("Scanner connection error: %s - retrying in 3s", e)
                time.sleep(3)

    def handle_line(self, line: str) -> Optional[Dict[str, Any]]:
        """Run one scanned line; None when there is nothing to answer."""
        line = line.strip()
        if not line:
            return None

        try:
            session = self.sessions.get(config.CONTROLLER_EMAIL)
        except DirectoryError as e:
            logger.error("Cannot load controller %s: %s", config.CONTROLLER_EMAIL, e)
            return {"t": "resp", "status": 0, "ts": int(time.time()),
                    "event": EventCode.RESCAN.value, "reason": e.reason.value,
                    "msg": "Device not configured", "name": "Guest"}

        outcome = self.scan_service.process_scan(session, line)
        if outcome is None:
            return None
        return create_response_message(outcome)

    def _handle_serial_connection(self):
        logger.debug("Opening %s @ %s", config.SERIAL_PORT, config.SERIAL_BAUD)

        with serial.Serial(
            config.SERIAL_PORT, config.SERIAL_BAUD, timeout=config.SERIAL_TIMEOUT
        ) as ser:
            while self.running:
                line = ser.readline().decode(errors="ignore")
                try:
                    response = self.handle_line(line)
                except Exception:
                    logger.exception("Scan failed for line=%r", line.strip())
                    time.sleep(0.1)
                    continue

                if response:
                    ser.write((json.dumps(response) + "\n").encode())
                    logger.debug("Sent: %s", response)
