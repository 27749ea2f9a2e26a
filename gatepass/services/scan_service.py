# gatepass/services/scan_service.py
import logging
import threading
import time
from collections import OrderedDict
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeout
from datetime import date
from typing import Optional, Tuple, Union

from ..config import config
from ..models.enums import DenyReason, Gate, ScanStatus, UndeterminedReason
from ..models.schemas import Controller, Decision, ScanOutcome, User
from ..utils.exceptions import (
    DecodeError, DecodeErrorReason, DirectoryError, DirectoryErrorReason,
    LedgerError, LedgerErrorReason,
)
from .access_control import AccessControlService
from .credential_codec import CredentialCodec
from .directory import Directory
from .gate_session import GateSession
from .movement_ledger import MovementLedger

logger = logging.getLogger(__name__)

_DENY_MESSAGES = {
    DenyReason.DISABLED: "Access denied - credential disabled",
    DenyReason.RESTRICTED: "Access denied - group restricted today",
    DenyReason.UNKNOWN_USER: "Access denied - unknown credential",
}


class _ScanTicket:
    """
    Settles the race between a caller timing out and its pipeline recording.

    Exactly one of ``abandon`` and ``begin_record`` succeeds, so a scan the
    operator was told to repeat never reaches the ledger.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._state: Optional[str] = None

    def _claim(self, state: str) -> bool:
        with self._lock:
            if self._state is None:
                self._state = state
                return True
            return False

    def abandon(self) -> bool:
        return self._claim("abandoned")

    def begin_record(self) -> bool:
        return self._claim("recording")


class ScanService:
    """Runs one scan through decode, lookup, decision and ledger."""

    def __init__(self, directory: Directory, ledger: MovementLedger,
                 timeout: Optional[float] = None, debounce_ttl: Optional[float] = None,
                 max_workers: int = 4):
        self.directory = directory
        self.ledger = ledger
        self.codec = CredentialCodec()
        self.access_service = AccessControlService()
        self.timeout = timeout if timeout is not None else config.SCAN_TIMEOUT
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="scan")

        # ----------------------------------------------------------------------
        # Debounce cache
        # ----------------------------------------------------------------------
        # key = (controller_id, gate, payload)
        # value = (timestamp, outcome)
        self._scan_cache: "OrderedDict[tuple, Tuple[float, ScanOutcome]]" = OrderedDict()
        self._scan_cache_ttl = debounce_ttl if debounce_ttl is not None else config.SCAN_DEBOUNCE_TTL
        self._scan_cache_max = 512
        self._cache_lock = threading.Lock()

    # ----------------------------------------------------------------------
    # Cache helpers
    # ----------------------------------------------------------------------
    def _get_cached_outcome(self, key: tuple) -> Optional[ScanOutcome]:
        """Return cached outcome if still valid."""
        with self._cache_lock:
            item = self._scan_cache.get(key)
            if not item:
                return None

            ts, outcome = item
            if time.monotonic() - ts > self._scan_cache_ttl:
                self._scan_cache.pop(key, None)
                return None

            self._scan_cache.move_to_end(key)
            return outcome

    def _store_outcome(self, key: tuple, outcome: ScanOutcome) -> None:
        """Store outcome with timestamp and trim cache size."""
        with self._cache_lock:
            self._scan_cache[key] = (time.monotonic(), outcome)
            while len(self._scan_cache) > self._scan_cache_max:
                self._scan_cache.popitem(last=False)

    # ----------------------------------------------------------------------
    # Core request handler
    # ----------------------------------------------------------------------
    def process_scan(self, session: GateSession, payload: Union[str, bytes],
                     as_of: Optional[date] = None) -> Optional[ScanOutcome]:
        """
        Process one scan for the device behind ``session``.

        Returns None when the scan is ignored because the device's previous
        scan has not resolved yet. Never raises for expected failures: decode
        errors, store outages, timeouts and contention all come back as
        UNDETERMINED outcomes.
        """
        controller = session.controller
        cache_key = (controller.id, session.gate, payload)
        cached = self._get_cached_outcome(cache_key)
        if cached is not None:
            logger.debug("Repeated read of one scan on controller=%s, reusing outcome", controller.id)
            return cached

        try:
            user_id = self.codec.decode(payload)
        except DecodeError as exc:
            logger.info("Rejected scan on controller=%s: %s", controller.id, exc)
            reason = (UndeterminedReason.MISSING_FIELD if exc.reason is DecodeErrorReason.MISSING_FIELD
                      else UndeterminedReason.MALFORMED)
            return ScanOutcome.undetermined(reason)

        if not session.try_begin_scan():
            logger.debug("Scan ignored on controller=%s, previous scan unresolved", controller.id)
            return None

        as_of = as_of or date.today()
        gate = session.gate
        ticket = _ScanTicket()
        try:
            future = self._executor.submit(self._run_pipeline, ticket, controller, gate, user_id, as_of)
        except Exception:
            session.end_scan()
            raise
        # the device stays busy until the pipeline really finishes, even after a timeout
        future.add_done_callback(lambda _: session.end_scan())

        try:
            outcome = future.result(timeout=self.timeout)
        except FutureTimeout:
            if ticket.abandon():
                logger.warning("Scan for user=%s timed out after %ss", user_id, self.timeout)
                return ScanOutcome.undetermined(UndeterminedReason.TIMEOUT, user_id=user_id)
            # the ledger write already started; its result is the real outcome
            outcome = future.result()

        if outcome.status is not ScanStatus.UNDETERMINED:
            self._store_outcome(cache_key, outcome)
        return outcome

    def _run_pipeline(self, ticket: "_ScanTicket", controller: Controller, gate: Gate,
                      user_id: int, as_of: date) -> Optional[ScanOutcome]:
        user = None
        try:
            user = self.directory.get_user(user_id)
            restrictions = self.directory.get_restrictions(user.group_id, as_of)
        except DirectoryError as exc:
            if exc.reason is not DirectoryErrorReason.NOT_FOUND:
                return ScanOutcome.undetermined(UndeterminedReason.STORE_UNAVAILABLE, user_id=user_id)
            decision = Decision.denied(DenyReason.UNKNOWN_USER)
        else:
            decision = self.access_service.decide(user, gate, as_of, restrictions)

        if not ticket.begin_record():
            logger.info("Dropping decision for user=%s, the scan already timed out", user_id)
            return None
        return self._record(user, user_id, gate, controller, decision, as_of)

    def _record(self, user: Optional[User], user_id: int, gate: Gate, controller: Controller,
                decision: Decision, as_of: date) -> ScanOutcome:
        try:
            event = self.ledger.record_attempt(user_id, gate, controller.id, decision, as_of)
        except LedgerError as exc:
            if exc.reason is not LedgerErrorReason.CONTENTION:
                logger.error("Could not record scan for user=%s: %s", user_id, exc)
                return ScanOutcome.undetermined(UndeterminedReason.STORE_UNAVAILABLE, user_id=user_id)
            try:
                event = self.ledger.record_contention(user_id, gate, controller.id, as_of)
            except LedgerError as audit_exc:
                logger.error("Could not audit contention for user=%s: %s", user_id, audit_exc)
                event = None
            return ScanOutcome.undetermined(UndeterminedReason.CONTENTION, user_id=user_id, event=event)

        user_name = user.full_name if user else None
        if decision.allow:
            movement = event.movement
            return ScanOutcome(
                status=ScanStatus.ALLOW,
                message=f"Access granted - {movement.label}",
                user_id=user_id,
                user_name=user_name,
                movement=movement,
                event=event,
            )

        if decision.reason is DenyReason.NOT_PERMITTED_FOR_ROLE:
            message = f"Access denied - role {user.role.value} not permitted at gate {gate.value}"
        else:
            message = _DENY_MESSAGES.get(decision.reason, "Access denied")
        return ScanOutcome(
            status=ScanStatus.DENY,
            message=message,
            reason=decision.reason.value,
            user_id=user_id,
            user_name=user_name,
            event=event,
        )

    def shutdown(self) -> None:
        self._executor.shutdown(wait=False)
