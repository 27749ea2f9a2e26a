# =======================================================================================
# gatepass/services/movement_ledger.py - Movement State + Access Event Log
# =======================================================================================
import logging
from datetime import date, datetime, timezone
from typing import List, Optional, Tuple

from sqlalchemy import insert, select, update
from sqlalchemy.engine import Connection
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ..config import config
from ..database import DatabaseManager
from ..models.enums import DenyReason, Gate, MovementState
from ..models.schemas import AccessEvent, Decision
from ..schema import access_events, movements
from ..utils.exceptions import LedgerError, LedgerErrorReason

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class MovementLedger:
    """
    Single writer of movement state and the access event log.

    Allowed attempts flip the user's state with a compare-and-swap on
    ``movements.version`` and append the event in the same transaction, so
    state and history never diverge. Denied attempts only append.
    """

    def __init__(self, db: DatabaseManager, max_retries: Optional[int] = None):
        self.db = db
        self.max_retries = max_retries if max_retries is not None else config.LEDGER_MAX_RETRIES

    # ----------------------------------------------------------------------
    # Reads
    # ----------------------------------------------------------------------
    def current_state(self, user_id: int) -> MovementState:
        state, _ = self._read_state(user_id)
        return state

    def history(self, user_id: int) -> List[AccessEvent]:
        """All events for ``user_id``, oldest first."""
        query = (
            select(access_events)
            .where(access_events.c.user_id == user_id)
            .order_by(access_events.c.id)
        )
        try:
            with self.db.get_connection() as conn:
                rows = conn.execute(query).mappings().all()
        except SQLAlchemyError as exc:
            raise LedgerError(LedgerErrorReason.UNAVAILABLE, "Store unavailable") from exc
        return [AccessEvent(**row) for row in rows]

    def _read_state(self, user_id: int) -> Tuple[MovementState, int]:
        """Return (state, version). Version 0 means no row yet."""
        query = select(movements.c.state, movements.c.version).where(movements.c.user_id == user_id)
        try:
            with self.db.get_connection() as conn:
                row = conn.execute(query).mappings().first()
        except SQLAlchemyError as exc:
            raise LedgerError(LedgerErrorReason.UNAVAILABLE, "Store unavailable") from exc
        if row is None:
            return MovementState.OUTSIDE, 0
        return MovementState(row["state"]), row["version"]

    # ----------------------------------------------------------------------
    # Writes
    # ----------------------------------------------------------------------
    def record_attempt(self, user_id: int, gate: Gate, controller_id: int,
                       decision: Decision, as_of: date) -> AccessEvent:
        """Append the attempt; on allow, also toggle the user's movement state."""
        if not decision.allow:
            return self._append_only(user_id, gate, controller_id, decision.reason, as_of)

        for attempt in range(1, self.max_retries + 1):
            current, version = self._read_state(user_id)
            new_state = current.toggled()
            try:
                with self.db.get_connection() as conn:
                    if self._swap_state(conn, user_id, version, new_state):
                        event = self._insert_event(
                            conn, user_id, gate, controller_id, True, None, as_of,
                            current, new_state,
                        )
                        logger.info(
                            "user=%s gate=%s %s -> %s (event %s)",
                            user_id, gate.value, current.value, new_state.value, event.id,
                        )
                        return event
            except IntegrityError:
                # another writer created the movement row first
                pass
            except SQLAlchemyError as exc:
                raise LedgerError(LedgerErrorReason.UNAVAILABLE, "Store unavailable") from exc

            logger.warning(
                "Movement state for user=%s changed concurrently (attempt %s/%s)",
                user_id, attempt, self.max_retries,
            )

        logger.error("Giving up on user=%s after %s attempts", user_id, self.max_retries)
        raise LedgerError(LedgerErrorReason.CONTENTION, f"Concurrent updates for user {user_id}")

    def record_contention(self, user_id: int, gate: Gate, controller_id: int, as_of: date) -> AccessEvent:
        """Audit an allowed attempt that could not be applied."""
        return self._append_only(user_id, gate, controller_id, DenyReason.CONTENTION, as_of)

    def _append_only(self, user_id: int, gate: Gate, controller_id: int,
                     reason: Optional[DenyReason], as_of: date) -> AccessEvent:
        try:
            with self.db.get_connection() as conn:
                event = self._insert_event(conn, user_id, gate, controller_id, False, reason, as_of)
        except SQLAlchemyError as exc:
            raise LedgerError(LedgerErrorReason.UNAVAILABLE, "Store unavailable") from exc
        logger.info("user=%s gate=%s denied: %s (event %s)",
                    user_id, gate.value, reason.value if reason else None, event.id)
        return event

    @staticmethod
    def _swap_state(conn: Connection, user_id: int, expected_version: int,
                    new_state: MovementState) -> bool:
        if expected_version == 0:
            conn.execute(
                insert(movements).values(user_id=user_id, state=new_state.value, version=1)
            )
            return True
        result = conn.execute(
            update(movements)
            .where(movements.c.user_id == user_id, movements.c.version == expected_version)
            .values(state=new_state.value, version=expected_version + 1)
        )
        return result.rowcount == 1

    @staticmethod
    def _insert_event(conn: Connection, user_id: int, gate: Gate, controller_id: int,
                      allowed: bool, reason: Optional[DenyReason], as_of: date,
                      from_state: Optional[MovementState] = None,
                      to_state: Optional[MovementState] = None) -> AccessEvent:
        values = {
            "timestamp": _utcnow(),
            "as_of": as_of,
            "user_id": user_id,
            "gate": gate.value,
            "controller_id": controller_id,
            "allowed": allowed,
            "reason": reason.value if reason else None,
            "from_state": from_state.value if from_state else None,
            "to_state": to_state.value if to_state else None,
        }
        result = conn.execute(insert(access_events).values(**values))
        return AccessEvent(id=result.inserted_primary_key[0], **values)
