from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from gatepass.models import Gate
from gatepass.services.directory import Directory
from gatepass.services.gate_session import GateSession, SessionRegistry
from gatepass.utils.exceptions import (
    DirectoryError, DirectoryErrorReason, SessionError, SessionErrorReason,
)

from .conftest import make_controller


def test_change_gate_persists_and_updates_session(db, seed):
    email = seed.controller(1, gate="S1")
    session = GateSession(Directory(db).get_controller(email), db)

    updated = session.change_gate(Gate.S3)

    assert updated.gate is Gate.S3
    assert session.gate is Gate.S3
    assert Directory(db).get_controller(email).gate is Gate.S3


def test_change_to_same_gate_is_noop(db, seed):
    email = seed.controller(1, gate="S2")
    session = GateSession(Directory(db).get_controller(email), db)
    assert session.change_gate(Gate.S2) is session.controller


def test_store_failure_leaves_binding_unchanged():
    broken = MagicMock()
    broken.get_connection.side_effect = OperationalError("UPDATE", {}, Exception("down"))
    controller = make_controller(Gate.S1)
    session = GateSession(controller, broken)

    with pytest.raises(SessionError) as exc_info:
        session.change_gate(Gate.S4)

    assert exc_info.value.reason is SessionErrorReason.PERSIST_FAILED
    assert session.controller is controller
    assert session.gate is Gate.S1


def test_missing_controller_row_is_persist_failure(db):
    session = GateSession(make_controller(Gate.S1, controller_id=42), db)
    with pytest.raises(SessionError):
        session.change_gate(Gate.S2)
    assert session.gate is Gate.S1


def test_sessions_are_independent(db, seed):
    seed.controller(1, "gate1@example.com", gate="S1")
    seed.controller(2, "gate2@example.com", gate="S1")
    registry = SessionRegistry(Directory(db), db)

    registry.get("gate1@example.com").change_gate(Gate.S4)

    assert registry.get("gate1@example.com").gate is Gate.S4
    assert registry.get("gate2@example.com").gate is Gate.S1


def test_registry_reuses_session(db, seed):
    seed.controller(1, "gate1@example.com")
    registry = SessionRegistry(Directory(db), db)
    assert registry.get("gate1@example.com") is registry.get("gate1@example.com")


def test_registry_unknown_controller(db):
    registry = SessionRegistry(Directory(db), db)
    with pytest.raises(DirectoryError) as exc_info:
        registry.get("nobody@example.com")
    assert exc_info.value.reason is DirectoryErrorReason.NOT_FOUND


def test_scan_guard_is_exclusive():
    session = GateSession(make_controller(), MagicMock())
    assert session.try_begin_scan()
    assert not session.try_begin_scan()
    session.end_scan()
    assert session.try_begin_scan()
    session.end_scan()
