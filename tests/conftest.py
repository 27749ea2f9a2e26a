from datetime import date
from typing import Optional

import pytest
from sqlalchemy import insert

from gatepass import schema
from gatepass.database import DatabaseManager
from gatepass.models import Controller, Gate, Role, User


@pytest.fixture
def db():
    manager = DatabaseManager("sqlite:///:memory:")
    manager.create_schema()
    yield manager
    manager.dispose()


class Seeder:
    """Writes fixture rows straight into the store."""

    def __init__(self, db: DatabaseManager):
        self.db = db

    def group(self, group_id: int, name: str) -> int:
        with self.db.get_connection() as conn:
            conn.execute(insert(schema.groups).values(id=group_id, name=name))
        return group_id

    def user(self, user_id: int, role: str = "B", enabled: bool = True,
             group_id: Optional[int] = None, name: str = "Ana", lastname: str = "Paz") -> int:
        with self.db.get_connection() as conn:
            conn.execute(insert(schema.users).values(
                id=user_id, dni=user_id, name=name, lastname=lastname,
                role=role, group_id=group_id, enabled=enabled,
            ))
        return user_id

    def restriction(self, group_id: int, day: date) -> None:
        with self.db.get_connection() as conn:
            conn.execute(insert(schema.restrictions).values(group_id=group_id, date=day))

    def controller(self, controller_id: int = 1, email: str = "gate1@example.com",
                   gate: str = "S1") -> str:
        with self.db.get_connection() as conn:
            conn.execute(insert(schema.controllers).values(
                id=controller_id, email=email, name="Luis", lastname="Sosa",
                dni=30111222, gate=gate,
            ))
        return email


@pytest.fixture
def seed(db):
    return Seeder(db)


def make_user(role: Role = Role.B, enabled: bool = True, group_id: Optional[int] = None,
              user_id: int = 40123456) -> User:
    return User(id=user_id, dni=user_id, name="Ana", lastname="Paz",
                role=role, group_id=group_id, enabled=enabled)


def make_controller(gate: Gate = Gate.S1, controller_id: int = 1) -> Controller:
    return Controller(id=controller_id, email="gate1@example.com", name="Luis",
                      lastname="Sosa", dni=30111222, gate=gate)


@pytest.fixture
def file_db(tmp_path):
    """File-backed store with a real connection pool, for tests that race threads."""
    manager = DatabaseManager(f"sqlite:///{tmp_path / 'gatepass.db'}")
    manager.create_schema()
    yield manager
    manager.dispose()
