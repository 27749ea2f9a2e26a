from datetime import date
from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from gatepass.models import Gate, Role
from gatepass.services.directory import Directory
from gatepass.utils.exceptions import DirectoryError, DirectoryErrorReason

DAY = date(2024, 1, 1)


def test_get_user_with_group(db, seed):
    seed.group(3, "Staff")
    seed.user(40123456, role="X - TEC", group_id=3, name="Ana", lastname="Paz")

    user = Directory(db).get_user(40123456)

    assert user.role is Role.X_TEC
    assert user.group_id == 3
    assert user.group_name == "Staff"
    assert user.enabled is True
    assert user.full_name == "Ana Paz"


def test_get_user_without_group(db, seed):
    seed.user(7, role="A")
    user = Directory(db).get_user(7)
    assert user.group_id is None
    assert user.group_name is None


def test_get_user_not_found(db):
    with pytest.raises(DirectoryError) as exc_info:
        Directory(db).get_user(999)
    assert exc_info.value.reason is DirectoryErrorReason.NOT_FOUND


def test_get_controller(db, seed):
    seed.controller(1, "gate1@example.com", gate="S3")
    controller = Directory(db).get_controller("gate1@example.com")
    assert controller.id == 1
    assert controller.gate is Gate.S3


def test_get_controller_not_found(db):
    with pytest.raises(DirectoryError) as exc_info:
        Directory(db).get_controller("nobody@example.com")
    assert exc_info.value.reason is DirectoryErrorReason.NOT_FOUND


def test_get_restrictions_is_scoped_by_group_and_date(db, seed):
    seed.group(3, "Staff")
    seed.group(4, "Press")
    seed.restriction(3, DAY)
    seed.restriction(3, date(2024, 1, 2))
    seed.restriction(4, DAY)

    found = Directory(db).get_restrictions(3, DAY)

    assert len(found) == 1
    (restriction,) = found
    assert restriction.group_id == 3
    assert restriction.date == DAY


def test_get_restrictions_without_group(db):
    assert Directory(db).get_restrictions(None, DAY) == frozenset()


def test_lookups_are_not_cached(db, seed):
    seed.group(3, "Staff")
    directory = Directory(db)
    assert directory.get_restrictions(3, DAY) == frozenset()
    seed.restriction(3, DAY)
    assert len(directory.get_restrictions(3, DAY)) == 1


def _broken_db():
    broken = MagicMock()
    broken.get_connection.side_effect = OperationalError("SELECT", {}, Exception("down"))
    return broken


@pytest.mark.parametrize("call", [
    lambda d: d.get_user(1),
    lambda d: d.get_controller("gate1@example.com"),
    lambda d: d.get_restrictions(3, DAY),
])
def test_store_failure_is_unavailable(call):
    with pytest.raises(DirectoryError) as exc_info:
        call(Directory(_broken_db()))
    assert exc_info.value.reason is DirectoryErrorReason.UNAVAILABLE
