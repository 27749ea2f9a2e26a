# =======================================================================================
# gatepass/services/directory.py - Read-only Store Lookups
# =======================================================================================
import logging
from datetime import date
from typing import FrozenSet, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from ..database import DatabaseManager
from ..models.schemas import Controller, Restriction, User
from ..schema import controllers, groups, restrictions, users
from ..utils.exceptions import DirectoryError, DirectoryErrorReason

logger = logging.getLogger(__name__)


class Directory:
    """
    Point-in-time reads of users, restrictions and controllers.

    Nothing is cached: enabled flags and restrictions can change between two
    scans, so every lookup goes to the store. Any store failure is reported as
    ``DirectoryError(UNAVAILABLE)``.
    """

    def __init__(self, db: DatabaseManager):
        self.db = db

    def get_user(self, user_id: int) -> User:
        query = (
            select(
                users.c.id, users.c.dni, users.c.name, users.c.lastname,
                users.c.role, users.c.group_id, users.c.enabled,
                groups.c.name.label("group_name"),
            )
            .select_from(users.outerjoin(groups, users.c.group_id == groups.c.id))
            .where(users.c.id == user_id)
        )
        row = self._fetch_one(query, "user", user_id)
        if row is None:
            raise DirectoryError(DirectoryErrorReason.NOT_FOUND, f"User {user_id} not found")
        return User(**row)

    def get_controller(self, email: str) -> Controller:
        query = select(controllers).where(controllers.c.email == email)
        row = self._fetch_one(query, "controller", email)
        if row is None:
            raise DirectoryError(DirectoryErrorReason.NOT_FOUND, f"Controller {email} not found")
        return Controller(**row)

    def get_restrictions(self, group_id: Optional[int], as_of: date) -> FrozenSet[Restriction]:
        """Restrictions of ``group_id`` active on ``as_of``."""
        if group_id is None:
            return frozenset()
        query = select(restrictions).where(
            restrictions.c.group_id == group_id,
            restrictions.c.date == as_of,
        )
        try:
            with self.db.get_connection() as conn:
                rows = conn.execute(query).mappings().all()
        except SQLAlchemyError as exc:
            logger.error("Restriction lookup failed for group=%s: %s", group_id, exc)
            raise DirectoryError(DirectoryErrorReason.UNAVAILABLE, "Store unavailable") from exc
        return frozenset(Restriction(**row) for row in rows)

    def _fetch_one(self, query, kind: str, key):
        try:
            with self.db.get_connection() as conn:
                return conn.execute(query).mappings().first()
        except SQLAlchemyError as exc:
            logger.error("%s lookup failed for %s: %s", kind.capitalize(), key, exc)
            raise DirectoryError(DirectoryErrorReason.UNAVAILABLE, "Store unavailable") from exc
