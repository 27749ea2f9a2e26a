# =======================================================================================
# gatepass/services/user_service.py - Administrative User Operations
# =======================================================================================
import logging
from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from ..database import DatabaseManager
from ..models.schemas import UserUpdateResponse
from ..schema import users

logger = logging.getLogger(__name__)


class UserService:
    """Administrator-side changes to users. Not part of the scan path."""

    def __init__(self, db: DatabaseManager):
        self.db = db

    def set_enabled(self, user_id: int, enabled: bool) -> UserUpdateResponse:
        try:
            with self.db.get_connection() as conn:
                result = conn.execute(
                    update(users).where(users.c.id == user_id).values(enabled=enabled)
                )
        except SQLAlchemyError as e:
            logger.error("Enable toggle for user=%s failed: %s", user_id, e)
            return UserUpdateResponse(success=False, message="Database error")

        if result.rowcount == 0:
            return UserUpdateResponse(success=False, message="User not found")

        logger.info("User %s %s", user_id, "enabled" if enabled else "disabled")
        return UserUpdateResponse(
            success=True,
            message="User enabled" if enabled else "User disabled",
        )
