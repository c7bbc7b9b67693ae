from __future__ import annotations

import logging
from datetime import datetime, timedelta

from sqlalchemy import delete, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from accessmap.core.config import settings
from accessmap.core.errors import NetworkError
from accessmap.models.enums import UserRole
from accessmap.models.users import AuthSession, UserAuth

logger = logging.getLogger(__name__)


class AccountError(Exception):
    """Raised for operator mistakes: unknown role, unknown or disabled account."""


def active_sessions(db: Session, user_id: str) -> list[AuthSession]:
    stmt = (
        select(AuthSession)
        .where(AuthSession.user_id == user_id, AuthSession.revoked_at.is_(None))
        .order_by(AuthSession.created_at.desc())
    )
    return list(db.scalars(stmt).all())


def set_user_role(db: Session, *, email: str, role: str) -> tuple[UserAuth, list[AuthSession]]:
    """Change a user's role and return the sessions it applies to immediately.

    Roles are read from the account on every request, so signed-in sessions
    pick up the change without signing in again.
    """
    if role not in {r.value for r in UserRole}:
        raise AccountError(f"Unknown role: {role}")

    user = db.scalar(select(UserAuth).where(UserAuth.email == email))
    if user is None:
        raise AccountError(f"User not found: {email}")
    if not user.is_active and role == UserRole.admin.value:
        raise AccountError(f"Refusing to promote inactive account: {email}")

    previous = user.role
    user.role = role
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Role change failed for %s", user.id)
        raise NetworkError("Could not save role change") from e

    logger.info("Role changed for %s: %s -> %s", user.id, previous, role)
    return user, active_sessions(db, user.id)


def prune_auth_sessions(db: Session, *, now: datetime | None = None) -> int:
    """Delete revoked sessions and sessions whose tokens have all expired."""
    cutoff = (now or datetime.utcnow()) - timedelta(minutes=settings.access_token_exp_minutes)
    stmt = delete(AuthSession).where(
        or_(AuthSession.revoked_at.is_not(None), AuthSession.created_at < cutoff)
    )
    try:
        result = db.execute(stmt)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Session cleanup failed")
        raise NetworkError("Could not prune sessions") from e

    logger.info("Pruned %s auth sessions older than %s or revoked", result.rowcount, cutoff)
    return result.rowcount
