"""Opaque bearer sessions for workers and the main admin.

Tokens are random UUID4 strings persisted with a fixed expiry. Lookups check
``expires_at > now`` at read time; nothing sweeps expired rows.
"""
import enum
import logging
import uuid
from datetime import datetime, timedelta
from typing import Optional, Tuple

from sqlalchemy.orm import Session

from ..config import SESSION_TTL_HOURS
from ..db import utcnow
from ..errors import Unauthenticated
from ..models import AdminSession, MainAdmin, Worker, WorkerSession

logger = logging.getLogger(__name__)


class SessionRole(str, enum.Enum):
    WORKER = "worker"
    ADMIN = "admin"


# role -> (session model, owner model, owner fk column name)
_ROLE_TABLES = {
    SessionRole.WORKER: (WorkerSession, Worker, "worker_id"),
    SessionRole.ADMIN: (AdminSession, MainAdmin, "admin_id"),
}


def bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    token = authorization.replace("Bearer ", "", 1).strip()
    return token or None


def create_session(db: Session, owner_id: int, role: SessionRole) -> Tuple[str, datetime]:
    session_model, _, owner_column = _ROLE_TABLES[role]
    token = str(uuid.uuid4())
    expires_at = utcnow() + timedelta(hours=SESSION_TTL_HOURS)
    db.add(session_model(token=token, expires_at=expires_at, **{owner_column: owner_id}))
    db.commit()
    return token, expires_at


def authenticate(db: Session, token: Optional[str], role: SessionRole):
    """Return the owner row for a live token or raise ``Unauthenticated``."""
    if not token:
        raise Unauthenticated()
    session_model, owner_model, owner_column = _ROLE_TABLES[role]
    owner = (
        db.query(owner_model)
        .join(session_model, getattr(session_model, owner_column) == owner_model.id)
        .filter(session_model.token == token, session_model.expires_at > utcnow())
        .first()
    )
    if owner is None:
        raise Unauthenticated()
    return owner


def invalidate_session(db: Session, token: Optional[str], role: SessionRole) -> int:
    if not token:
        return 0
    session_model = _ROLE_TABLES[role][0]
    deleted = db.query(session_model).filter(session_model.token == token).delete(synchronize_session=False)
    db.commit()
    return deleted


def invalidate_all_sessions(db: Session, owner_id: int, role: SessionRole, commit: bool = True) -> int:
    session_model, _, owner_column = _ROLE_TABLES[role]
    deleted = (
        db.query(session_model)
        .filter(getattr(session_model, owner_column) == owner_id)
        .delete(synchronize_session=False)
    )
    if commit:
        db.commit()
    logger.info("Invalidated %d %s session(s) for owner %s", deleted, role.value, owner_id)
    return deleted
