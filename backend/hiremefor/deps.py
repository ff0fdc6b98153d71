from typing import Optional

from fastapi import Depends, Header, HTTPException
from sqlalchemy.orm import Session

from .db import get_db
from .errors import Unauthenticated
from .models import MainAdmin, Worker
from .services.sessions import SessionRole, authenticate, bearer_token


def _require(role: SessionRole, authorization: Optional[str], db: Session):
    try:
        return authenticate(db, bearer_token(authorization), role)
    except Unauthenticated:
        raise HTTPException(status_code=401, detail="Invalid or expired session") from None


def current_worker(
    authorization: Optional[str] = Header(None),
    db: Session = Depends(get_db),
) -> Worker:
    return _require(SessionRole.WORKER, authorization, db)


def current_admin(
    authorization: Optional[str] = Header(None),
    db: Session = Depends(get_db),
) -> MainAdmin:
    return _require(SessionRole.ADMIN, authorization, db)
