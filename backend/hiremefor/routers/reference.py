from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..db import get_db
from ..services.reference import ReferenceKind, autocomplete, list_all


def build_router(kind: ReferenceKind) -> APIRouter:
    router = APIRouter()

    @router.get("")
    def list_items(db: Session = Depends(get_db)):
        return list_all(db, kind)

    @router.get("/search")
    def search_items(q: str = "", db: Session = Depends(get_db)):
        return autocomplete(db, kind, q)

    return router


skills_router = build_router(ReferenceKind.SKILLS)
areas_router = build_router(ReferenceKind.AREAS)
