import enum

from sqlalchemy.orm import Session

from ..models import Area, Skill

AUTOCOMPLETE_LIMIT = 10


class ReferenceKind(str, enum.Enum):
    SKILLS = "skills"
    AREAS = "areas"

    @property
    def model(self):
        return Skill if self is ReferenceKind.SKILLS else Area


def serialize(kind: ReferenceKind, row) -> dict:
    data = {"id": row.id, "name": row.name, "created_at": row.created_at}
    if kind is ReferenceKind.AREAS:
        data["province"] = row.province
    return data


def list_all(db: Session, kind: ReferenceKind):
    model = kind.model
    return [serialize(kind, row) for row in db.query(model).order_by(model.name).all()]


def autocomplete(db: Session, kind: ReferenceKind, q: str = ""):
    model = kind.model
    rows = (
        db.query(model)
        .filter(model.name.ilike(f"%{q}%"))
        .order_by(model.name)
        .limit(AUTOCOMPLETE_LIMIT)
        .all()
    )
    return [serialize(kind, row) for row in rows]
