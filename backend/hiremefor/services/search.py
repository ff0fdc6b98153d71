import math
from typing import Optional

from sqlalchemy import case, func
from sqlalchemy.orm import Session, selectinload

from ..models import Area, Rating, RatingStatus, Worker, WorkerSkill

ALLOWED_PAGE_SIZES = (10, 20, 50)
DEFAULT_PAGE_SIZE = 10
SORT_KEYS = ("first_name", "surname", "age", "rating")
SORT_ALIASES = {"name": "first_name"}


def clamp_page_size(limit: Optional[int]) -> int:
    return limit if limit in ALLOWED_PAGE_SIZES else DEFAULT_PAGE_SIZE


def normalize_sort(sort_by: Optional[str], sort_order: Optional[str]):
    key = SORT_ALIASES.get(sort_by, sort_by)
    if key not in SORT_KEYS:
        key = "first_name"
    direction = "DESC" if (sort_order or "").upper() == "DESC" else "ASC"
    return key, direction


def skills_payload(worker: Worker):
    return [{"name": ws.skill.name, "years_experience": ws.years_experience} for ws in worker.skills]


def search_workers(
    db: Session,
    area_id: Optional[int] = None,
    skill_id: Optional[int] = None,
    page: int = 1,
    limit: Optional[int] = None,
    sort_by: Optional[str] = None,
    sort_order: Optional[str] = None,
) -> dict:
    page = max(page or 1, 1)
    limit = clamp_page_size(limit)
    key, direction = normalize_sort(sort_by, sort_order)

    accepted = (
        db.query(
            Rating.worker_id.label("worker_id"),
            func.avg(Rating.stars).label("avg_rating"),
            func.count(Rating.id).label("rating_count"),
        )
        .filter(Rating.status == RatingStatus.ACCEPTED.value)
        .group_by(Rating.worker_id)
        .subquery()
    )

    filters = []
    if area_id:
        filters.append(Worker.area_id == area_id)
    if skill_id:
        filters.append(Worker.skills.any(WorkerSkill.skill_id == skill_id))

    total = db.query(func.count(Worker.id)).filter(*filters).scalar() or 0

    if key == "rating":
        column = accepted.c.avg_rating
        # unrated workers always go last, ties broken by first name
        order = [
            case((column.is_(None), 1), else_=0),
            column.desc() if direction == "DESC" else column.asc(),
            Worker.first_name.asc(),
        ]
    else:
        column = getattr(Worker, key)
        order = [column.desc() if direction == "DESC" else column.asc(), Worker.id.asc()]

    rows = (
        db.query(Worker, Area.name, accepted.c.avg_rating, accepted.c.rating_count)
        .outerjoin(Area, Worker.area_id == Area.id)
        .outerjoin(accepted, accepted.c.worker_id == Worker.id)
        .options(selectinload(Worker.skills).selectinload(WorkerSkill.skill))
        .filter(*filters)
        .order_by(*order)
        .limit(limit)
        .offset((page - 1) * limit)
        .all()
    )

    return {
        "workers": [
            {
                "id": w.id,
                "first_name": w.first_name,
                "surname": w.surname,
                "age": w.age,
                "gender": w.gender,
                "profile_photo_url": w.profile_photo_url,
                "bio": w.bio,
                "area_name": area_name,
                "avg_rating": float(avg) if avg is not None else 0.0,
                "rating_count": int(count or 0),
                "skills": skills_payload(w),
            }
            for w, area_name, avg, count in rows
        ],
        "pagination": {
            "total": total,
            "page": page,
            "limit": limit,
            "total_pages": math.ceil(total / limit),
        },
    }
