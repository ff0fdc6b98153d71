import logging
import math
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException
from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..db import get_db
from ..deps import current_admin
from ..models import Area, MainAdmin, Rating, RatingStatus, Skill, Worker, WorkerSkill
from ..schemas import AdminLoginIn, AreaIn, NameIn, RatingOut, WorkerOut
from ..security import verify_secret
from ..services import photos
from ..services.search import skills_payload
from ..services.sessions import SessionRole, bearer_token, create_session, invalidate_session

logger = logging.getLogger(__name__)
router = APIRouter()

SKILL_IN_USE = "Cannot delete skill - it is currently assigned to workers"
AREA_IN_USE = "Cannot delete area - workers are registered in this area"


def _pagination(total: int, page: int, limit: int) -> dict:
    return {"total": total, "page": page, "limit": limit, "total_pages": math.ceil(total / limit)}


def _page_args(page: int, limit: int):
    page = max(page, 1)
    limit = min(max(limit, 1), 100)
    return page, limit, (page - 1) * limit


def _clean_name(body: NameIn, label: str) -> str:
    name = (body.name or "").strip()
    if not name:
        raise HTTPException(status_code=400, detail=f"{label} name required")
    return name


def _worker_dict(worker: Worker) -> dict:
    return {
        **WorkerOut.model_validate(worker).model_dump(),
        "area_name": worker.area.name if worker.area else None,
    }


@router.post("/login")
def login(body: AdminLoginIn, db: Session = Depends(get_db)):
    if not body.username or not body.password:
        raise HTTPException(status_code=400, detail="Username and password required")

    admin = db.query(MainAdmin).filter(MainAdmin.username == body.username).first()
    if not admin or not verify_secret(body.password, admin.password_hash):
        logger.info("Failed admin login for %s", body.username)
        raise HTTPException(status_code=401, detail="Invalid credentials")

    token, _ = create_session(db, admin.id, SessionRole.ADMIN)
    return {
        "message": "Login successful",
        "token": token,
        "admin": {"id": admin.id, "username": admin.username},
    }


@router.post("/logout")
def logout(authorization: Optional[str] = Header(None), db: Session = Depends(get_db)):
    invalidate_session(db, bearer_token(authorization), SessionRole.ADMIN)
    return {"message": "Logged out successfully"}


@router.get("/dashboard")
def dashboard(admin: MainAdmin = Depends(current_admin), db: Session = Depends(get_db)):
    recent = db.query(Worker).order_by(Worker.created_at.desc(), Worker.id.desc()).limit(10).all()
    return {
        "stats": {
            "total_workers": db.query(Worker).count(),
            "total_ratings": db.query(Rating).count(),
            "total_skills": db.query(Skill).count(),
            "total_areas": db.query(Area).count(),
        },
        "recent_workers": [
            {
                "id": w.id,
                "first_name": w.first_name,
                "surname": w.surname,
                "phone_number": w.phone_number,
                "created_at": w.created_at,
            }
            for w in recent
        ],
    }


# --- workers ---

@router.get("/workers")
def list_workers(
    search: Optional[str] = None,
    page: int = 1,
    limit: int = 20,
    admin: MainAdmin = Depends(current_admin),
    db: Session = Depends(get_db),
):
    page, limit, offset = _page_args(page, limit)
    q = db.query(Worker)
    if search:
        like = f"%{search}%"
        q = q.filter(or_(Worker.first_name.ilike(like), Worker.surname.ilike(like), Worker.phone_number.like(like)))

    total = q.count()
    workers = q.order_by(Worker.created_at.desc(), Worker.id.desc()).limit(limit).offset(offset).all()
    return {"workers": [_worker_dict(w) for w in workers], "pagination": _pagination(total, page, limit)}


@router.get("/workers/{worker_id}")
def get_worker(worker_id: int, admin: MainAdmin = Depends(current_admin), db: Session = Depends(get_db)):
    worker = db.get(Worker, worker_id)
    if not worker:
        raise HTTPException(status_code=404, detail="Worker not found")

    worker_ratings = (
        db.query(Rating)
        .filter(Rating.worker_id == worker.id)
        .order_by(Rating.created_at.desc(), Rating.id.desc())
        .all()
    )
    return {
        **_worker_dict(worker),
        "skills": skills_payload(worker),
        "ratings": [RatingOut.model_validate(r).model_dump() for r in worker_ratings],
    }


@router.delete("/workers/{worker_id}")
def delete_worker(worker_id: int, admin: MainAdmin = Depends(current_admin), db: Session = Depends(get_db)):
    worker = db.get(Worker, worker_id)
    if not worker:
        raise HTTPException(status_code=404, detail="Worker not found")

    photo_url = worker.profile_photo_url
    db.delete(worker)
    db.commit()
    photos.delete_photo(photo_url)
    logger.info("Admin %s removed worker %s", admin.username, worker_id)
    return {"message": "Worker removed successfully"}


# --- skills ---

@router.get("/skills")
def list_skills(admin: MainAdmin = Depends(current_admin), db: Session = Depends(get_db)):
    counts = (
        db.query(WorkerSkill.skill_id, func.count(WorkerSkill.id).label("worker_count"))
        .group_by(WorkerSkill.skill_id)
        .subquery()
    )
    rows = (
        db.query(Skill, counts.c.worker_count)
        .outerjoin(counts, counts.c.skill_id == Skill.id)
        .order_by(Skill.name)
        .all()
    )
    return [
        {"id": s.id, "name": s.name, "created_at": s.created_at, "worker_count": int(n or 0)}
        for s, n in rows
    ]


@router.post("/skills", status_code=201)
def create_skill(body: NameIn, admin: MainAdmin = Depends(current_admin), db: Session = Depends(get_db)):
    name = _clean_name(body, "Skill")
    skill = Skill(name=name)
    db.add(skill)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=400, detail="Skill already exists") from None
    logger.info("Admin %s added skill %s", admin.username, name)
    return {"id": skill.id, "name": skill.name}


@router.put("/skills/{skill_id}")
def update_skill(
    skill_id: int,
    body: NameIn,
    admin: MainAdmin = Depends(current_admin),
    db: Session = Depends(get_db),
):
    name = _clean_name(body, "Skill")
    skill = db.get(Skill, skill_id)
    if not skill:
        raise HTTPException(status_code=404, detail="Skill not found")
    skill.name = name
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=400, detail="Skill already exists") from None
    return {"message": "Skill updated successfully"}


@router.delete("/skills/{skill_id}")
def delete_skill(skill_id: int, admin: MainAdmin = Depends(current_admin), db: Session = Depends(get_db)):
    in_use = db.query(WorkerSkill).filter(WorkerSkill.skill_id == skill_id).count()
    if in_use:
        raise HTTPException(status_code=400, detail=SKILL_IN_USE)

    try:
        deleted = db.query(Skill).filter(Skill.id == skill_id).delete(synchronize_session=False)
        if not deleted:
            raise HTTPException(status_code=404, detail="Skill not found")
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=400, detail=SKILL_IN_USE) from None
    logger.info("Admin %s deleted skill %s", admin.username, skill_id)
    return {"message": "Skill deleted successfully"}


# --- areas ---

@router.get("/areas")
def list_areas(admin: MainAdmin = Depends(current_admin), db: Session = Depends(get_db)):
    counts = (
        db.query(Worker.area_id, func.count(Worker.id).label("worker_count"))
        .group_by(Worker.area_id)
        .subquery()
    )
    rows = (
        db.query(Area, counts.c.worker_count)
        .outerjoin(counts, counts.c.area_id == Area.id)
        .order_by(Area.name)
        .all()
    )
    return [
        {
            "id": a.id,
            "name": a.name,
            "province": a.province,
            "created_at": a.created_at,
            "worker_count": int(n or 0),
        }
        for a, n in rows
    ]


@router.post("/areas", status_code=201)
def create_area(body: AreaIn, admin: MainAdmin = Depends(current_admin), db: Session = Depends(get_db)):
    name = _clean_name(body, "Area")
    area = Area(name=name, province=body.province or None)
    db.add(area)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=400, detail="Area already exists") from None
    logger.info("Admin %s added area %s", admin.username, name)
    return {"id": area.id, "name": area.name, "province": area.province}


@router.put("/areas/{area_id}")
def update_area(
    area_id: int,
    body: AreaIn,
    admin: MainAdmin = Depends(current_admin),
    db: Session = Depends(get_db),
):
    name = _clean_name(body, "Area")
    area = db.get(Area, area_id)
    if not area:
        raise HTTPException(status_code=404, detail="Area not found")
    area.name = name
    area.province = body.province or None
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=400, detail="Area already exists") from None
    return {"message": "Area updated successfully"}


@router.delete("/areas/{area_id}")
def delete_area(area_id: int, admin: MainAdmin = Depends(current_admin), db: Session = Depends(get_db)):
    in_use = db.query(Worker).filter(Worker.area_id == area_id).count()
    if in_use:
        raise HTTPException(status_code=400, detail=AREA_IN_USE)

    try:
        deleted = db.query(Area).filter(Area.id == area_id).delete(synchronize_session=False)
        if not deleted:
            raise HTTPException(status_code=404, detail="Area not found")
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=400, detail=AREA_IN_USE) from None
    logger.info("Admin %s deleted area %s", admin.username, area_id)
    return {"message": "Area deleted successfully"}


# --- ratings ---

@router.get("/ratings")
def list_ratings(
    status: Optional[str] = None,
    page: int = 1,
    limit: int = 20,
    admin: MainAdmin = Depends(current_admin),
    db: Session = Depends(get_db),
):
    page, limit, offset = _page_args(page, limit)
    q = db.query(Rating, Worker).join(Worker, Rating.worker_id == Worker.id)
    if status in {s.value for s in RatingStatus}:
        q = q.filter(Rating.status == status)

    total = q.count()
    rows = q.order_by(Rating.created_at.desc(), Rating.id.desc()).limit(limit).offset(offset).all()
    return {
        "ratings": [
            {
                **RatingOut.model_validate(r).model_dump(),
                "first_name": w.first_name,
                "surname": w.surname,
                "phone_number": w.phone_number,
            }
            for r, w in rows
        ],
        "pagination": _pagination(total, page, limit),
    }


@router.delete("/ratings/{rating_id}")
def delete_rating(rating_id: int, admin: MainAdmin = Depends(current_admin), db: Session = Depends(get_db)):
    deleted = db.query(Rating).filter(Rating.id == rating_id).delete(synchronize_session=False)
    if not deleted:
        raise HTTPException(status_code=404, detail="Rating not found")
    db.commit()
    logger.info("Admin %s deleted rating %s", admin.username, rating_id)
    return {"message": "Rating deleted successfully"}
