import logging
import re
from typing import List, Optional

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..db import get_db
from ..deps import current_worker
from ..errors import PhotoRejected
from ..models import Area, Rating, RatingStatus, Skill, Worker, WorkerSkill
from ..schemas import (
    ProfileIn,
    RatingOut,
    RegisterIn,
    SkillAssignmentIn,
    SkillExperienceIn,
    SkillsIn,
    WorkerOut,
    WorkerSkillOut,
)
from ..services import photos, ratings
from .auth import valid_phone

logger = logging.getLogger(__name__)
router = APIRouter()

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
GENDERS = ("male", "female")
MAX_BIO_LENGTH = 500


def _validate_profile(db: Session, body: ProfileIn) -> None:
    if not body.first_name or not body.surname or not body.age or not body.gender or not body.area_id:
        raise HTTPException(status_code=400, detail="Required fields missing")
    if body.gender not in GENDERS:
        raise HTTPException(status_code=400, detail="Gender must be male or female")
    if body.bio and len(body.bio) > MAX_BIO_LENGTH:
        raise HTTPException(status_code=400, detail="Bio must be 500 characters or less")
    if body.email and not EMAIL_RE.match(body.email):
        raise HTTPException(status_code=400, detail="Invalid email format")
    if db.get(Area, body.area_id) is None:
        raise HTTPException(status_code=400, detail="Invalid area")


def _dedupe_skills(db: Session, skills: List[SkillAssignmentIn]) -> dict:
    """skill_id -> years_experience, last entry wins; unknown skills are rejected."""
    wanted = {s.skill_id: s.years_experience or 0 for s in skills}
    if wanted:
        known = {sid for (sid,) in db.query(Skill.id).filter(Skill.id.in_(wanted)).all()}
        if known != set(wanted):
            raise HTTPException(status_code=400, detail="Invalid skill")
    return wanted


def _worker_skills(db: Session, worker_id: int):
    return db.query(WorkerSkill).filter(WorkerSkill.worker_id == worker_id).all()


@router.get("/profile")
def get_profile(worker: Worker = Depends(current_worker), db: Session = Depends(get_db)):
    average, count = ratings.accepted_summary(db, worker.id)
    return {
        **WorkerOut.model_validate(worker).model_dump(),
        "area_name": worker.area.name if worker.area else None,
        "skills": [WorkerSkillOut.model_validate(ws).model_dump() for ws in _worker_skills(db, worker.id)],
        "average_rating": average,
        "total_ratings": count,
    }


@router.put("/profile")
def update_profile(body: ProfileIn, worker: Worker = Depends(current_worker), db: Session = Depends(get_db)):
    _validate_profile(db, body)
    worker.first_name = body.first_name
    worker.surname = body.surname
    worker.age = body.age
    worker.gender = body.gender
    worker.area_id = body.area_id
    worker.bio = body.bio or None
    worker.email = body.email or None
    db.commit()
    return {"message": "Profile updated successfully"}


@router.post("/profile/photo")
async def upload_photo(
    photo: Optional[UploadFile] = File(None),
    worker: Worker = Depends(current_worker),
    db: Session = Depends(get_db),
):
    if photo is None:
        raise HTTPException(status_code=400, detail="No photo uploaded")
    data = await photo.read()
    try:
        photos.check_upload(photo.content_type, data)
        photo_url = photos.save_profile_photo(worker.id, data)
    except PhotoRejected as e:
        raise HTTPException(status_code=400, detail=str(e)) from None

    old_url = worker.profile_photo_url
    worker.profile_photo_url = photo_url
    db.commit()
    if old_url != photo_url:
        photos.delete_photo(old_url)
    logger.info("Worker %s uploaded a profile photo", worker.id)
    return {"message": "Photo uploaded successfully", "photo_url": photo_url}


@router.delete("/profile")
def delete_account(worker: Worker = Depends(current_worker), db: Session = Depends(get_db)):
    worker_id, photo_url = worker.id, worker.profile_photo_url
    db.delete(worker)
    db.commit()
    photos.delete_photo(photo_url)
    logger.info("Worker %s deleted their account", worker_id)
    return {"message": "Account deleted successfully"}


@router.get("/skills", response_model=List[WorkerSkillOut])
def list_skills(worker: Worker = Depends(current_worker), db: Session = Depends(get_db)):
    return _worker_skills(db, worker.id)


@router.post("/skills")
def replace_skills(body: SkillsIn, worker: Worker = Depends(current_worker), db: Session = Depends(get_db)):
    if body.skills is None:
        raise HTTPException(status_code=400, detail="Skills array required")
    wanted = _dedupe_skills(db, body.skills)

    for ws in _worker_skills(db, worker.id):
        if ws.skill_id not in wanted:
            db.delete(ws)
        else:
            ws.years_experience = wanted.pop(ws.skill_id)
    for skill_id, years in wanted.items():
        db.add(WorkerSkill(worker_id=worker.id, skill_id=skill_id, years_experience=years))
    db.commit()
    return {"message": "Skills added successfully"}


@router.put("/skills/{assignment_id}")
def update_skill(
    assignment_id: int,
    body: SkillExperienceIn,
    worker: Worker = Depends(current_worker),
    db: Session = Depends(get_db),
):
    updated = (
        db.query(WorkerSkill)
        .filter(WorkerSkill.id == assignment_id, WorkerSkill.worker_id == worker.id)
        .update({WorkerSkill.years_experience: body.years_experience or 0}, synchronize_session=False)
    )
    if not updated:
        raise HTTPException(status_code=404, detail="Skill not found")
    db.commit()
    return {"message": "Skill updated successfully"}


@router.delete("/skills/{assignment_id}")
def remove_skill(assignment_id: int, worker: Worker = Depends(current_worker), db: Session = Depends(get_db)):
    removed = (
        db.query(WorkerSkill)
        .filter(WorkerSkill.id == assignment_id, WorkerSkill.worker_id == worker.id)
        .delete(synchronize_session=False)
    )
    if not removed:
        raise HTTPException(status_code=404, detail="Skill not found")
    db.commit()
    return {"message": "Skill removed successfully"}


@router.get("/ratings", response_model=List[RatingOut])
def list_ratings(worker: Worker = Depends(current_worker), db: Session = Depends(get_db)):
    return (
        db.query(Rating)
        .filter(Rating.worker_id == worker.id)
        .order_by(Rating.created_at.desc(), Rating.id.desc())
        .all()
    )


@router.get("/ratings/pending", response_model=List[RatingOut])
def list_pending_ratings(worker: Worker = Depends(current_worker), db: Session = Depends(get_db)):
    return (
        db.query(Rating)
        .filter(Rating.worker_id == worker.id, Rating.status == RatingStatus.PENDING.value)
        .order_by(Rating.created_at.desc(), Rating.id.desc())
        .all()
    )


@router.put("/ratings/{rating_id}/accept")
def accept_rating(rating_id: int, worker: Worker = Depends(current_worker), db: Session = Depends(get_db)):
    if not ratings.moderate(db, worker.id, rating_id, RatingStatus.ACCEPTED):
        raise HTTPException(status_code=404, detail="Rating not found or already processed")
    return {"message": "Rating accepted successfully"}


@router.delete("/ratings/{rating_id}")
def reject_rating(rating_id: int, worker: Worker = Depends(current_worker), db: Session = Depends(get_db)):
    if not ratings.moderate(db, worker.id, rating_id, RatingStatus.REJECTED):
        raise HTTPException(status_code=404, detail="Rating not found or already processed")
    return {"message": "Rating rejected successfully"}


@router.get("/stats")
def stats(worker: Worker = Depends(current_worker), db: Session = Depends(get_db)):
    return ratings.worker_stats(db, worker.id)


@router.post("/register", status_code=201)
def register(body: RegisterIn, db: Session = Depends(get_db)):
    if not body.phone_number or not body.pin_hash:
        raise HTTPException(status_code=400, detail="Required fields missing")
    if not valid_phone(body.phone_number):
        raise HTTPException(status_code=400, detail="Phone number must be 10 digits")
    _validate_profile(db, body)
    wanted = _dedupe_skills(db, body.skills or [])

    worker = Worker(
        phone_number=body.phone_number,
        pin_hash=body.pin_hash,
        first_name=body.first_name,
        surname=body.surname,
        age=body.age,
        gender=body.gender,
        area_id=body.area_id,
        bio=body.bio or None,
        email=body.email or None,
    )
    worker.skills = [WorkerSkill(skill_id=sid, years_experience=years) for sid, years in wanted.items()]
    db.add(worker)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=400, detail="Phone number already registered") from None

    logger.info("Registered worker %s", worker.id)
    return {"message": "Registration completed successfully", "worker_id": worker.id}
