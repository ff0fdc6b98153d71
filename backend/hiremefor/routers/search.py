from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..db import get_db
from ..models import Worker
from ..schemas import RatingIn
from ..services import ratings
from ..services.search import search_workers, skills_payload

router = APIRouter()


@router.get("/workers")
def search(
    skill_id: Optional[int] = None,
    area_id: Optional[int] = None,
    page: int = 1,
    limit: int = 10,
    sort_by: str = "first_name",
    sort_order: str = "ASC",
    db: Session = Depends(get_db),
):
    return search_workers(
        db,
        area_id=area_id,
        skill_id=skill_id,
        page=page,
        limit=limit,
        sort_by=sort_by,
        sort_order=sort_order,
    )


@router.get("/{worker_id}")
def get_worker(worker_id: int, db: Session = Depends(get_db)):
    worker = db.get(Worker, worker_id)
    if not worker:
        raise HTTPException(status_code=404, detail="Worker not found")

    average, count = ratings.accepted_summary(db, worker.id)
    return {
        "id": worker.id,
        "first_name": worker.first_name,
        "surname": worker.surname,
        "age": worker.age,
        "gender": worker.gender,
        "phone_number": worker.phone_number,
        "email": worker.email,
        "bio": worker.bio,
        "profile_photo_url": worker.profile_photo_url,
        "area_name": worker.area.name if worker.area else None,
        "skills": skills_payload(worker),
        "average_rating": average,
        "total_ratings": count,
    }


@router.post("/{worker_id}/rate", status_code=201)
def rate_worker(worker_id: int, body: RatingIn, db: Session = Depends(get_db)):
    if not body.stars or body.stars < 1 or body.stars > 5:
        raise HTTPException(status_code=400, detail="Stars must be between 1 and 5")
    if not db.get(Worker, worker_id):
        raise HTTPException(status_code=404, detail="Worker not found")

    ratings.submit(db, worker_id, body.stars, body.comment)
    return {
        "message": "Rating submitted successfully. It will be visible after the worker approves it."
    }
