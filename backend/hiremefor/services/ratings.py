from typing import Optional, Tuple

from sqlalchemy import case, func
from sqlalchemy.orm import Session

from ..db import utcnow
from ..models import Rating, RatingStatus


def accepted_summary(db: Session, worker_id: int) -> Tuple[float, int]:
    """Mean stars over accepted ratings; (0, 0) when there are none."""
    avg, count = (
        db.query(func.avg(Rating.stars), func.count(Rating.id))
        .filter(Rating.worker_id == worker_id, Rating.status == RatingStatus.ACCEPTED.value)
        .one()
    )
    return float(avg or 0), int(count or 0)


def worker_stats(db: Session, worker_id: int) -> dict:
    accepted = Rating.status == RatingStatus.ACCEPTED.value
    avg, accepted_count, pending_count, total = (
        db.query(
            func.avg(case((accepted, Rating.stars))),
            func.count(case((accepted, 1))),
            func.count(case((Rating.status == RatingStatus.PENDING.value, 1))),
            func.count(Rating.id),
        )
        .filter(Rating.worker_id == worker_id)
        .one()
    )
    return {
        "average_rating": float(avg or 0),
        "accepted_ratings": int(accepted_count or 0),
        "pending_ratings": int(pending_count or 0),
        "total_ratings": int(total or 0),
    }


def submit(db: Session, worker_id: int, stars: int, comment: Optional[str]) -> Rating:
    rating = Rating(
        worker_id=worker_id,
        stars=stars,
        comment=comment or None,
        status=RatingStatus.PENDING.value,
    )
    db.add(rating)
    db.commit()
    db.refresh(rating)
    return rating


def moderate(db: Session, worker_id: int, rating_id: int, status: RatingStatus) -> bool:
    """Move one of the worker's pending ratings to a terminal state.

    Returns False when the rating is missing, belongs to someone else or was
    already reviewed.
    """
    updated = (
        db.query(Rating)
        .filter(
            Rating.id == rating_id,
            Rating.worker_id == worker_id,
            Rating.status == RatingStatus.PENDING.value,
        )
        .update({Rating.status: status.value, Rating.reviewed_at: utcnow()}, synchronize_session=False)
    )
    db.commit()
    return updated > 0
