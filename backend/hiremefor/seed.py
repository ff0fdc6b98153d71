import logging

from sqlalchemy.orm import Session

from . import config
from .models import Area, MainAdmin, Skill
from .security import hash_secret

logger = logging.getLogger(__name__)

DEFAULT_AREAS = [("Johannesburg1", "Gauteng"), ("Johannesburg2", "Gauteng")]
DEFAULT_SKILLS = ["Plumber", "Taxi Driver"]


def seed_defaults(db: Session) -> None:
    """Fill empty reference tables and create the main admin account."""
    if db.query(Area).count() == 0:
        db.add_all([Area(name=name, province=province) for name, province in DEFAULT_AREAS])
        logger.info("Seeded areas")
    if db.query(Skill).count() == 0:
        db.add_all([Skill(name=name) for name in DEFAULT_SKILLS])
        logger.info("Seeded skills")
    if db.query(MainAdmin).count() == 0:
        db.add(MainAdmin(username=config.ADMIN_USERNAME, password_hash=hash_secret(config.ADMIN_PASSWORD)))
        logger.info("Seeded admin user %s", config.ADMIN_USERNAME)
    db.commit()
