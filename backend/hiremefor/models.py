import enum

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from .db import Base, utcnow


class RatingStatus(str, enum.Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class OtpPurpose(str, enum.Enum):
    REGISTRATION = "registration"
    PIN_RESET = "pin_reset"


class Area(Base):
    __tablename__ = "areas"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(200), unique=True, nullable=False)
    province = Column(String(100))
    created_at = Column(DateTime, default=utcnow)

    workers = relationship("Worker", back_populates="area")


class Skill(Base):
    __tablename__ = "skills"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(200), unique=True, nullable=False)
    created_at = Column(DateTime, default=utcnow)

    assignments = relationship("WorkerSkill", back_populates="skill")


class Worker(Base):
    __tablename__ = "workers"
    id = Column(Integer, primary_key=True, index=True)
    phone_number = Column(String(10), unique=True, nullable=False, index=True)
    pin_hash = Column(String(255), nullable=False)
    first_name = Column(String(100), nullable=False, index=True)
    surname = Column(String(100), nullable=False, index=True)
    age = Column(Integer, nullable=False)
    gender = Column(String(10), nullable=False)
    area_id = Column(Integer, ForeignKey("areas.id"), nullable=False, index=True)
    bio = Column(Text)
    email = Column(String(255))
    profile_photo_url = Column(String(500))
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    area = relationship("Area", back_populates="workers")
    skills = relationship("WorkerSkill", back_populates="worker", cascade="all, delete-orphan")
    ratings = relationship("Rating", back_populates="worker", cascade="all, delete-orphan")
    sessions = relationship("WorkerSession", back_populates="worker", cascade="all, delete-orphan")

    __table_args__ = (
        CheckConstraint("gender IN ('male', 'female')", name="ck_workers_gender"),
    )


class WorkerSkill(Base):
    __tablename__ = "worker_skills"
    id = Column(Integer, primary_key=True)
    worker_id = Column(Integer, ForeignKey("workers.id", ondelete="CASCADE"), nullable=False, index=True)
    skill_id = Column(Integer, ForeignKey("skills.id"), nullable=False, index=True)
    years_experience = Column(Integer, default=0)

    worker = relationship("Worker", back_populates="skills")
    skill = relationship("Skill", back_populates="assignments")

    __table_args__ = (
        UniqueConstraint("worker_id", "skill_id", name="unique_worker_skill"),
    )

    @property
    def skill_name(self):
        return self.skill.name if self.skill else None


class Rating(Base):
    __tablename__ = "ratings"
    id = Column(Integer, primary_key=True)
    worker_id = Column(Integer, ForeignKey("workers.id", ondelete="CASCADE"), nullable=False, index=True)
    stars = Column(Integer, nullable=False)
    comment = Column(Text)
    status = Column(String(16), nullable=False, default=RatingStatus.PENDING.value, index=True)
    created_at = Column(DateTime, default=utcnow)
    reviewed_at = Column(DateTime)

    worker = relationship("Worker", back_populates="ratings")

    __table_args__ = (
        CheckConstraint("stars >= 1 AND stars <= 5", name="ck_ratings_stars"),
        CheckConstraint("status IN ('pending', 'accepted', 'rejected')", name="ck_ratings_status"),
    )


class OtpCode(Base):
    __tablename__ = "otp_codes"
    id = Column(Integer, primary_key=True)
    phone_number = Column(String(10), nullable=False, index=True)
    code = Column(String(6), nullable=False)
    purpose = Column(String(16), nullable=False)
    expires_at = Column(DateTime, nullable=False)
    used = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=utcnow)

    __table_args__ = (
        CheckConstraint("purpose IN ('registration', 'pin_reset')", name="ck_otp_codes_purpose"),
    )


class MainAdmin(Base):
    __tablename__ = "main_admin"
    id = Column(Integer, primary_key=True)
    username = Column(String(100), unique=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    created_at = Column(DateTime, default=utcnow)

    sessions = relationship("AdminSession", back_populates="admin", cascade="all, delete-orphan")


class WorkerSession(Base):
    __tablename__ = "worker_sessions"
    id = Column(Integer, primary_key=True)
    worker_id = Column(Integer, ForeignKey("workers.id", ondelete="CASCADE"), nullable=False, index=True)
    token = Column(String(255), unique=True, nullable=False, index=True)
    expires_at = Column(DateTime, nullable=False)
    created_at = Column(DateTime, default=utcnow)

    worker = relationship("Worker", back_populates="sessions")


class AdminSession(Base):
    __tablename__ = "admin_sessions"
    id = Column(Integer, primary_key=True)
    admin_id = Column(Integer, ForeignKey("main_admin.id", ondelete="CASCADE"), nullable=False, index=True)
    token = Column(String(255), unique=True, nullable=False, index=True)
    expires_at = Column(DateTime, nullable=False)
    created_at = Column(DateTime, default=utcnow)

    admin = relationship("MainAdmin", back_populates="sessions")
