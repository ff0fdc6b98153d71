from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel

# Request bodies keep fields optional so handlers can answer with the
# specific 400 messages clients already display.


class PhoneIn(BaseModel):
    phone_number: Optional[str] = None


class VerifyOtpIn(BaseModel):
    phone_number: Optional[str] = None
    code: Optional[str] = None


class CreatePinIn(BaseModel):
    phone_number: Optional[str] = None
    pin: Optional[str] = None


class LoginIn(BaseModel):
    phone_number: Optional[str] = None
    pin: Optional[str] = None


class ResetPinIn(BaseModel):
    phone_number: Optional[str] = None
    code: Optional[str] = None
    new_pin: Optional[str] = None


class AdminLoginIn(BaseModel):
    username: Optional[str] = None
    password: Optional[str] = None


class SkillAssignmentIn(BaseModel):
    skill_id: int
    years_experience: Optional[int] = 0


class SkillsIn(BaseModel):
    skills: Optional[List[SkillAssignmentIn]] = None


class SkillExperienceIn(BaseModel):
    years_experience: Optional[int] = 0


class ProfileIn(BaseModel):
    first_name: Optional[str] = None
    surname: Optional[str] = None
    age: Optional[int] = None
    gender: Optional[str] = None
    area_id: Optional[int] = None
    bio: Optional[str] = None
    email: Optional[str] = None


class RegisterIn(ProfileIn):
    phone_number: Optional[str] = None
    pin_hash: Optional[str] = None
    skills: Optional[List[SkillAssignmentIn]] = None


class RatingIn(BaseModel):
    stars: Optional[int] = None
    comment: Optional[str] = None


class NameIn(BaseModel):
    name: Optional[str] = None


class AreaIn(NameIn):
    province: Optional[str] = None


class WorkerSkillOut(BaseModel):
    id: int
    worker_id: int
    skill_id: int
    years_experience: Optional[int] = 0
    skill_name: Optional[str] = None

    class Config:
        from_attributes = True


class RatingOut(BaseModel):
    id: int
    worker_id: int
    stars: int
    comment: Optional[str] = None
    status: str
    created_at: Optional[datetime] = None
    reviewed_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class WorkerOut(BaseModel):
    """Worker row without the PIN hash."""
    id: int
    phone_number: str
    first_name: str
    surname: str
    age: int
    gender: str
    area_id: int
    bio: Optional[str] = None
    email: Optional[str] = None
    profile_photo_url: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
