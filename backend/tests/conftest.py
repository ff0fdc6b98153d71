import os
import sys
import tempfile
from datetime import timedelta
from pathlib import Path

os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")
os.environ.setdefault("UPLOAD_DIR", os.path.join(tempfile.gettempdir(), "hiremefor-test-uploads"))
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("ADMIN_USERNAME", "admin")
os.environ.setdefault("ADMIN_PASSWORD", "admin123")
os.environ["BULKSMS_TOKEN_ID"] = ""
os.environ["BULKSMS_TOKEN_SECRET"] = ""

BACKEND_DIR = Path(__file__).resolve().parents[1]
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

import pytest
from fastapi.testclient import TestClient

from hiremefor.db import Base, SessionLocal, engine, utcnow
from hiremefor.main import app
from hiremefor.models import Area, OtpCode, Skill, Worker, WorkerSkill
from hiremefor.security import hash_secret


@pytest.fixture(autouse=True)
def clean_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


@pytest.fixture
def area(db):
    a = Area(name="Soweto", province="Gauteng")
    db.add(a)
    db.commit()
    return a.id


@pytest.fixture
def skill(db):
    s = Skill(name="Electrician")
    db.add(s)
    db.commit()
    return s.id


@pytest.fixture
def make_worker(db, area):
    def _make(phone="0821234567", pin="4321", first_name="Thabo", surname="Mokoena",
              age=30, gender="male", area_id=None, skills=()):
        w = Worker(
            phone_number=phone,
            pin_hash=hash_secret(pin),
            first_name=first_name,
            surname=surname,
            age=age,
            gender=gender,
            area_id=area_id or area,
        )
        w.skills = [WorkerSkill(skill_id=sid, years_experience=3) for sid in skills]
        db.add(w)
        db.commit()
        return w.id
    return _make


@pytest.fixture
def login(client):
    def _login(phone="0821234567", pin="4321"):
        r = client.post("/api/auth/login", json={"phone_number": phone, "pin": pin})
        assert r.status_code == 200, r.text
        return r.json()["token"]
    return _login


@pytest.fixture
def admin_token(client):
    r = client.post("/api/admin/login", json={"username": "admin", "password": "admin123"})
    assert r.status_code == 200, r.text
    return r.json()["token"]


def auth_header(token):
    return {"Authorization": f"Bearer {token}"}


def latest_otp(db, phone):
    db.expire_all()
    return (
        db.query(OtpCode)
        .filter(OtpCode.phone_number == phone)
        .order_by(OtpCode.id.desc())
        .first()
    )


def past(minutes=1):
    return utcnow() - timedelta(minutes=minutes)
