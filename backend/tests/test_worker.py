import io
from pathlib import Path

import pytest
from PIL import Image

from conftest import auth_header
from hiremefor import config
from hiremefor.models import Rating, Skill, Worker


@pytest.fixture
def worker(make_worker, login):
    worker_id = make_worker()
    return worker_id, auth_header(login())


def _png(size=(800, 600)):
    buf = io.BytesIO()
    Image.new("RGB", size, (200, 30, 30)).save(buf, "PNG")
    return buf.getvalue()


def test_profile_hides_pin_hash(client, worker):
    worker_id, headers = worker

    r = client.get("/api/worker/profile", headers=headers)

    assert r.status_code == 200
    body = r.json()
    assert body["id"] == worker_id
    assert body["area_name"] == "Soweto"
    assert body["average_rating"] == 0
    assert "pin_hash" not in body


def test_update_profile(client, db, area, worker):
    worker_id, headers = worker
    payload = {
        "first_name": "Sipho",
        "surname": "Nkosi",
        "age": 41,
        "gender": "male",
        "area_id": area,
        "bio": "Plumbing and tiling",
        "email": "sipho@example.com",
    }

    r = client.put("/api/worker/profile", json=payload, headers=headers)

    assert r.status_code == 200
    db.expire_all()
    w = db.get(Worker, worker_id)
    assert (w.first_name, w.age, w.email) == ("Sipho", 41, "sipho@example.com")


@pytest.mark.parametrize("changes,error", [
    ({"first_name": ""}, "Required fields missing"),
    ({"gender": "other"}, "Gender must be male or female"),
    ({"bio": "x" * 501}, "Bio must be 500 characters or less"),
    ({"email": "not-an-email"}, "Invalid email format"),
    ({"area_id": 9999}, "Invalid area"),
])
def test_update_profile_validation(client, area, worker, changes, error):
    _, headers = worker
    payload = {"first_name": "A", "surname": "B", "age": 30, "gender": "male", "area_id": area}
    payload.update(changes)

    r = client.put("/api/worker/profile", json=payload, headers=headers)

    assert r.status_code == 400
    assert r.json()["error"] == error


def test_photo_upload_resizes_and_replaces(client, worker):
    worker_id, headers = worker

    r = client.post(
        "/api/worker/profile/photo",
        files={"photo": ("me.png", _png(), "image/png")},
        headers=headers,
    )
    assert r.status_code == 200
    first_url = r.json()["photo_url"]
    assert first_url.startswith(f"/uploads/profile_{worker_id}_")
    first_path = Path(config.UPLOAD_DIR) / Path(first_url).name
    with Image.open(first_path) as img:
        assert img.size == (400, 400)
        assert img.format == "JPEG"

    served = client.get(first_url)
    assert served.status_code == 200

    r = client.post(
        "/api/worker/profile/photo",
        files={"photo": ("me2.png", _png((300, 900)), "image/png")},
        headers=headers,
    )
    assert r.status_code == 200
    assert not first_path.exists()
    assert client.get("/api/worker/profile", headers=headers).json()["profile_photo_url"] == r.json()["photo_url"]


def test_photo_upload_rejections(client, worker, monkeypatch):
    _, headers = worker

    wrong_type = client.post(
        "/api/worker/profile/photo",
        files={"photo": ("doc.pdf", b"%PDF-1.4", "application/pdf")},
        headers=headers,
    )
    assert wrong_type.status_code == 400
    assert "Invalid file type" in wrong_type.json()["error"]

    monkeypatch.setattr("hiremefor.services.photos.MAX_PHOTO_BYTES", 10)
    too_big = client.post(
        "/api/worker/profile/photo",
        files={"photo": ("me.png", _png(), "image/png")},
        headers=headers,
    )
    assert too_big.status_code == 400

    missing = client.post("/api/worker/profile/photo", headers=headers)
    assert missing.status_code == 400

    assert client.get("/api/worker/profile", headers=headers).json()["profile_photo_url"] is None


def test_photo_upload_rejects_oversized_dimensions(client, worker, monkeypatch):
    _, headers = worker
    monkeypatch.setattr("PIL.Image.MAX_IMAGE_PIXELS", 1000)

    r = client.post(
        "/api/worker/profile/photo",
        files={"photo": ("huge.png", _png(), "image/png")},
        headers=headers,
    )

    assert r.status_code == 400
    assert r.json()["error"] == "Invalid image file"


def test_photo_upload_requires_auth(client):
    r = client.post("/api/worker/profile/photo", files={"photo": ("me.png", _png(), "image/png")})
    assert r.status_code == 401


def test_replace_update_and_remove_skills(client, db, skill, worker):
    _, headers = worker
    plumbing = Skill(name="Plumbing")
    db.add(plumbing)
    db.commit()

    r = client.post(
        "/api/worker/skills",
        json={"skills": [{"skill_id": skill, "years_experience": 2}, {"skill_id": plumbing.id}]},
        headers=headers,
    )
    assert r.status_code == 200
    skills = {s["skill_name"]: s for s in client.get("/api/worker/skills", headers=headers).json()}
    assert skills["Electrician"]["years_experience"] == 2
    assert skills["Plumbing"]["years_experience"] == 0

    client.post("/api/worker/skills", json={"skills": [{"skill_id": skill, "years_experience": 6}]}, headers=headers)
    skills = client.get("/api/worker/skills", headers=headers).json()
    assert [(s["skill_name"], s["years_experience"]) for s in skills] == [("Electrician", 6)]

    assignment_id = skills[0]["id"]
    client.put(f"/api/worker/skills/{assignment_id}", json={"years_experience": 9}, headers=headers)
    assert client.get("/api/worker/skills", headers=headers).json()[0]["years_experience"] == 9

    client.delete(f"/api/worker/skills/{assignment_id}", headers=headers)
    assert client.get("/api/worker/skills", headers=headers).json() == []


def test_update_and_remove_unknown_skill_assignment(client, skill, worker, make_worker, login):
    _, headers = worker
    make_worker(phone="0829999999", skills=[skill])
    other_headers = auth_header(login("0829999999", "4321"))
    other_assignment = client.get("/api/worker/skills", headers=other_headers).json()[0]["id"]

    for assignment_id in (999, other_assignment):
        r = client.put(f"/api/worker/skills/{assignment_id}", json={"years_experience": 9}, headers=headers)
        assert r.status_code == 404
        assert r.json()["error"] == "Skill not found"
        assert client.delete(f"/api/worker/skills/{assignment_id}", headers=headers).status_code == 404

    kept = client.get("/api/worker/skills", headers=other_headers).json()
    assert [(s["id"], s["years_experience"]) for s in kept] == [(other_assignment, 3)]


def test_skills_validation(client, worker):
    _, headers = worker

    assert client.post("/api/worker/skills", json={}, headers=headers).status_code == 400
    r = client.post("/api/worker/skills", json={"skills": [{"skill_id": 999}]}, headers=headers)
    assert r.status_code == 400
    assert r.json()["error"] == "Invalid skill"


def test_rating_moderation(client, db, worker, make_worker):
    worker_id, headers = worker
    other_id = make_worker(phone="0829999999")
    for stars in (5, 3, 1):
        client.post(f"/api/search/{worker_id}/rate", json={"stars": stars})
    client.post(f"/api/search/{other_id}/rate", json={"stars": 2})
    ids = {r.stars: r.id for r in db.query(Rating).filter(Rating.worker_id == worker_id)}
    foreign = db.query(Rating).filter(Rating.worker_id == other_id).one().id

    assert len(client.get("/api/worker/ratings/pending", headers=headers).json()) == 3

    assert client.put(f"/api/worker/ratings/{ids[5]}/accept", headers=headers).status_code == 200
    assert client.put(f"/api/worker/ratings/{ids[3]}/accept", headers=headers).status_code == 200
    assert client.delete(f"/api/worker/ratings/{ids[1]}", headers=headers).status_code == 200

    # terminal states cannot change
    again = client.delete(f"/api/worker/ratings/{ids[5]}", headers=headers)
    assert again.status_code == 404
    assert again.json()["error"] == "Rating not found or already processed"
    assert client.put(f"/api/worker/ratings/{ids[1]}/accept", headers=headers).status_code == 404
    # someone else's rating
    assert client.put(f"/api/worker/ratings/{foreign}/accept", headers=headers).status_code == 404

    statuses = {r["id"]: r["status"] for r in client.get("/api/worker/ratings", headers=headers).json()}
    assert statuses == {ids[5]: "accepted", ids[3]: "accepted", ids[1]: "rejected"}
    assert client.get("/api/worker/ratings/pending", headers=headers).json() == []

    stats = client.get("/api/worker/stats", headers=headers).json()
    assert stats == {"average_rating": 4.0, "accepted_ratings": 2, "pending_ratings": 0, "total_ratings": 3}

    profile = client.get(f"/api/search/{worker_id}").json()
    assert profile["average_rating"] == 4.0
    assert profile["total_ratings"] == 2


def test_stats_without_ratings(client, worker):
    _, headers = worker

    stats = client.get("/api/worker/stats", headers=headers).json()

    assert stats == {"average_rating": 0, "accepted_ratings": 0, "pending_ratings": 0, "total_ratings": 0}


def test_delete_account(client, db, worker):
    worker_id, headers = worker
    client.post(f"/api/search/{worker_id}/rate", json={"stars": 4})

    r = client.delete("/api/worker/profile", headers=headers)

    assert r.status_code == 200
    db.expire_all()
    assert db.get(Worker, worker_id) is None
    assert db.query(Rating).count() == 0
    assert client.get("/api/worker/profile", headers=headers).status_code == 401


def test_register_validation(client, area):
    base = {
        "phone_number": "0831112222",
        "pin_hash": "$2b$04$abcdefghijklmnopqrstuv",
        "first_name": "Lerato",
        "surname": "Dlamini",
        "age": 28,
        "gender": "female",
        "area_id": area,
    }

    missing = client.post("/api/worker/register", json={**base, "pin_hash": None})
    bad_phone = client.post("/api/worker/register", json={**base, "phone_number": "123"})
    bad_skill = client.post("/api/worker/register", json={**base, "skills": [{"skill_id": 999}]})

    assert missing.status_code == 400
    assert bad_phone.json()["error"] == "Phone number must be 10 digits"
    assert bad_skill.json()["error"] == "Invalid skill"
