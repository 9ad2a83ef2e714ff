import os
import tempfile

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["CACHE_ENABLED"] = "false"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["SECRET_KEY"] = "test-secret"
os.environ["ADMIN_EMAIL"] = "admin@opensquid.org"
os.environ["ADMIN_PASSWORD"] = "admin-pass-123"
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="opensquid-uploads-")
os.environ["MAX_UPLOAD_SIZE"] = "2048"

import pytest
from fastapi.testclient import TestClient

from opensquid.core.database import Base, engine
from opensquid.main import app

ADMIN = {"email": "admin@opensquid.org", "password": "admin-pass-123"}


def team_payload(name="Red Light", email="red@techfest.org", **overrides):
    payload = {
        "name": name,
        "email": email,
        "contact_number": "9876543210",
        "password": "squidgame456",
        "confirm_password": "squidgame456",
        "members": [{"name": "Gi-hun", "student_id": "S456"}, {"name": "Sang-woo", "student_id": "S218"}],
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def admin_headers(client):
    r = client.post("/api/admin/login", json=ADMIN)
    assert r.status_code == 200
    return {"Authorization": f"Bearer {r.json()['access_token']}"}


@pytest.fixture
def register(client):
    """Register a team and return (team, auth headers)."""
    def _register(name="Red Light", email="red@techfest.org"):
        r = client.post("/api/auth/sign-up", json=team_payload(name=name, email=email))
        assert r.status_code == 201, r.text
        r2 = client.post("/api/auth/sign-in", json={"email": email, "password": "squidgame456"})
        assert r2.status_code == 200, r2.text
        return r.json(), {"Authorization": f"Bearer {r2.json()['access_token']}"}
    return _register


@pytest.fixture
def questions(client, admin_headers):
    created = []
    for i in range(3):
        r = client.post("/api/questions", headers=admin_headers, json={
            "question": f"Question {i}?", "options": ["A", "B", "C", "D"], "correct_answer": i,
        })
        assert r.status_code == 201
        created.append(r.json())
    return created
