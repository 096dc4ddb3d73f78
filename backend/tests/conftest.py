import io
import os
import tempfile
from pathlib import Path

import pytest

# Point the app at a throwaway database and upload folder before it is imported.
_TMP = Path(tempfile.mkdtemp(prefix="pethub-tests-"))
os.environ["ENV"] = "dev"
os.environ["DATABASE_URL"] = f"sqlite:///{_TMP / 'test.db'}"
os.environ["UPLOAD_DIR"] = str(_TMP / "uploads")

from fastapi.testclient import TestClient  # noqa: E402
from PIL import Image  # noqa: E402
from sqlmodel import Session, SQLModel  # noqa: E402

from pethub import models  # noqa: E402
from pethub.database import engine  # noqa: E402
from pethub.main import app  # noqa: E402
from pethub.routers.auth import login_throttle  # noqa: E402


@pytest.fixture(autouse=True)
def reset_db():
    """Ensure a fresh schema and throttle state for every test."""
    SQLModel.metadata.drop_all(engine)
    SQLModel.metadata.create_all(engine)
    login_throttle.reset()
    yield


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def db():
    with Session(engine) as session:
        yield session


@pytest.fixture
def png():
    def _make_png(color="white", size=(64, 32)) -> bytes:
        img = Image.new("RGB", size, color)
        bio = io.BytesIO()
        img.save(bio, format="PNG")
        return bio.getvalue()
    return _make_png


@pytest.fixture
def make_user(client):
    """Register a user and return `(user_id, auth_headers)`."""
    def _make(email="owner@example.com", full_name="Pat Owner", password="secret123", admin=False):
        r = client.post("/api/auth/register-simple", json={
            "fullName": full_name,
            "email": email,
            "birthdate": "1990-04-12",
            "gender": "female",
            "password": password,
        })
        assert r.status_code == 201, r.text
        user_id = r.json()["data"]["id"]
        if admin:
            with Session(engine) as session:
                user = session.get(models.User, user_id)
                user.is_admin = True
                session.add(user)
                session.commit()
        login = client.post("/api/auth/login", json={"email": email, "password": password})
        assert login.status_code == 200, login.text
        return user_id, {"Authorization": f"Bearer {login.json()['token']}"}
    return _make


@pytest.fixture
def make_pet(client):
    def _make(headers, name="Milo", pet_type="Cat", **extra):
        data = {"name": name, "birthdate": "2021-03-01", "type": pet_type}
        data.update(extra)
        r = client.post("/api/pet", data=data, headers=headers)
        assert r.status_code == 201, r.text
        return r.json()
    return _make
