import os

# Must be set before therapydesk is imported: the engine and batch settings are read at import time
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SESSION_CREATE_DELAY_MS"] = "0"
os.environ["SESSION_CREATE_BACKOFF_MS"] = "0"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from therapydesk.database import Base, SessionLocal, engine, get_db  # noqa: E402
from therapydesk.main import app  # noqa: E402
from therapydesk.models import Student  # noqa: E402
from therapydesk.utils import r2_storage  # noqa: E402

from .helpers import FakeS3Client  # noqa: E402


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def fake_s3(monkeypatch):
    fake = FakeS3Client()
    monkeypatch.setattr(r2_storage, "get_r2_client", lambda: fake)
    return fake


@pytest.fixture
def student(db):
    student = Student(name="Mia Jensen", parent_name="Lars Jensen", parent_email="lars@example.com")
    db.add(student)
    db.commit()
    db.refresh(student)
    return student
