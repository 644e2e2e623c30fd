import os
from datetime import datetime, timezone
from types import SimpleNamespace

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from timekeeper.core.security import create_access_token
from timekeeper.database.base import Base
from timekeeper.database.session import get_db
from timekeeper.main import app
from timekeeper.models.project import Project
from timekeeper.models.task import Task
from timekeeper.models.user import User

T0 = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def session_factory(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'timekeeper.db'}",
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(bind=engine, autocommit=False, autoflush=False)
    engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def seed(db):
    alice = User(name="Alice", email="alice@example.com", role="employee")
    bob = User(name="Bob", email="bob@example.com", role="employee")
    manager = User(name="Maya", email="maya@example.com", role="manager")
    db.add_all([alice, bob, manager])
    db.flush()

    website = Project(name="Website")
    mobile = Project(name="Mobile")
    db.add_all([website, mobile])
    db.flush()

    task_a = Task(title="Landing page", project_id=website.id, assigned_to=alice.id, status="todo")
    task_b = Task(title="Pricing page", project_id=website.id, assigned_to=alice.id, status="todo")
    task_c = Task(title="Push notifications", project_id=mobile.id, assigned_to=bob.id, status="review")
    db.add_all([task_a, task_b, task_c])
    db.commit()

    return SimpleNamespace(
        alice=alice.id,
        bob=bob.id,
        manager=manager.id,
        website=website.id,
        mobile=mobile.id,
        task_a=task_a.id,
        task_b=task_b.id,
        task_c=task_c.id,
    )


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


def auth_headers(user_id: int) -> dict:
    return {"Authorization": f"Bearer {create_access_token({'sub': str(user_id)})}"}
