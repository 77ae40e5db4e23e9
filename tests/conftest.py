import os

# Set *before* any project imports: no rate limiting, throwaway database.
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("SECRET_KEY", "test-secret-key")

from datetime import date

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool

from project_manager_api.app.core.db import Base, get_db, make_engine, make_sessionmaker
from project_manager_api.app.core.security import create_access_token, hash_password, principal_claims
from project_manager_api.app.main import create_app
from project_manager_api.app.models import models  # noqa: F401  (registers tables)
from project_manager_api.app.models.enums import UserRole
from project_manager_api.app.models.models import Project, Sprint, Task, User


DEFAULT_PASSWORD = "password123"
# One hash shared by every fixture user.
_DEFAULT_HASH = hash_password(DEFAULT_PASSWORD)


@pytest.fixture
def engine():
    # One in-memory database shared by every connection of this test.
    test_engine = make_engine("sqlite://", poolclass=StaticPool)
    Base.metadata.create_all(bind=test_engine)
    yield test_engine
    test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return make_sessionmaker(engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def app(session_factory):
    application = create_app(create_schema=False)

    def _override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    application.dependency_overrides[get_db] = _override_get_db
    return application


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------

@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    def _make_user(role=UserRole.TEAM_MEMBER, email=None, current_project_id=None, **kwargs):
        counter["n"] += 1
        user = User(
            email=email or f"user{counter['n']}@example.com",
            password=_DEFAULT_HASH,
            role=role,
            first_name=kwargs.pop("first_name", f"First{counter['n']}"),
            last_name=kwargs.pop("last_name", f"Last{counter['n']}"),
            current_project_id=current_project_id,
            **kwargs,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


@pytest.fixture
def make_project(db):
    def _make_project(manager, start=date(2024, 1, 1), end=None, name="Apollo", **kwargs):
        project = Project(
            name=name,
            description=kwargs.pop("description", ""),
            start_date=start,
            end_date=end,
            manager_id=manager.id,
            **kwargs,
        )
        db.add(project)
        db.commit()
        db.refresh(project)
        return project

    return _make_project


@pytest.fixture
def make_sprint(db):
    def _make_sprint(project, start=None, end=None, name="Sprint 1"):
        start = start or project.start_date
        sprint = Sprint(
            name=name,
            start_date=start,
            end_date=end or start,
            goal="",
            project_id=project.id,
        )
        db.add(sprint)
        db.commit()
        db.refresh(sprint)
        return sprint

    return _make_sprint


@pytest.fixture
def make_task(db):
    def _make_task(sprint, title="Task", assignee=None, **kwargs):
        task = Task(
            title=title,
            description="",
            sprint_id=sprint.id,
            project_id=sprint.project_id,
            assignee_id=assignee.id if assignee else None,
            **kwargs,
        )
        db.add(task)
        db.commit()
        db.refresh(task)
        return task

    return _make_task


@pytest.fixture
def manager(make_user):
    return make_user(role=UserRole.PROJECT_MANAGER, email="manager@example.com")


@pytest.fixture
def other_manager(make_user):
    return make_user(role=UserRole.PROJECT_MANAGER, email="other.manager@example.com")


@pytest.fixture
def admin(make_user):
    return make_user(role=UserRole.ADMIN, email="admin@example.com")


def token_for(user) -> str:
    return create_access_token(principal_claims(user.id, user.role, user.email))


def auth_headers(user) -> dict:
    return {"Authorization": f"Bearer {token_for(user)}"}


@pytest.fixture
def headers_for():
    return auth_headers
