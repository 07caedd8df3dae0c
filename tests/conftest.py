import os
import tempfile

# Point the application engine at a throwaway database before anything imports it
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="taskboard-uploads-"))

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from taskboard.main import app
from taskboard.core.config import settings
from taskboard.core.database import Base, enable_sqlite_foreign_keys, get_db, get_session_factory
from taskboard.core.security import create_user_token, get_password_hash
from taskboard.models.project import Project
from taskboard.models.project_member import ProjectMember
from taskboard.models.user import User
from taskboard.services.project_broadcaster import ProjectBroadcaster

SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
enable_sqlite_foreign_keys(engine)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db_session():
    """Fresh schema and session for every test."""
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def upload_dir(tmp_path, monkeypatch):
    target = tmp_path / "uploads"
    target.mkdir()
    monkeypatch.setattr(settings, "upload_dir", str(target))
    return target


@pytest.fixture(scope="function")
def client(db_session, upload_dir):
    """Test client sharing the test session and a fresh broadcaster."""

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: TestingSessionLocal
    app.state.broadcaster = ProjectBroadcaster()

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def create_test_user(db_session):
    """Factory fixture creating users directly in the database."""

    def _create_user(
        email="testuser@example.com",
        name="Test User",
        password="TestPassword123!",
        role="member",
    ):
        user = User(
            name=name,
            email=email,
            passwordhash=get_password_hash(password),
            role=role,
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _create_user


@pytest.fixture
def auth_headers():
    def _headers(user):
        return {"Authorization": f"Bearer {create_user_token(user)}"}

    return _headers


@pytest.fixture
def authenticated_client(client, create_test_user):
    """Client carrying a bearer token for a freshly created user."""
    user = create_test_user()
    client.headers.update({"Authorization": f"Bearer {create_user_token(user)}"})
    return client, user


@pytest.fixture
def create_project(db_session):
    """Factory fixture creating a project with its creator as manager."""

    def _create_project(owner, name="Website Redesign", members=(), color="#3b82f6"):
        project = Project(name=name, description=f"{name} board", color=color, creator_id=owner.id)
        db_session.add(project)
        db_session.flush()
        db_session.add(ProjectMember(project_id=project.id, user_id=owner.id, role="manager"))
        for member, role in members:
            db_session.add(ProjectMember(project_id=project.id, user_id=member.id, role=role))
        db_session.commit()
        db_session.refresh(project)
        return project

    return _create_project
