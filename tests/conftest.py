import os

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("FRONTEND_DIST", "frontend-not-built")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from core.database import create_db_and_tables, get_session
from main import app
from models import Branch, Role, User
from services import identity_provider

DEFAULT_PASSWORD = "secret123"


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool
    )
    create_db_and_tables(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def client(session):
    def get_session_override():
        return session

    app.dependency_overrides[get_session] = get_session_override
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_branch(session):
    def _make(name: str) -> Branch:
        branch = Branch(name=name)
        session.add(branch)
        session.commit()
        session.refresh(branch)
        return branch
    return _make


@pytest.fixture
def make_user(session):
    def _make(username: str, role: Role, branch_id=None, password: str = DEFAULT_PASSWORD) -> User:
        email = f"{username}@example.com"
        subject_id = identity_provider.create_account(session, email, password)
        user = User(id=subject_id, email=email, username=username, role=role, branch_id=branch_id)
        session.add(user)
        session.commit()
        session.refresh(user)
        return user
    return _make


def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {identity_provider.issue_token(user)}"}


@pytest.fixture
def branch_a(make_branch):
    return make_branch("Centro")


@pytest.fixture
def branch_b(make_branch):
    return make_branch("Norte")


@pytest.fixture
def master(make_user):
    return make_user("master", Role.MASTER)


@pytest.fixture
def admin_a(make_user, branch_a):
    return make_user("admin_a", Role.ADMIN, branch_a.id)


@pytest.fixture
def user_a(make_user, branch_a):
    return make_user("user_a", Role.USER, branch_a.id)


@pytest.fixture
def user_b(make_user, branch_b):
    return make_user("user_b", Role.USER, branch_b.id)


@pytest.fixture
def headers_for():
    return auth_headers
