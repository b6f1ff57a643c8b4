import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.db import get_db
from app.main import app
from app.models.base import Base
from app.models import entities  # noqa: F401


engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


app.dependency_overrides[get_db] = override_get_db


@pytest.fixture(autouse=True)
def reset_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def db_session():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


def _as_user(email: str) -> dict[str, str]:
    return {"X-Dev-User": email}


@pytest.fixture
def as_user():
    return _as_user


@pytest.fixture
def register(client):
    """Create a profile for an identity, optionally founding a family."""

    def _register(email: str, name: str, family_name: str | None = None, **extra) -> dict:
        payload = {"name": name, **extra}
        if family_name is not None:
            payload["family_name"] = family_name
        response = client.post("/v1/me", json=payload, headers=_as_user(email))
        assert response.status_code == 201, response.text
        return response.json()

    return _register


@pytest.fixture
def founder(register):
    """Register an identity that founds a main family; returns (member, family_id)."""

    def _founder(email: str, name: str, family_name: str = "Smiths") -> tuple[dict, int]:
        member = register(email, name, family_name=family_name)
        return member, member["family_memberships"][0]["family_id"]

    return _founder


@pytest.fixture
def add_member(client):
    def _add_member(actor_email: str, family_id: int, name: str, **extra) -> dict:
        response = client.post(
            "/v1/members",
            json={"name": name, "family_id": family_id, **extra},
            headers=_as_user(actor_email),
        )
        assert response.status_code == 201, response.text
        return response.json()

    return _add_member
