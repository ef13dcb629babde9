import os

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key")

import cafeos.models  # noqa: F401
from cafeos.core.config import settings
from cafeos.core.deps import build_services, get_services
from cafeos.core.security import create_token
from cafeos.db.base import Base
from cafeos.main import app
from cafeos.services.document_store import InMemoryDocumentStore, SqlDocumentStore


@pytest.fixture()
def test_settings():
    return settings.model_copy(update={"secret_key": "test-secret-key"})


@pytest.fixture()
def store():
    return InMemoryDocumentStore()


@pytest.fixture()
def services(store, test_settings):
    return build_services(store, test_settings)


@pytest.fixture()
def session_local():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def test_context(session_local, test_settings):
    original_secret = settings.secret_key
    settings.secret_key = "test-secret-key"

    api_services = build_services(SqlDocumentStore(session_local), test_settings)
    app.dependency_overrides[get_services] = lambda: api_services

    with TestClient(app) as client:
        yield client, api_services

    app.dependency_overrides.clear()
    settings.secret_key = original_secret


@pytest.fixture()
def auth_headers():
    def _headers(role: str = "manager", user_id: str = "user_1") -> dict[str, str]:
        return {"Authorization": f"Bearer {create_token(user_id, role)}"}

    return _headers
