import os
import tempfile
from typing import Generator

import jwt
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Keep the module-level engine away from the working directory.
os.environ.setdefault("DATABASE_URL", "sqlite:///" + os.path.join(tempfile.gettempdir(), "shop-tests.db"))

from shop.config import FALLBACK_JWT_SECRET  # noqa: E402
from shop.db import Base, get_db  # noqa: E402
from shop.main import app  # noqa: E402
from shop.webhooks import WebhookReceiver  # noqa: E402


@pytest.fixture(scope="function")
def db_session() -> Generator:
    # Use in-memory SQLite with a single connection
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine, future=True)
    Base.metadata.create_all(bind=engine)

    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(scope="function")
def client(db_session, tmp_path, monkeypatch):
    monkeypatch.setenv("APP_ENV", "development")
    monkeypatch.setenv("UPLOAD_PATH", str(tmp_path / "uploads"))
    monkeypatch.setenv("CONFIG_DIR", str(tmp_path / "config"))
    monkeypatch.delenv("JWT_SECRET", raising=False)

    # Override dependency to use the same session
    def override_get_db():
        try:
            yield db_session
        finally:
            pass
    app.dependency_overrides[get_db] = override_get_db
    app.state.webhooks = WebhookReceiver()
    from fastapi.testclient import TestClient
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def register(client):
    """Register a user and return ``(user, token)`` from the response."""
    def _register(email="alice@example.com", username="alice", password="alicepw"):
        r = client.post("/auth/register", json={
            "email": email,
            "username": username,
            "password": password,
            "firstName": username.title(),
            "lastName": "Tester",
        })
        assert r.status_code == 201
        body = r.json()
        assert body["success"] is True
        return body["user"], body["token"]
    return _register


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def forge_token(**claims) -> str:
    """Sign arbitrary claims with the built-in fallback secret."""
    return jwt.encode(claims, FALLBACK_JWT_SECRET, algorithm="HS256")
