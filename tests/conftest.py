"""Shared fixtures: in-memory sqlite database, seeded catalog, signed tokens."""

from __future__ import annotations

import os
import time

# must be set before anything imports shared.core.config
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["JWT_ALGORITHM"] = "HS256"
os.environ.pop("JWT_AUDIENCE", None)
os.environ.pop("SITES_ROOT_DOMAIN", None)

import pytest
from fastapi.testclient import TestClient
from jose import jwt

from builder_service.app.main import app
from builder_service.seed import load_catalog
from shared.core.database import Base, BuilderSessionLocal, builder_engine
from shared.core.schemas import UserToken

TEST_SECRET = "test-secret"


@pytest.fixture()
def db():
    Base.metadata.drop_all(bind=builder_engine)
    Base.metadata.create_all(bind=builder_engine)
    session = BuilderSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def seeded_db(db):
    load_catalog(db)
    return db


@pytest.fixture()
def client(seeded_db):
    with TestClient(app) as test_client:
        yield test_client


def make_token(sub: str, secret: str = TEST_SECRET, expires_in: int = 3600, **claims) -> str:
    payload = {"sub": sub, "exp": int(time.time()) + expires_in, **claims}
    return jwt.encode(payload, secret, algorithm="HS256")


def auth_headers(sub: str, **kwargs) -> dict:
    return {"Authorization": f"Bearer {make_token(sub, **kwargs)}"}


def user(sub: str) -> UserToken:
    return UserToken(sub=sub)
