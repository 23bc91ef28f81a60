"""Shared fixtures: an in-memory database, a TestClient and user factories.

Bearer tokens in these tests are simply the user's id; token verification
is swapped for a lookup that turns the token back into an auth identity.
"""

import os
import uuid

os.environ["DATABASE_URL"] = "sqlite://"

import pytest
from fastapi.testclient import TestClient

from capconnect.api import deps
from capconnect.database.database import SessionLocal, drop_db, init_db
from capconnect.database.models import Company, User
from capconnect.main import app


def _email_for(user_id) -> str:
    return f"user-{str(user_id)[:8]}@capconnect.app"


@pytest.fixture(autouse=True)
def database():
    init_db()
    yield
    drop_db()


@pytest.fixture(autouse=True)
def fake_auth(monkeypatch):
    def verify_token(token):
        try:
            user_id = uuid.UUID(token)
        except ValueError:
            raise deps._unauthorized()
        return deps.AuthUser(id=user_id, email=_email_for(user_id))

    monkeypatch.setattr(deps, "verify_token", verify_token)
    monkeypatch.setattr(deps, "is_configured", lambda: True)


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def db():
    session = SessionLocal()
    yield session
    session.close()


def auth_headers(user_id) -> dict:
    return {"Authorization": f"Bearer {user_id}"}


@pytest.fixture
def auth():
    return auth_headers


@pytest.fixture
def make_user(db):
    def _make_user(role="founder", full_name=None, is_stealth=False, is_verified=False):
        user_id = uuid.uuid4()
        user = User(
            id=user_id,
            email=_email_for(user_id),
            role=role,
            full_name=full_name or f"Test {role.title()}",
            is_stealth=is_stealth,
            is_verified=is_verified,
        )
        db.add(user)
        db.commit()
        return user

    return _make_user


@pytest.fixture
def make_company(db):
    def _make_company(user, **overrides):
        data = {
            "name": "Acme Robotics",
            "industry": "robotics",
            "stage": "seed",
            "description": "Warehouse automation",
            "target_raise": 500000,
            "current_valuation": 5000000,
        }
        data.update(overrides)
        company = Company(user_id=user.id, **data)
        db.add(company)
        db.commit()
        return company

    return _make_company


@pytest.fixture
def founder(make_user):
    return make_user("founder", full_name="Fiona Founder")


@pytest.fixture
def investor(make_user):
    return make_user("investor", full_name="Ivan Investor")


@pytest.fixture
def company(make_company, founder):
    return make_company(founder)
