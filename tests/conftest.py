"""
Shared fixtures: an in-memory SQLite ledger seeded with the default salon
chart, a unit of work bound to it, and a TestClient wired to the same database.
"""

import os

# Must be set before salonbooks.config is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["RATE_LIMIT_ENABLED"] = "false"

from datetime import date

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from salonbooks.database import Base, build_engine, get_db
from salonbooks.main import app
from salonbooks.models import Account
from salonbooks.services.inventory import record_manual_movement
from salonbooks.unit_of_work import UnitOfWork
from salonbooks.utils.chart_seed import seed_ledger_defaults
from salonbooks.utils.rate_limiter import limiter
from salonbooks.utils.security import ActingUser, create_access_token


def make_headers(role: str = "ACCOUNTANT", sub: str = "user-1") -> dict:
    token = create_access_token({"sub": sub, "role": role})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def engine():
    engine = build_engine("sqlite://", poolclass=StaticPool)
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def seeded(db_session):
    return seed_ledger_defaults(db_session)


@pytest.fixture
def accounts(db_session, seeded):
    """Account ids keyed by code"""
    return {a.code: a.id for a in db_session.query(Account).all()}


@pytest.fixture
def product_id(seeded):
    """SKU-001: price 50, cost 20, mapped to 1300 / 5000 / 4000"""
    return seeded["sample_product"]["product_id"]


@pytest.fixture
def location_id(seeded):
    return seeded["location"]["location_id"]


@pytest.fixture
def uow(db_session):
    return UnitOfWork(db_session)


@pytest.fixture
def stocked(uow, user, product_id, location_id):
    """Opening stock of 100 x SKU-001 at the main location, cost 20"""
    return record_manual_movement(uow, user, product_id, location_id, "IN", 100, 20, date(2024, 1, 1))


@pytest.fixture
def user():
    return ActingUser(id="user-1", role="ACCOUNTANT")


@pytest.fixture
def client(session_factory):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    limiter.enabled = False
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    return make_headers()


@pytest.fixture
def owner_headers():
    return make_headers(role="OWNER", sub="owner-1")


@pytest.fixture
def staff_headers():
    return make_headers(role="STAFF", sub="staff-1")
