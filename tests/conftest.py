import os

# Configure before the app (and its engine) are imported
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("GEOLOCATION_ENABLED", "false")
os.environ.setdefault("SECRET_KEY", "test-secret-key")

from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.main import app
from app.api.deps import get_now, get_geo_lookup
from app.core.rate_limit import reset_rate_limits
from app.core.security import create_access_token, get_password_hash
from app.db.session import Base, get_db
from app.models.admin import Admin
from app.services.geolocation import GeoLocation, GeoLookupResult, GeoLookupStatus

FIXED_NOW = datetime(2026, 3, 2, 12, 0, 0)
ADMIN_EMAIL = "admin@test.local"
ADMIN_PASSWORD = "correct horse battery"


class Clock:
    """Mutable request clock shared by the app and the test."""

    def __init__(self, now: datetime):
        self.now = now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_session(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def clock():
    return Clock(FIXED_NOW)


@pytest.fixture
def geo_calls():
    """IPs the fake geolocation lookup was asked about."""
    return []


@pytest.fixture
def client(session_factory, clock, geo_calls):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    def fake_geo_lookup(ip):
        geo_calls.append(ip)
        return GeoLookupResult(
            GeoLookupStatus.OK,
            GeoLocation(country="United States", country_code="US", city="Austin", region="Texas", ip=ip),
        )

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_now] = lambda: clock.now
    app.dependency_overrides[get_geo_lookup] = lambda: fake_geo_lookup
    reset_rate_limits()

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
    reset_rate_limits()


@pytest.fixture
def admin(db_session):
    admin = Admin(email=ADMIN_EMAIL, hashed_password=get_password_hash(ADMIN_PASSWORD), role="admin")
    db_session.add(admin)
    db_session.commit()
    return admin


@pytest.fixture
def admin_headers(admin):
    token = create_access_token(data={"sub": ADMIN_EMAIL, "role": "admin"})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def track(client):
    """Post one tracking envelope."""
    def _track(event_type, headers=None, **data):
        return client.post(
            "/analytics/track",
            json={"eventType": event_type, "data": data},
            headers=headers or {},
        )
    return _track
