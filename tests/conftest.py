import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("JWT_SECRET", "test-secret")

from datetime import datetime, timedelta, timezone  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from benzochem_admin.db.session import (  # noqa: E402
    Base,
    SessionLocal,
    engine,
    import_models,
)
from benzochem_admin.models.admin_model import AdminRole  # noqa: E402
from benzochem_admin.services.auth_service import auth_service  # noqa: E402

ADMIN_PASSWORD = "correct-horse-battery"


class FakeClock:
    """Controllable replacement for utcnow"""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


@pytest.fixture
def db():
    """Fresh in-memory database per test"""
    import_models()
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def clock():
    # Thirty seconds into a minute, so minute windows roll predictably
    return FakeClock(datetime(2026, 3, 2, 10, 15, 30, tzinfo=timezone.utc))


@pytest.fixture
def admin(db):
    return auth_service.create_admin(
        db,
        email="admin@benzochem.com",
        password=ADMIN_PASSWORD,
        first_name="Ada",
        last_name="Admin",
        role=AdminRole.SUPER_ADMIN,
    )


@pytest.fixture
def client(db):
    """Test client against the in-memory database (lifespan not run)"""
    from benzochem_admin.main import app

    return TestClient(app)


@pytest.fixture
def admin_headers(admin):
    token = auth_service.issue_session_token(admin).access_token
    return {"Authorization": f"Bearer {token}"}
