import os
import time
from datetime import date, timedelta

os.environ.setdefault("SUPABASE_JWT_SECRET", "test-jwt-secret")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("DB_LOG_SLOW_QUERIES", "false")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from salonbook import cache as cache_module  # noqa: E402
from salonbook import rate_limiter  # noqa: E402
from salonbook.auth import AuthUser, get_current_admin, get_current_user  # noqa: E402
from salonbook.config import DEFAULT_TENANT_ID  # noqa: E402
from salonbook.database import Base, get_db  # noqa: E402
from salonbook.domain.bookings.router import booking_rate_limit  # noqa: E402
from salonbook.domain.coupons.router import coupon_validate_rate_limit  # noqa: E402
from salonbook.main import app  # noqa: E402
from salonbook.models import Professional, Service, Tenant, WorkSettings  # noqa: E402

USER_ID = "11111111-1111-1111-1111-111111111111"
OTHER_USER_ID = "22222222-2222-2222-2222-222222222222"
ADMIN_ID = "99999999-9999-9999-9999-999999999999"


class FakeRedis:
    """Dict-backed stand-in for the few redis commands the app uses"""

    def __init__(self):
        self.store = {}
        self.expiry = {}

    def _alive(self, key):
        exp = self.expiry.get(key)
        if exp is not None and exp <= time.time():
            self.store.pop(key, None)
            self.expiry.pop(key, None)
        return key in self.store

    def ping(self):
        return True

    def get(self, key):
        return self.store.get(key) if self._alive(key) else None

    def set(self, key, value, ex=None):
        self.store[key] = str(value)
        if ex:
            self.expiry[key] = time.time() + ex
        return True

    def setex(self, key, ttl, value):
        return self.set(key, value, ex=ttl)

    def delete(self, key):
        self.expiry.pop(key, None)
        return 1 if self.store.pop(key, None) is not None else 0

    def ttl(self, key):
        if not self._alive(key):
            return -2
        exp = self.expiry.get(key)
        return int(exp - time.time()) if exp else -1


def upcoming(weekday: int, weeks_ahead: int = 1) -> date:
    """Next date at least `weeks_ahead` weeks out with the given weekday (0=Sunday)"""
    start = date.today() + timedelta(days=7 * weeks_ahead)
    offset = (weekday - start.isoweekday() % 7) % 7
    return start + timedelta(days=offset)


@pytest.fixture(autouse=True)
def fake_redis(monkeypatch):
    fake = FakeRedis()
    monkeypatch.setattr(cache_module.cache, "redis_client", fake)
    monkeypatch.setattr(rate_limiter, "redis_client", fake)
    rate_limiter.memory_cache.clear()
    yield fake
    rate_limiter.memory_cache.clear()


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    session.add(Tenant(id=DEFAULT_TENANT_ID, slug="default", name="Default Salon"))
    session.commit()
    yield session
    session.close()


@pytest.fixture
def tenant_id(db):
    return DEFAULT_TENANT_ID


@pytest.fixture
def work_settings(db, tenant_id):
    settings = WorkSettings(
        tenant_id=tenant_id,
        start_time="09:00",
        end_time="18:00",
        interval_minutes=10,
        slot_step_minutes=30,
        working_days=[1, 2, 3, 4, 5, 6],
    )
    db.add(settings)
    db.commit()
    return settings


@pytest.fixture
def professional(db, tenant_id):
    pro = Professional(tenant_id=tenant_id, name="Ana Souza")
    db.add(pro)
    db.commit()
    db.refresh(pro)
    return pro


@pytest.fixture
def services(db, tenant_id):
    haircut = Service(tenant_id=tenant_id, name="Corte", duration_minutes=45, price=50.0)
    beard = Service(tenant_id=tenant_id, name="Barba", duration_minutes=30, price=30.0)
    color = Service(tenant_id=tenant_id, name="Coloração", duration_minutes=60, price=100.0)
    retired = Service(tenant_id=tenant_id, name="Escova", duration_minutes=30, price=40.0, active=False)
    db.add_all([haircut, beard, color, retired])
    db.commit()
    return {"haircut": haircut, "beard": beard, "color": color, "retired": retired}


@pytest.fixture
def auth_state():
    return {"user": AuthUser(id=USER_ID, email="cliente@example.com")}


@pytest.fixture
def client(db, auth_state):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_user] = lambda: auth_state["user"]
    app.dependency_overrides[get_current_admin] = lambda: AuthUser(id=ADMIN_ID, role="admin")
    app.dependency_overrides[booking_rate_limit] = lambda: None
    app.dependency_overrides[coupon_validate_rate_limit] = lambda: None

    yield TestClient(app)

    app.dependency_overrides.clear()
