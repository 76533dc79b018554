"""
Centralized Test Configuration.
"""

import pytest
from decimal import Decimal
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

from freight_backend.app.main import app
from freight_backend.app.db.session import get_db, Base
from freight_backend.app.core.redis_client import get_redis
from freight_backend.app.core.jwt import create_access_token
from freight_backend.app.models.account import Account
from freight_backend.app.models.billing_enums import AccountModeType
from freight_backend.app.models.shipment import Shipment
import freight_backend.app.core.redis_client as redis_client_module

# Setup In-Memory Test Database
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

# Event handler to enable foreign keys for SQLite
from sqlalchemy import event
from sqlalchemy.pool import Pool

@event.listens_for(Pool, "connect")
def set_sqlite_pragma(dbapi_conn, connection_record):
    """Enable foreign key constraints for SQLite."""
    if 'sqlite' in str(type(dbapi_conn)):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

engine = create_async_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False
)

# Mock Redis for reliability in CI/CD
class MockRedis:
    def __init__(self):
        self.store = {}
        self._closed = False

    async def ping(self):
        if self._closed:
            return False
        return True

    async def get(self, key):
        if self._closed:
            return None
        return self.store.get(key)

    async def set(self, key, value, ex=None, nx=False):
        if self._closed:
            return False
        if nx and key in self.store:
            return None
        self.store[key] = str(value)
        return True

    async def incr(self, key):
        value = int(self.store.get(key, 0)) + 1
        self.store[key] = str(value)
        return value

    async def exists(self, key):
        if self._closed:
            return 0
        return 1 if key in self.store else 0

    async def flushdb(self):
        if not self._closed:
            self.store = {}

    async def aclose(self):
        self._closed = True
        self.store = {}

# Redis Fixture (Session Scope)
@pytest.fixture(scope="session")
async def redis_client_session():
    return MockRedis()

@pytest.fixture(scope="session", autouse=True)
def apply_overrides(redis_client_session):
    """Apply overrides once for the session.
    Global override is safer here than per-test override to avoid app state flux.
    """

    # Patch the global redis client used by the health check
    original_client = redis_client_module.redis_client
    redis_client_module.redis_client = redis_client_session

    async def override_get_db():
        async with TestingSessionLocal() as session:
            yield session

    async def override_get_redis():
        return redis_client_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_redis] = override_get_redis
    yield

    # Restore and clear
    app.dependency_overrides = {}
    redis_client_module.redis_client = original_client

@pytest.fixture(autouse=True)
async def setup_database(redis_client_session):
    """Create tables before each test function and drop after."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    await redis_client_session.flushdb()

    yield

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

@pytest.fixture
async def client():
    """Async client for testing."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

# Shared session for fixture data creation
@pytest.fixture
async def db_session():
    async with TestingSessionLocal() as session:
        yield session


async def fetch_shipment(awb_no: str) -> Shipment:
    """Read a shipment through a fresh session, bypassing any identity map."""
    from sqlalchemy import select
    async with TestingSessionLocal() as session:
        result = await session.execute(select(Shipment).where(Shipment.awb_no == awb_no))
        return result.scalar_one_or_none()


def auth_headers(role: str, user_id: int = 1, username: str = None) -> dict:
    token = create_access_token(data={"sub": username or f"{role.lower()}_user", "user_id": user_id, "role": role})
    return {"Authorization": f"Bearer {token}"}

@pytest.fixture
def accounts_headers():
    return auth_headers("ACCOUNTS", user_id=11)

@pytest.fixture
def operations_headers():
    return auth_headers("OPERATIONS", user_id=21)

@pytest.fixture
def admin_headers():
    return auth_headers("ADMIN", user_id=1)


# Domain fixtures

@pytest.fixture
async def customer(db_session):
    account = Account(
        account_code="CUST001",
        name="Acme Exports",
        mode_type=AccountModeType.NORMAL,
        opening_balance=Decimal("100.00"),
        credit_limit=Decimal("1000.00"),
    )
    db_session.add(account)
    await db_session.commit()
    return account

@pytest.fixture
async def cash_customer(db_session):
    account = Account(
        account_code="CASH001",
        name="Walk-in Counter",
        mode_type=AccountModeType.CASH,
        opening_balance=Decimal("0.00"),
    )
    db_session.add(account)
    await db_session.commit()
    return account

@pytest.fixture
async def shipments(db_session, customer):
    """Four billable shipments plus one on hold and one without a run."""
    rows = [
        Shipment(awb_no="MPL1000001", account_code="CUST001", run_no="RUN-001", total_amt=Decimal("250.00")),
        Shipment(awb_no="MPL1000002", account_code="CUST001", run_no="RUN-001", total_amt=Decimal("410.00")),
        Shipment(awb_no="MPL1000003", account_code="CUST001", run_no="RUN-001", total_amt=Decimal("90.00")),
        Shipment(awb_no="MPL1000004", account_code="CUST001", run_no="RUN-002", total_amt=Decimal("120.00")),
        Shipment(awb_no="MPL1000005", account_code="CUST001", run_no="RUN-002", is_hold=True),
        Shipment(awb_no="MPL1000006", account_code="CUST001", run_no=None),
    ]
    db_session.add_all(rows)
    await db_session.commit()
    return {s.awb_no: s for s in rows}


def invoice_payload(document_no="INV-1", lines=None, **overrides) -> dict:
    lines = lines if lines is not None else [("MPL1000001", "250.00")]
    payload = {
        "document_no": document_no,
        "account_code": "CUST001",
        "document_date": "2024-04-10",
        "financial_year": "2024-25",
        "branch": "DEL",
        "amount": str(sum(Decimal(amount) for _, amount in lines)),
        "sgst": "0",
        "cgst": "0",
        "igst": "0",
        "lines": [{"awb_no": awb, "amount": amount} for awb, amount in lines],
    }
    payload.update(overrides)
    return payload
