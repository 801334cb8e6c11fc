"""
E2E test fixtures for the RateMyRide backend.

Provides:
- An in-process FastAPI app built by ``create_app`` with all routes registered
- httpx AsyncClient wired via ASGI transport (no network needed)
- An async SQLite database (in-memory, one per test) for isolation
- Seed data: one route, an active vehicle on it and an inactive vehicle

Stripe is mocked at the SDK level for PaymentIntent creation. Webhooks are
signed with the test secret and verified by the real SDK, so the full
route -> handler -> service -> DB flow is exercised.
"""

from __future__ import annotations

import uuid
from typing import AsyncGenerator
from unittest.mock import MagicMock, patch

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.ext.compiler import compiles
from sqlalchemy.pool import StaticPool

from ratemyride.api.deps import get_db
from ratemyride.core.config import settings
from ratemyride.main import create_app
from ratemyride.models import Base, Route, Vehicle
from tests.conftest import WEBHOOK_SECRET, make_event_payload, sign_payload


# A column declared as UUID gets NUMERIC affinity in SQLite, which turns
# all-digit hex ids into REAL. Store them as text.
@compiles(UUID, "sqlite")
def compile_uuid_sqlite(type_, compiler, **kw):
    return "CHAR(32)"

# ---------------------------------------------------------------------------
# Test IDs (stable across tests so cross-references work)
# ---------------------------------------------------------------------------

ROUTE_ID = uuid.UUID("11111111-1111-1111-1111-111111111111")
VEHICLE_ID = uuid.UUID("22222222-2222-2222-2222-222222222222")
INACTIVE_VEHICLE_ID = uuid.UUID("33333333-3333-3333-3333-333333333333")
RATING_ID = uuid.UUID("44444444-4444-4444-4444-444444444444")

TEST_DB_URL = "sqlite+aiosqlite:///:memory:"


# ---------------------------------------------------------------------------
# Async engine + session (in-memory SQLite)
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture
async def _test_engine():
    # StaticPool keeps the single in-memory database alive across connections.
    engine = create_async_engine(TEST_DB_URL, echo=False, poolclass=StaticPool)

    # SQLite does not enforce foreign keys by default
    @event.listens_for(engine.sync_engine, "connect")
    def _enable_fk(dbapi_conn, _):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(_test_engine) -> AsyncGenerator[AsyncSession, None]:
    """Yield a session over a freshly seeded database."""
    session_factory = async_sessionmaker(
        bind=_test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
    async with session_factory() as session:
        await _seed_data(session)
        yield session


async def _seed_data(db: AsyncSession) -> None:
    db.add(Route(id=ROUTE_ID, name="CBD - Westlands"))
    await db.flush()
    db.add_all([
        Vehicle(id=VEHICLE_ID, reg_number="KDA 123A", route_id=ROUTE_ID, is_active=True),
        Vehicle(id=INACTIVE_VEHICLE_ID, reg_number="KDB 456B", is_active=False),
    ])
    await db.commit()


# ---------------------------------------------------------------------------
# External service mocks
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def webhook_secret(monkeypatch):
    monkeypatch.setattr(settings, "stripe_webhook_secret", WEBHOOK_SECRET)
    return WEBHOOK_SECRET


@pytest.fixture(autouse=True)
def mock_stripe():
    """Mock the Stripe SDK used for PaymentIntent creation."""
    with patch("ratemyride.integrations.stripe.paymentService.stripe") as mock_sdk:
        mock_sdk.StripeError = Exception

        intent = MagicMock()
        intent.id = "pi_test_e2e"
        intent.client_secret = "pi_test_e2e_secret_abc"
        intent.status = "requires_payment_method"
        intent.amount = 1000
        intent.currency = "usd"
        mock_sdk.PaymentIntent.create.return_value = intent

        yield mock_sdk


# ---------------------------------------------------------------------------
# App + client
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture
async def app(db_session: AsyncSession):
    application = create_app()

    async def _override_get_db() -> AsyncGenerator[AsyncSession, None]:
        try:
            yield db_session
            await db_session.commit()
        except Exception:
            await db_session.rollback()
            raise

    application.dependency_overrides[get_db] = _override_get_db
    yield application
    application.dependency_overrides.clear()


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

async def post_webhook(
    client: AsyncClient,
    event_type: str,
    payment_intent_id: str,
    **kwargs,
):
    """POST a correctly signed PaymentIntent event to the webhook endpoint."""
    payload = make_event_payload(event_type, payment_intent_id, **kwargs)
    return await client.post(
        "/api/v1/stripe/webhook",
        content=payload,
        headers={
            "stripe-signature": sign_payload(payload),
            "content-type": "application/json",
        },
    )


def tip_metadata(
    vehicle_id: uuid.UUID = VEHICLE_ID,
    *,
    platform_fee_cents: int = 150,
    operator_amount_cents: int = 850,
    route_id: uuid.UUID | None = ROUTE_ID,
    rating_id: uuid.UUID | None = None,
) -> dict[str, str]:
    """PaymentIntent metadata as written at intent creation."""
    return {
        "vehicle_id": str(vehicle_id),
        "route_id": str(route_id) if route_id else "",
        "rating_id": str(rating_id) if rating_id else "",
        "platform_fee_cents": str(platform_fee_cents),
        "operator_amount_cents": str(operator_amount_cents),
    }
