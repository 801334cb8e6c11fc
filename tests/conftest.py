"""
Shared pytest fixtures for RateMyRide unit tests.

Provides mock database sessions and sample domain objects that mirror
production ORM models without requiring a live database connection, plus
helpers that build and sign Stripe webhook payloads the way Stripe does.
"""

import hashlib
import hmac
import json
import time
import uuid
from datetime import datetime, timezone
from typing import Any, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest

from ratemyride.models import Tip, TipStatus, Vehicle

WEBHOOK_SECRET = "whsec_test_secret"


# ---------------------------------------------------------------------------
# Stripe webhook helpers
# ---------------------------------------------------------------------------


def sign_payload(
    payload: bytes,
    secret: str = WEBHOOK_SECRET,
    timestamp: Optional[int] = None,
) -> str:
    """Build a ``Stripe-Signature`` header value for ``payload``."""
    timestamp = timestamp if timestamp is not None else int(time.time())
    signed_payload = f"{timestamp}.".encode("utf-8") + payload
    signature = hmac.new(
        secret.encode("utf-8"), signed_payload, hashlib.sha256
    ).hexdigest()
    return f"t={timestamp},v1={signature}"


def make_event_payload(
    event_type: str,
    payment_intent_id: str,
    *,
    amount: int = 1000,
    currency: str = "usd",
    metadata: Optional[dict[str, Any]] = None,
    event_id: str = "evt_test_001",
) -> bytes:
    """Serialize a PaymentIntent webhook event the way Stripe sends it."""
    event = {
        "id": event_id,
        "object": "event",
        "type": event_type,
        "data": {
            "object": {
                "id": payment_intent_id,
                "object": "payment_intent",
                "amount": amount,
                "currency": currency,
                "metadata": metadata or {},
            }
        },
    }
    return json.dumps(event).encode("utf-8")


# ---------------------------------------------------------------------------
# Database session mock
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_db() -> AsyncMock:
    """Async mock of ``AsyncSession``.

    Provides a mock that supports ``db.execute()``, ``db.add()``,
    ``db.flush()``, and ``db.commit()`` out of the box.  Individual tests
    can configure ``mock_db.execute.return_value`` to control query results.
    """
    session = AsyncMock()
    session.add = MagicMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    return session


def scalar_result(value: Any) -> MagicMock:
    """A mock ``Result`` whose ``scalar_one_or_none()`` returns ``value``."""
    result = MagicMock()
    result.scalar_one_or_none.return_value = value
    return result


# ---------------------------------------------------------------------------
# Domain fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def sample_vehicle() -> Vehicle:
    """An active vehicle assigned to a route."""
    vehicle = MagicMock(spec=Vehicle)
    vehicle.id = uuid.uuid4()
    vehicle.reg_number = "KDA 123A"
    vehicle.route_id = uuid.uuid4()
    vehicle.is_active = True
    vehicle.created_at = datetime(2025, 1, 15, tzinfo=timezone.utc)
    vehicle.updated_at = datetime(2025, 1, 15, tzinfo=timezone.utc)
    return vehicle


@pytest.fixture
def sample_pending_tip(sample_vehicle: Vehicle) -> Tip:
    """A pending tip recorded by the client."""
    tip = MagicMock(spec=Tip)
    tip.id = uuid.uuid4()
    tip.stripe_payment_intent_id = "pi_test_pending"
    tip.status = TipStatus.PENDING.value
    tip.vehicle_id = sample_vehicle.id
    tip.route_id = sample_vehicle.route_id
    tip.rating_id = None
    tip.amount_cents = 1000
    tip.platform_fee_cents = 150
    tip.operator_amount_cents = 850
    tip.currency = "usd"
    tip.device_hash = "device-abc"
    return tip
