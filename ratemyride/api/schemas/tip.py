"""
Pydantic v2 schemas for the Tip API.

Field names are exposed in camelCase for the mobile client; Python code
uses the snake_case attribute names.

Covers:
- Tip payment intent request / response
- Record tip request and tip output
- Vehicle tip statistics output
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, StrictInt
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------

class CreateTipPaymentRequest(_CamelModel):
    """Request body for opening a tip PaymentIntent."""

    vehicle_id: uuid.UUID = Field(description="Vehicle receiving the tip")
    amount_cents: StrictInt = Field(
        description="Tip amount in cents (whole number, 50-10000)",
    )
    rating_id: Optional[uuid.UUID] = Field(
        default=None, description="Rating the tip follows, if any"
    )


class RecordTipRequest(_CamelModel):
    """Request body for recording a pending tip after intent creation."""

    vehicle_id: uuid.UUID
    payment_intent_id: str = Field(min_length=1, max_length=255)
    amount_cents: StrictInt
    device_hash: str = Field(min_length=1, max_length=255)
    rating_id: Optional[uuid.UUID] = None
    route_id: Optional[uuid.UUID] = None


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------

class TipPaymentIntentOut(_CamelModel):
    client_secret: str
    payment_intent_id: str
    platform_fee_cents: int
    operator_amount_cents: int


class TipOut(_CamelModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    stripe_payment_intent_id: str
    status: str
    vehicle_id: uuid.UUID
    route_id: Optional[uuid.UUID] = None
    rating_id: Optional[uuid.UUID] = None
    amount_cents: int
    platform_fee_cents: int
    operator_amount_cents: int
    currency: str
    created_at: datetime


class VehicleTipStatsOut(_CamelModel):
    model_config = ConfigDict(from_attributes=True)

    vehicle_id: uuid.UUID
    total_tips: int
    total_amount_cents: int
    platform_fee_cents: int
    operator_amount_cents: int
