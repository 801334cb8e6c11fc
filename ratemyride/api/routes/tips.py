"""
Tip API Routes
==============

REST endpoints for rider tips.

  POST /api/v1/tips/create-payment   -- Open a Stripe PaymentIntent for a tip
  POST /api/v1/tips                  -- Record a pending tip for a PaymentIntent
"""

from __future__ import annotations

from fastapi import APIRouter, Response, status

from ratemyride.api.deps import DBSession
from ratemyride.api.schemas.tip import (
    CreateTipPaymentRequest,
    RecordTipRequest,
    TipOut,
    TipPaymentIntentOut,
)
from ratemyride.services import tipService


router = APIRouter(prefix="/tips", tags=["Tips"])


# ---------------------------------------------------------------------------
# POST /tips/create-payment
# ---------------------------------------------------------------------------

@router.post(
    "/create-payment",
    response_model=TipPaymentIntentOut,
    summary="Open a payment intent for a tip",
    description=(
        "Validates the amount (50-10000 cents), checks that the vehicle is "
        "active, splits off the 15% platform fee and creates a Stripe "
        "PaymentIntent. The returned clientSecret is used by the mobile app "
        "to complete payment. No tip row is written."
    ),
)
async def create_tip_payment(
    body: CreateTipPaymentRequest,
    db: DBSession,
) -> TipPaymentIntentOut:
    intent = await tipService.create_tip_payment_intent(
        db=db,
        vehicle_id=body.vehicle_id,
        amount_cents=body.amount_cents,
        rating_id=body.rating_id,
    )
    return TipPaymentIntentOut(
        client_secret=intent.client_secret,
        payment_intent_id=intent.payment_intent_id,
        platform_fee_cents=intent.platform_fee_cents,
        operator_amount_cents=intent.operator_amount_cents,
    )


# ---------------------------------------------------------------------------
# POST /tips
# ---------------------------------------------------------------------------

@router.post(
    "",
    response_model=TipOut,
    status_code=status.HTTP_201_CREATED,
    summary="Record a pending tip",
    description=(
        "Stores a tip in 'pending' status for a PaymentIntent returned by "
        "/tips/create-payment. The Stripe webhook moves it to succeeded, "
        "failed or canceled. If the PaymentIntent is already recorded the "
        "existing tip is returned unchanged with status 200."
    ),
)
async def record_tip(
    body: RecordTipRequest,
    db: DBSession,
    response: Response,
) -> TipOut:
    tip, created = await tipService.record_tip(
        db,
        vehicle_id=body.vehicle_id,
        payment_intent_id=body.payment_intent_id,
        amount_cents=body.amount_cents,
        device_hash=body.device_hash,
        rating_id=body.rating_id,
        route_id=body.route_id,
    )
    if not created:
        response.status_code = status.HTTP_200_OK
    return TipOut.model_validate(tip)
