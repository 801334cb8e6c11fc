"""
Stripe Webhook Route
====================

  POST /api/v1/stripe/webhook   -- Stripe webhook endpoint

Answers 200 ``{"received": true}`` once the event is applied (or ignored),
400 when the signature is missing or invalid, and 500 when the event could
not be applied so that Stripe redelivers it.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Request

from ratemyride.api.deps import DBSession
from ratemyride.api.schemas.webhook import WebhookReceivedOut
from ratemyride.core.config import settings
from ratemyride.integrations.stripe.webhookHandler import handle_webhook

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/stripe", tags=["Stripe"])


@router.post(
    "/webhook",
    response_model=WebhookReceivedOut,
    summary="Stripe webhook endpoint",
    description=(
        "Receives PaymentIntent events from Stripe. The raw body is verified "
        "against the Stripe-Signature header before anything is read from "
        "or written to the database."
    ),
    include_in_schema=False,
)
async def stripe_webhook(request: Request, db: DBSession) -> WebhookReceivedOut:
    payload = await request.body()
    sig_header = request.headers.get("stripe-signature")

    result = await handle_webhook(
        db,
        payload=payload,
        sig_header=sig_header,
        secret=settings.stripe_webhook_secret,
    )
    logger.debug("Webhook result: %s", result.message)
    return WebhookReceivedOut(received=True)
