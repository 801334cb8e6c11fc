"""
Stripe Webhook Handler
======================

Processes inbound Stripe webhook events with:
- Signature verification against STRIPE_WEBHOOK_SECRET (fails closed)
- Tip ledger reconciliation per PaymentIntent
- At-least-once delivery tolerance: a second ``succeeded`` delivery for a
  tip that is already ``succeeded`` changes nothing

Supported event types:
  - payment_intent.succeeded
  - payment_intent.payment_failed
  - payment_intent.canceled

Events not in the handled set are acknowledged but not processed. A database
error while applying an event raises ``WebhookProcessingError`` so the
endpoint answers 500 and Stripe redelivers later.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

import stripe
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ratemyride.core.config import settings
from ratemyride.core.errors import InvalidSignature, WebhookProcessingError
from ratemyride.models import TipStatus
from ratemyride.services import tipService

from .tipContext import TipContext

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Dataclasses
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PaymentIntentPayload:
    """The PaymentIntent fields reconciliation reads from an event."""
    id: str
    amount: int
    currency: str
    metadata: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_event_object(cls, obj: dict[str, Any]) -> "PaymentIntentPayload":
        return cls(
            id=obj["id"],
            amount=int(obj.get("amount") or 0),
            currency=obj.get("currency") or settings.tip_currency,
            metadata=dict(obj.get("metadata") or {}),
        )


@dataclass(frozen=True)
class WebhookResult:
    """Result of processing a webhook event."""
    event_type: str
    processed: bool
    message: str


# ---------------------------------------------------------------------------
# Signature verification
# ---------------------------------------------------------------------------

def verify_event(
    payload: bytes,
    sig_header: Optional[str],
    secret: str,
) -> dict[str, Any]:
    """Verify the ``Stripe-Signature`` header and return the event as a dict.

    Raises:
        WebhookProcessingError: If no webhook secret is configured.
        InvalidSignature: If the header is missing, does not verify, or the
            payload is not valid JSON.
    """
    if not secret:
        logger.error("STRIPE_WEBHOOK_SECRET is not set; rejecting webhook")
        raise WebhookProcessingError("Webhook secret is not configured")

    if not sig_header:
        raise InvalidSignature("Missing stripe-signature header")

    # The signature covers the decoded body text.
    try:
        body = payload.decode("utf-8") if isinstance(payload, bytes) else payload
    except UnicodeDecodeError as exc:
        raise InvalidSignature("Invalid webhook payload") from exc

    try:
        stripe.WebhookSignature.verify_header(
            body,
            sig_header,
            secret,
            tolerance=stripe.Webhook.DEFAULT_TOLERANCE,
        )
    except stripe.SignatureVerificationError as exc:
        logger.warning("Webhook signature verification failed: %s", str(exc))
        raise InvalidSignature("Webhook signature verification failed") from exc

    # Handlers work on the verified JSON as plain dicts.
    try:
        return json.loads(body)
    except ValueError as exc:
        logger.warning("Webhook payload parsing failed: %s", str(exc))
        raise InvalidSignature("Invalid webhook payload") from exc


# ---------------------------------------------------------------------------
# Event handlers
# ---------------------------------------------------------------------------

async def _handle_payment_intent_succeeded(
    db: AsyncSession, payment_intent: PaymentIntentPayload
) -> str:
    context = TipContext.from_metadata(payment_intent.metadata)
    tip = await tipService.reconcile_payment_succeeded(
        db,
        payment_intent_id=payment_intent.id,
        amount_cents=payment_intent.amount,
        currency=payment_intent.currency,
        context=context,
        now=datetime.now(tz=timezone.utc),
    )
    if tip is None:
        return f"Payment intent {payment_intent.id} is not a tip; ignored"
    return f"Tip {tip.id} succeeded for payment intent {payment_intent.id}"


async def _handle_payment_intent_failed(
    db: AsyncSession, payment_intent: PaymentIntentPayload
) -> str:
    rows = await tipService.set_tip_status(db, payment_intent.id, TipStatus.FAILED)
    return f"Payment intent {payment_intent.id} failed ({rows} tip row(s) updated)"


async def _handle_payment_intent_canceled(
    db: AsyncSession, payment_intent: PaymentIntentPayload
) -> str:
    rows = await tipService.set_tip_status(db, payment_intent.id, TipStatus.CANCELED)
    return f"Payment intent {payment_intent.id} canceled ({rows} tip row(s) updated)"


# ---------------------------------------------------------------------------
# Handler dispatch table
# ---------------------------------------------------------------------------

_EVENT_HANDLERS: dict[
    str, Callable[[AsyncSession, PaymentIntentPayload], Awaitable[str]]
] = {
    "payment_intent.succeeded": _handle_payment_intent_succeeded,
    "payment_intent.payment_failed": _handle_payment_intent_failed,
    "payment_intent.canceled": _handle_payment_intent_canceled,
}


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

async def handle_webhook(
    db: AsyncSession,
    payload: bytes,
    sig_header: Optional[str],
    secret: Optional[str] = None,
) -> WebhookResult:
    """Verify and apply an inbound Stripe webhook event.

    Steps:
    1. Verify the webhook signature (nothing is read or written before this)
    2. Dispatch to the handler for the event type
    3. Commit the handler's changes

    Args:
        db: Async database session.
        payload: The raw request body bytes from the webhook POST.
        sig_header: The ``Stripe-Signature`` header value.
        secret: Webhook signing secret; defaults to the configured one.

    Returns:
        WebhookResult indicating what happened.

    Raises:
        InvalidSignature: If verification fails.
        WebhookProcessingError: If the secret is unset or the database
            rejects the update.
    """
    if secret is None:
        secret = settings.stripe_webhook_secret

    event = verify_event(payload, sig_header, secret)
    event_id: str = event.get("id", "")
    event_type: str = event.get("type", "")

    handler = _EVENT_HANDLERS.get(event_type)
    if handler is None:
        logger.info(
            "Webhook event type not handled: id=%s, type=%s",
            event_id,
            event_type,
        )
        return WebhookResult(
            event_type=event_type,
            processed=False,
            message=f"Event type '{event_type}' acknowledged but not handled",
        )

    payment_intent = PaymentIntentPayload.from_event_object(event["data"]["object"])

    try:
        message = await handler(db, payment_intent)
        await db.commit()
    except SQLAlchemyError as exc:
        logger.exception(
            "Error processing webhook event: id=%s, type=%s, intent=%s",
            event_id,
            event_type,
            payment_intent.id,
        )
        raise WebhookProcessingError("Webhook processing failed") from exc

    logger.info(
        "Webhook event processed: id=%s, type=%s",
        event_id,
        event_type,
    )

    return WebhookResult(
        event_type=event_type,
        processed=True,
        message=message,
    )
