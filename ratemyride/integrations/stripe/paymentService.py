"""
Stripe Payment Service
======================

Creates the PaymentIntents that back rider tips.

All monetary amounts are in cents (integers) to avoid floating-point issues.
Stripe keys come from application settings:
  STRIPE_SECRET_KEY, STRIPE_WEBHOOK_SECRET
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import stripe

from ratemyride.core.config import settings

from .tipContext import TipContext

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Stripe SDK configuration
# ---------------------------------------------------------------------------

stripe.api_key = settings.stripe_secret_key
stripe.api_version = settings.stripe_api_version


# ---------------------------------------------------------------------------
# Custom exception
# ---------------------------------------------------------------------------

class PaymentError(Exception):
    """Raised when a Stripe payment operation fails.

    Attributes:
        message: Human-readable error description.
        stripe_error_code: The Stripe error code, if available.
        stripe_error_type: The Stripe error type, if available.
        decline_code: The decline code from the card issuer, if available.
    """

    def __init__(
        self,
        message: str,
        stripe_error_code: str | None = None,
        stripe_error_type: str | None = None,
        decline_code: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.stripe_error_code = stripe_error_code
        self.stripe_error_type = stripe_error_type
        self.decline_code = decline_code

    def __repr__(self) -> str:
        return (
            f"PaymentError(message={self.message!r}, "
            f"code={self.stripe_error_code!r}, "
            f"type={self.stripe_error_type!r})"
        )


# ---------------------------------------------------------------------------
# Response dataclasses
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PaymentIntentResult:
    """Result of creating a Stripe PaymentIntent."""
    id: str
    client_secret: str
    status: str
    amount_cents: int
    currency: str


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _handle_stripe_error(exc: stripe.StripeError) -> PaymentError:
    """Convert a Stripe SDK exception into a PaymentError."""
    error_body = getattr(exc, "error", None)

    code = getattr(error_body, "code", None) if error_body else None
    error_type = getattr(error_body, "type", None) if error_body else None
    decline_code = getattr(error_body, "decline_code", None) if error_body else None

    logger.error(
        "Stripe API error: %s (code=%s, type=%s, decline_code=%s)",
        str(exc),
        code,
        error_type,
        decline_code,
    )

    return PaymentError(
        message=str(exc),
        stripe_error_code=code,
        stripe_error_type=error_type,
        decline_code=decline_code,
    )


# ---------------------------------------------------------------------------
# Payment Intent operations
# ---------------------------------------------------------------------------

async def create_tip_payment_intent(
    amount_cents: int,
    context: TipContext,
    currency: str = "usd",
    description: Optional[str] = None,
) -> PaymentIntentResult:
    """Create a Stripe PaymentIntent for a tip.

    Args:
        amount_cents: Tip amount in the smallest currency unit (cents).
        context: Reconciliation context, stored as PaymentIntent metadata.
        currency: Three-letter ISO currency code (default ``usd``).
        description: Optional statement description shown in the dashboard.

    Returns:
        PaymentIntentResult with the PaymentIntent details.

    Raises:
        PaymentError: If the Stripe API call fails.
        ValueError: If amount_cents is non-positive.
    """
    if amount_cents <= 0:
        raise ValueError(f"Payment amount must be positive, got {amount_cents}")

    params: dict = {
        "amount": amount_cents,
        "currency": currency.lower(),
        "metadata": context.to_metadata(),
    }

    if description:
        params["description"] = description

    try:
        intent = stripe.PaymentIntent.create(**params)
    except stripe.StripeError as exc:
        raise _handle_stripe_error(exc) from exc

    logger.info(
        "PaymentIntent created: id=%s, vehicle_id=%s, amount=%d %s",
        intent.id,
        context.vehicle_id,
        amount_cents,
        currency,
    )

    return PaymentIntentResult(
        id=intent.id,
        client_secret=intent.client_secret,
        status=intent.status,
        amount_cents=intent.amount,
        currency=intent.currency,
    )
