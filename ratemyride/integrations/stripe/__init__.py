"""
Stripe Integration Module
=========================

Central export point for the Stripe integration used by tipping.

Usage::

    from ratemyride.integrations.stripe import (
        PaymentError,
        TipContext,
        create_tip_payment_intent,
        handle_webhook,
    )
"""

from .paymentService import (
    PaymentError,
    PaymentIntentResult,
    create_tip_payment_intent,
)
from .tipContext import TipContext
from .webhookHandler import (
    PaymentIntentPayload,
    WebhookResult,
    handle_webhook,
    verify_event,
)

__all__ = [
    # Payment Service
    "PaymentError",
    "PaymentIntentResult",
    "create_tip_payment_intent",
    # Metadata contract
    "TipContext",
    # Webhook Handler
    "PaymentIntentPayload",
    "WebhookResult",
    "handle_webhook",
    "verify_event",
]
