"""
Tip Service
===========

Money path for rider tips:

- ``create_tip_payment_intent``: bounds-check the amount, split off the
  platform fee and open a Stripe PaymentIntent carrying a ``TipContext``.
- ``record_tip``: the client stores a pending tip once it holds a
  PaymentIntent.
- ``reconcile_payment_succeeded`` / ``set_tip_status``: applied by the Stripe
  webhook handler; the only writers of ``Tip.status``.
- ``get_vehicle_tip_stats``: succeeded-tip totals for one vehicle.

Fee split: ``platform_fee = round(amount * rate)`` with half-up rounding of
the exact product, ``operator_amount = amount - platform_fee``. Rounding is
applied once so both parts always add up to the amount.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ratemyride.core.config import settings
from ratemyride.core.errors import (
    DownstreamFailure,
    InvalidAmount,
    InvalidInput,
    NotFound,
)
from ratemyride.integrations.stripe import paymentService
from ratemyride.integrations.stripe.paymentService import PaymentError
from ratemyride.integrations.stripe.tipContext import TipContext
from ratemyride.models import Tip, TipStatus, Vehicle

logger = logging.getLogger(__name__)

MIN_TIP_CENTS: int = settings.tip_min_cents
MAX_TIP_CENTS: int = settings.tip_max_cents
PLATFORM_FEE_RATE: Decimal = Decimal(str(settings.platform_fee_rate))
TIP_CURRENCY: str = settings.tip_currency

WEBHOOK_DEVICE_HASH_PREFIX = "webhook_"


# ---------------------------------------------------------------------------
# Result dataclasses
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class FeeSplit:
    platform_fee_cents: int
    operator_amount_cents: int

    @property
    def amount_cents(self) -> int:
        return self.platform_fee_cents + self.operator_amount_cents


@dataclass(frozen=True)
class TipPaymentIntent:
    """What the client needs to complete payment with the Stripe SDK."""
    client_secret: str
    payment_intent_id: str
    platform_fee_cents: int
    operator_amount_cents: int


@dataclass(frozen=True)
class VehicleTipStats:
    vehicle_id: uuid.UUID
    total_tips: int
    total_amount_cents: int
    platform_fee_cents: int
    operator_amount_cents: int


# ---------------------------------------------------------------------------
# Amount rules
# ---------------------------------------------------------------------------

def _format_dollars(cents: int) -> str:
    # 50 -> "0.5", 10000 -> "100"
    return f"{cents / 100:g}"


def validate_tip_amount(amount_cents: int) -> None:
    """Raise if ``amount_cents`` is not a whole number of cents in range.

    Raises:
        InvalidInput: If the amount is not an integer.
        InvalidAmount: If the amount is outside [MIN_TIP_CENTS, MAX_TIP_CENTS].
    """
    if isinstance(amount_cents, bool) or not isinstance(amount_cents, int):
        raise InvalidInput("amountCents is required and must be a number")
    if amount_cents < MIN_TIP_CENTS:
        raise InvalidAmount(f"Minimum tip amount is ${_format_dollars(MIN_TIP_CENTS)}")
    if amount_cents > MAX_TIP_CENTS:
        raise InvalidAmount(f"Maximum tip amount is ${_format_dollars(MAX_TIP_CENTS)}")


def compute_fee_split(
    amount_cents: int,
    rate: Decimal = PLATFORM_FEE_RATE,
) -> FeeSplit:
    """Split a tip into the platform fee and the operator's share."""
    platform_fee = int(
        (Decimal(amount_cents) * rate).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    )
    return FeeSplit(
        platform_fee_cents=platform_fee,
        operator_amount_cents=amount_cents - platform_fee,
    )


def _resolve_split(amount_cents: int, context: Optional[TipContext]) -> FeeSplit:
    """Use the split recorded at intent time unless it no longer adds up."""
    if context is not None:
        split = FeeSplit(context.platform_fee_cents, context.operator_amount_cents)
        if split.amount_cents == amount_cents:
            return split
        logger.warning(
            "Metadata fee split %d+%d does not match amount %d; recomputing",
            context.platform_fee_cents,
            context.operator_amount_cents,
            amount_cents,
        )
    return compute_fee_split(amount_cents)


def placeholder_device_hash(now: datetime) -> str:
    """Device fingerprint for rows created by the webhook.

    The real fingerprint never reaches Stripe, so these rows carry a
    synthetic value recognisable by its prefix.
    """
    return f"{WEBHOOK_DEVICE_HASH_PREFIX}{int(now.timestamp() * 1000)}"


def is_placeholder_device_hash(device_hash: Optional[str]) -> bool:
    return bool(device_hash) and device_hash.startswith(WEBHOOK_DEVICE_HASH_PREFIX)


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------

async def get_active_vehicle(db: AsyncSession, vehicle_id: uuid.UUID) -> Vehicle:
    """Return the vehicle if it exists and is active.

    Raises:
        NotFound: If the vehicle is missing or inactive.
        DownstreamFailure: If the database query fails.
    """
    try:
        result = await db.execute(
            select(Vehicle).where(Vehicle.id == vehicle_id, Vehicle.is_active.is_(True))
        )
        vehicle = result.scalar_one_or_none()
    except SQLAlchemyError as exc:
        logger.exception("Error fetching vehicle %s", vehicle_id)
        raise DownstreamFailure("Unable to verify vehicle") from exc

    if vehicle is None:
        raise NotFound("Vehicle not found or inactive")
    return vehicle


async def get_tip_by_payment_intent(
    db: AsyncSession,
    payment_intent_id: str,
) -> Optional[Tip]:
    result = await db.execute(
        select(Tip).where(Tip.stripe_payment_intent_id == payment_intent_id)
    )
    return result.scalar_one_or_none()


# ---------------------------------------------------------------------------
# Intent creation
# ---------------------------------------------------------------------------

async def create_tip_payment_intent(
    db: AsyncSession,
    vehicle_id: uuid.UUID,
    amount_cents: int,
    rating_id: Optional[uuid.UUID] = None,
) -> TipPaymentIntent:
    """Open a Stripe PaymentIntent for a tip on an active vehicle.

    No tip row is written here; the client records one afterwards and the
    webhook can create it as a fallback.

    Raises:
        InvalidInput / InvalidAmount: Bad amount. Stripe is not called.
        NotFound: Vehicle missing or inactive.
        DownstreamFailure: Database or Stripe failure.
    """
    validate_tip_amount(amount_cents)
    vehicle = await get_active_vehicle(db, vehicle_id)

    split = compute_fee_split(amount_cents)
    context = TipContext(
        vehicle_id=vehicle.id,
        platform_fee_cents=split.platform_fee_cents,
        operator_amount_cents=split.operator_amount_cents,
        route_id=vehicle.route_id,
        rating_id=rating_id,
    )

    try:
        intent = await paymentService.create_tip_payment_intent(
            amount_cents=amount_cents,
            context=context,
            currency=TIP_CURRENCY,
            description=f"Tip for vehicle {vehicle.reg_number}",
        )
    except PaymentError as exc:
        raise DownstreamFailure("Unable to create payment intent") from exc

    return TipPaymentIntent(
        client_secret=intent.client_secret,
        payment_intent_id=intent.id,
        platform_fee_cents=split.platform_fee_cents,
        operator_amount_cents=split.operator_amount_cents,
    )


# ---------------------------------------------------------------------------
# Client-side recording
# ---------------------------------------------------------------------------

async def record_tip(
    db: AsyncSession,
    *,
    vehicle_id: uuid.UUID,
    payment_intent_id: str,
    amount_cents: int,
    device_hash: str,
    rating_id: Optional[uuid.UUID] = None,
    route_id: Optional[uuid.UUID] = None,
) -> tuple[Tip, bool]:
    """Store a pending tip for a PaymentIntent.

    The fee split is recomputed here, never taken from the client. If a row
    for the PaymentIntent already exists its status and amounts are left
    alone, because they belong to webhook reconciliation. A row the webhook
    created first still carries the placeholder device hash; it gets the
    client's device hash and any missing rating / route ids.

    Returns:
        ``(tip, created)``.
    """
    validate_tip_amount(amount_cents)

    existing = await get_tip_by_payment_intent(db, payment_intent_id)
    if existing is not None:
        if is_placeholder_device_hash(existing.device_hash):
            existing.device_hash = device_hash
            if existing.rating_id is None:
                existing.rating_id = rating_id
            if existing.route_id is None:
                existing.route_id = route_id
            await _flush_tip(db, payment_intent_id)
            logger.info(
                "Client details attached to webhook-created tip %s (status=%s)",
                existing.id,
                existing.status,
            )
        else:
            logger.info(
                "Tip for payment intent %s already recorded (status=%s)",
                payment_intent_id,
                existing.status,
            )
        return existing, False

    vehicle = await db.get(Vehicle, vehicle_id)
    if vehicle is None:
        raise NotFound("Vehicle not found")

    split = compute_fee_split(amount_cents)
    tip = Tip(
        stripe_payment_intent_id=payment_intent_id,
        status=TipStatus.PENDING.value,
        vehicle_id=vehicle.id,
        route_id=route_id or vehicle.route_id,
        rating_id=rating_id,
        amount_cents=amount_cents,
        platform_fee_cents=split.platform_fee_cents,
        operator_amount_cents=split.operator_amount_cents,
        currency=TIP_CURRENCY,
        device_hash=device_hash,
    )
    db.add(tip)
    await _flush_tip(db, payment_intent_id)

    logger.info(
        "Tip recorded: tip=%s, intent=%s, vehicle=%s, amount=%d cents",
        tip.id,
        payment_intent_id,
        vehicle.id,
        amount_cents,
    )
    return tip, True


async def _flush_tip(db: AsyncSession, payment_intent_id: str) -> None:
    try:
        await db.flush()
    except SQLAlchemyError as exc:
        logger.exception("Error recording tip for payment intent %s", payment_intent_id)
        raise DownstreamFailure("Unable to record tip") from exc


# ---------------------------------------------------------------------------
# Webhook reconciliation
# ---------------------------------------------------------------------------

async def reconcile_payment_succeeded(
    db: AsyncSession,
    *,
    payment_intent_id: str,
    amount_cents: int,
    currency: str,
    context: Optional[TipContext],
    now: Optional[datetime] = None,
) -> Optional[Tip]:
    """Mark the tip for a succeeded PaymentIntent as succeeded.

    - Already ``succeeded``: no-op, the row is returned as is.
    - Existing row in another state: updated from the PaymentIntent.
    - No row: built from ``context`` with a placeholder device hash.
    - No row and no context: not a tip, returns ``None``.

    Database errors propagate to the caller.
    """
    existing = await get_tip_by_payment_intent(db, payment_intent_id)

    if existing is not None and existing.status == TipStatus.SUCCEEDED.value:
        logger.info("Tip %s already marked as succeeded", existing.id)
        return existing

    if existing is None and context is None:
        logger.info(
            "Payment intent %s has no tip metadata; ignoring", payment_intent_id
        )
        return None

    split = _resolve_split(amount_cents, context)

    if existing is None:
        now = now or datetime.now(tz=timezone.utc)
        tip = Tip(
            stripe_payment_intent_id=payment_intent_id,
            vehicle_id=context.vehicle_id,
            route_id=context.route_id,
            rating_id=context.rating_id,
            device_hash=placeholder_device_hash(now),
        )
        db.add(tip)
        action = "created"
    else:
        tip = existing
        if context is not None:
            tip.vehicle_id = context.vehicle_id
            tip.route_id = context.route_id
            tip.rating_id = context.rating_id
        action = "updated"

    tip.status = TipStatus.SUCCEEDED.value
    tip.amount_cents = amount_cents
    tip.platform_fee_cents = split.platform_fee_cents
    tip.operator_amount_cents = split.operator_amount_cents
    tip.currency = currency.lower()
    await db.flush()

    logger.info(
        "Tip %s from webhook: intent=%s, amount=%d %s",
        action,
        payment_intent_id,
        amount_cents,
        currency,
    )
    return tip


async def set_tip_status(
    db: AsyncSession,
    payment_intent_id: str,
    status: TipStatus,
) -> int:
    """Set the status of the tip for a PaymentIntent unconditionally.

    Returns the number of rows updated (0 when no tip was recorded).
    """
    result = await db.execute(
        update(Tip)
        .where(Tip.stripe_payment_intent_id == payment_intent_id)
        .values(status=status.value, updated_at=datetime.now(tz=timezone.utc))
    )
    logger.info(
        "Tip status set to %s: intent=%s, rows=%d",
        status.value,
        payment_intent_id,
        result.rowcount,
    )
    return result.rowcount


# ---------------------------------------------------------------------------
# Statistics
# ---------------------------------------------------------------------------

async def get_vehicle_tip_stats(
    db: AsyncSession,
    vehicle_id: uuid.UUID,
) -> VehicleTipStats:
    """Totals over succeeded tips for a vehicle.

    Raises:
        NotFound: If the vehicle does not exist.
    """
    vehicle = await db.get(Vehicle, vehicle_id)
    if vehicle is None:
        raise NotFound("Vehicle not found")

    result = await db.execute(
        select(
            func.count(Tip.id),
            func.coalesce(func.sum(Tip.amount_cents), 0),
            func.coalesce(func.sum(Tip.platform_fee_cents), 0),
            func.coalesce(func.sum(Tip.operator_amount_cents), 0),
        ).where(
            Tip.vehicle_id == vehicle_id,
            Tip.status == TipStatus.SUCCEEDED.value,
        )
    )
    count, amount, fee, operator = result.one()

    return VehicleTipStats(
        vehicle_id=vehicle_id,
        total_tips=int(count),
        total_amount_cents=int(amount),
        platform_fee_cents=int(fee),
        operator_amount_cents=int(operator),
    )
