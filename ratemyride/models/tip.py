"""
SQLAlchemy model for tips.

One row per Stripe PaymentIntent. Rows are created by the client recording
a pending tip or, as a fallback, by the first ``payment_intent.succeeded``
webhook. Only webhook reconciliation changes ``status``; rows are never
deleted.
"""

import enum
import uuid
from typing import Optional

from sqlalchemy import BigInteger, CheckConstraint, ForeignKey, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, TimestampMixin, UUIDPrimaryKeyMixin


class TipStatus(str, enum.Enum):
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELED = "canceled"


class Tip(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "tips"
    __table_args__ = (
        CheckConstraint(
            "amount_cents = platform_fee_cents + operator_amount_cents",
            name="ck_tips_amount_split",
        ),
    )

    stripe_payment_intent_id: Mapped[str] = mapped_column(
        String(255), unique=True, nullable=False
    )
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=TipStatus.PENDING.value,
        server_default=TipStatus.PENDING.value,
    )
    vehicle_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("vehicles.id", ondelete="RESTRICT"),
        nullable=False,
    )
    route_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), nullable=True
    )
    rating_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), nullable=True
    )
    amount_cents: Mapped[int] = mapped_column(BigInteger, nullable=False)
    platform_fee_cents: Mapped[int] = mapped_column(BigInteger, nullable=False)
    operator_amount_cents: Mapped[int] = mapped_column(BigInteger, nullable=False)
    currency: Mapped[str] = mapped_column(
        String(3), nullable=False, default="usd", server_default="usd"
    )
    device_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    # Relationships
    vehicle: Mapped["Vehicle"] = relationship("Vehicle", back_populates="tips")

    def __repr__(self) -> str:
        return (
            f"<Tip(id={self.id}, intent={self.stripe_payment_intent_id}, "
            f"amount={self.amount_cents}, status={self.status})>"
        )
