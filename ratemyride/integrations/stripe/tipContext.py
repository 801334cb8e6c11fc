"""
Tip Context -- PaymentIntent metadata contract
===============================================

Stripe holds no foreign keys into our schema, so everything the webhook
needs to rebuild a tip row travels as PaymentIntent metadata. This module is
the single place that writes and reads that metadata.

Stripe metadata values are strings; absent optional ids are sent as ``""``.

Keys::

    vehicle_id              UUID of the tipped vehicle (required)
    route_id                UUID of the vehicle's route, or ""
    rating_id               UUID of the rating the tip follows, or ""
    platform_fee_cents      integer, as a string
    operator_amount_cents   integer, as a string
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import Any, Mapping, Optional

logger = logging.getLogger(__name__)


def _parse_uuid(value: Any) -> Optional[uuid.UUID]:
    if not value:
        return None
    try:
        return uuid.UUID(str(value))
    except ValueError:
        return None


def _parse_cents(value: Any) -> int:
    try:
        return int(str(value))
    except (TypeError, ValueError):
        return 0


@dataclass(frozen=True)
class TipContext:
    """Reconciliation context attached to a tip PaymentIntent."""

    vehicle_id: uuid.UUID
    platform_fee_cents: int
    operator_amount_cents: int
    route_id: Optional[uuid.UUID] = None
    rating_id: Optional[uuid.UUID] = None

    def to_metadata(self) -> dict[str, str]:
        """Serialize to Stripe metadata (flat string map)."""
        return {
            "vehicle_id": str(self.vehicle_id),
            "rating_id": str(self.rating_id) if self.rating_id else "",
            "route_id": str(self.route_id) if self.route_id else "",
            "platform_fee_cents": str(self.platform_fee_cents),
            "operator_amount_cents": str(self.operator_amount_cents),
        }

    @classmethod
    def from_metadata(
        cls, metadata: Optional[Mapping[str, Any]]
    ) -> Optional["TipContext"]:
        """Rebuild the context from PaymentIntent metadata.

        Returns ``None`` when the metadata carries no usable ``vehicle_id``,
        i.e. the PaymentIntent was not created for a tip. Unparseable fee
        values read as 0 so the caller can detect the broken split.
        """
        if not metadata:
            return None

        vehicle_id = _parse_uuid(metadata.get("vehicle_id"))
        if vehicle_id is None:
            logger.debug("Metadata has no usable vehicle_id: %r", metadata)
            return None

        return cls(
            vehicle_id=vehicle_id,
            platform_fee_cents=_parse_cents(metadata.get("platform_fee_cents")),
            operator_amount_cents=_parse_cents(metadata.get("operator_amount_cents")),
            route_id=_parse_uuid(metadata.get("route_id")),
            rating_id=_parse_uuid(metadata.get("rating_id")),
        )
