"""
Vehicle API Routes
==================

  GET /api/v1/vehicles/{vehicle_id}/tips/stats  -- Succeeded-tip totals
"""

from __future__ import annotations

import uuid

from fastapi import APIRouter

from ratemyride.api.deps import DBSession
from ratemyride.api.schemas.tip import VehicleTipStatsOut
from ratemyride.services import tipService

router = APIRouter(prefix="/vehicles", tags=["Vehicles"])


@router.get(
    "/{vehicle_id}/tips/stats",
    response_model=VehicleTipStatsOut,
    summary="Tip totals for a vehicle",
    description=(
        "Counts succeeded tips for the vehicle and sums the gross amount, "
        "platform fee and operator payout. Pending, failed and canceled "
        "tips are excluded."
    ),
)
async def get_vehicle_tip_stats(
    vehicle_id: uuid.UUID,
    db: DBSession,
) -> VehicleTipStatsOut:
    stats = await tipService.get_vehicle_tip_stats(db, vehicle_id)
    return VehicleTipStatsOut.model_validate(stats)
