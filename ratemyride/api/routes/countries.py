"""
Country API Routes
==================

  GET    /api/v1/countries         -- Active countries, ordered by name
  DELETE /api/v1/countries/cache   -- Drop the cached list
"""

from __future__ import annotations

from fastapi import APIRouter, Response, status

from ratemyride.api.deps import CountryCacheDep, DBSession
from ratemyride.api.schemas.country import CountryOut

router = APIRouter(prefix="/countries", tags=["Countries"])


@router.get("", response_model=list[CountryOut], summary="List active countries")
async def list_countries(db: DBSession, cache: CountryCacheDep) -> list[CountryOut]:
    countries = await cache.get(db)
    return [CountryOut.model_validate(country) for country in countries]


@router.delete(
    "/cache",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Invalidate the country cache",
)
async def invalidate_country_cache(cache: CountryCacheDep) -> Response:
    cache.invalidate()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
