"""
Country catalogue cache.

``CountryCache`` is owned by whoever creates it (the FastAPI app keeps one on
``app.state``); there is no module-level cache. The first ``get`` loads the
active countries from the database. When the load fails or returns nothing,
the static fallback list is cached instead. ``invalidate`` forces the next
``get`` to reload.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ratemyride.models import Country

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CountryInfo:
    code: str
    name: str
    flag: str


# Alphabetical; used when the database has no active countries or is down.
FALLBACK_COUNTRIES: tuple[CountryInfo, ...] = (
    CountryInfo(code="BI", name="Burundi", flag="\U0001F1E7\U0001F1EE"),
    CountryInfo(code="ET", name="Ethiopia", flag="\U0001F1EA\U0001F1F9"),
    CountryInfo(code="KE", name="Kenya", flag="\U0001F1F0\U0001F1EA"),
    CountryInfo(code="RW", name="Rwanda", flag="\U0001F1F7\U0001F1FC"),
    CountryInfo(code="SS", name="South Sudan", flag="\U0001F1F8\U0001F1F8"),
    CountryInfo(code="TZ", name="Tanzania", flag="\U0001F1F9\U0001F1FF"),
    CountryInfo(code="UG", name="Uganda", flag="\U0001F1FA\U0001F1EC"),
)


async def load_active_countries(db: AsyncSession) -> list[CountryInfo]:
    result = await db.execute(
        select(Country).where(Country.is_active.is_(True)).order_by(Country.name)
    )
    return [
        CountryInfo(code=row.code, name=row.name, flag=row.flag)
        for row in result.scalars().all()
    ]


class CountryCache:
    """Caller-owned cache of the active country list."""

    def __init__(
        self,
        fallback: Sequence[CountryInfo] = FALLBACK_COUNTRIES,
    ) -> None:
        self._fallback = list(fallback)
        self._countries: Optional[list[CountryInfo]] = None

    @property
    def is_loaded(self) -> bool:
        return self._countries is not None

    async def get(self, db: AsyncSession) -> list[CountryInfo]:
        if self.is_loaded:
            return list(self._countries)

        try:
            countries = await load_active_countries(db)
        except SQLAlchemyError:
            logger.exception("Error fetching countries; using fallback list")
            countries = []
        else:
            if not countries:
                logger.warning("No active countries in the database; using fallback list")

        self._countries = countries or list(self._fallback)
        return list(self._countries)

    def invalidate(self) -> None:
        self._countries = None
        logger.info("Country cache invalidated")
