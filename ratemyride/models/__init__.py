"""
RateMyRide SQLAlchemy Models
============================

Central import point for all ORM models. Import ``Base`` from here for the
``create_all`` convenience in tests.

Usage::

    from ratemyride.models import Base, Tip, TipStatus, Vehicle
"""

# -- Base & Mixins --
from .base import Base, TimestampMixin, UUIDPrimaryKeyMixin

# -- Fleet --
from .route import Route
from .vehicle import Vehicle

# -- Tips --
from .tip import Tip, TipStatus

# -- Reference data --
from .country import Country

__all__ = [
    "Base",
    "TimestampMixin",
    "UUIDPrimaryKeyMixin",
    "Route",
    "Vehicle",
    "Tip",
    "TipStatus",
    "Country",
]
