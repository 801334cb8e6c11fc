"""
SQLAlchemy model for vehicles, the payee target of tips.
"""

import uuid
from typing import Optional

from sqlalchemy import Boolean, ForeignKey, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, TimestampMixin, UUIDPrimaryKeyMixin


class Vehicle(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "vehicles"

    reg_number: Mapped[str] = mapped_column(String(32), nullable=False)
    route_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("routes.id", ondelete="SET NULL"),
        nullable=True,
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default="true"
    )

    # Relationships
    route: Mapped[Optional["Route"]] = relationship("Route", back_populates="vehicles")
    tips: Mapped[list["Tip"]] = relationship("Tip", back_populates="vehicle")

    def __repr__(self) -> str:
        return (
            f"<Vehicle(id={self.id}, reg={self.reg_number}, "
            f"active={self.is_active})>"
        )
