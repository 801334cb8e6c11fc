"""
SQLAlchemy model for transport routes.
"""

from sqlalchemy import Boolean, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, TimestampMixin, UUIDPrimaryKeyMixin


class Route(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "routes"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default="true"
    )

    vehicles: Mapped[list["Vehicle"]] = relationship(
        "Vehicle", back_populates="route"
    )

    def __repr__(self) -> str:
        return f"<Route(id={self.id}, name={self.name})>"
