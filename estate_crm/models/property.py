"""
Property model - a sellable unit.
"""
import enum
from datetime import datetime, UTC
from decimal import Decimal

from sqlalchemy import String, Integer, Numeric, DateTime, Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column

from estate_crm.core.base import Base


class PropertyStatus(str, enum.Enum):
    """Property availability. Only a deal closing moves a property to SOLD."""
    AVAILABLE = "Available"
    RESERVED = "Reserved"
    SOLD = "Sold"
    OFF_MARKET = "Off-Market"


class Property(Base):
    __tablename__ = "properties"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(256), nullable=False)
    unit_no: Mapped[str | None] = mapped_column(String(32), nullable=True)
    size_sqft: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    price: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    status: Mapped[PropertyStatus] = mapped_column(
        SAEnum(PropertyStatus, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=PropertyStatus.AVAILABLE,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
    )
