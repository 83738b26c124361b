"""
Deal model - a committed sale created from a lead.
"""
import enum
from datetime import datetime, UTC
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import Integer, String, Numeric, DateTime, Enum as SAEnum, ForeignKey, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from estate_crm.core.base import Base

if TYPE_CHECKING:
    from estate_crm.models.lead import Lead


class DealStatus(str, enum.Enum):
    OPEN = "Open"
    NEGOTIATION = "Negotiation"
    CLOSED_WON = "Closed-Won"
    CLOSED_LOST = "Closed-Lost"


# Deals in these statuses no longer hold their property
TERMINAL_DEAL_STATUSES = frozenset({DealStatus.CLOSED_WON, DealStatus.CLOSED_LOST})

DEFAULT_DEAL_STAGES = ("Prospecting", "Site Visit", "Negotiation", "Documentation", "Closing")


class DealStage(Base):
    """Pipeline stage lookup; a deal may sit in no stage at all."""
    __tablename__ = "deal_stages"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)


class Deal(Base):
    __tablename__ = "deals"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    lead_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("leads.id", ondelete="CASCADE"), nullable=False, index=True
    )
    property_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("properties.id"), nullable=False, index=True
    )
    stage_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("deal_stages.id"), nullable=True, index=True
    )
    deal_status: Mapped[DealStatus] = mapped_column(
        SAEnum(DealStatus, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=DealStatus.OPEN,
    )
    deal_amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    closing_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Owner: the user who recorded the deal
    created_by: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
    )

    lead: Mapped["Lead"] = relationship("Lead")
