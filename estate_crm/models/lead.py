"""
Lead model and its status/source lookup tables.
"""
import enum
from typing import TYPE_CHECKING
from datetime import datetime, UTC

from sqlalchemy import String, Integer, DateTime, ForeignKey, Boolean, Index, Text, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from estate_crm.core.base import Base

if TYPE_CHECKING:
    from estate_crm.models.contact import Contact
    from estate_crm.models.property import Property
    from estate_crm.models.user import User


class LeadStatusName(str, enum.Enum):
    """Names stored in the lead_statuses lookup table."""
    NEW = "New"
    CONTACTED = "Contacted"
    QUALIFIED = "Qualified"
    CONVERTED = "Converted"
    LOST = "Lost"


# A lead in one of these statuses is still being worked
OPEN_LEAD_STATUSES = frozenset({
    LeadStatusName.NEW,
    LeadStatusName.CONTACTED,
    LeadStatusName.QUALIFIED,
})

TERMINAL_LEAD_STATUSES = frozenset({LeadStatusName.CONVERTED, LeadStatusName.LOST})

DEFAULT_LEAD_SOURCES = ("Walk-in", "Phone Call", "Website", "Referral", "Social Media")


def is_open_status(name: str) -> bool:
    return name in {s.value for s in OPEN_LEAD_STATUSES}


class LeadStatus(Base):
    __tablename__ = "lead_statuses"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(32), unique=True, nullable=False)


class LeadSource(Base):
    __tablename__ = "lead_sources"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)


class Lead(Base):
    """A prospective sale of (optionally) one property to one contact.

    ``is_open`` mirrors whether ``status`` is one of OPEN_LEAD_STATUSES and is
    kept in sync by the lead lifecycle rules. The two partial unique indexes
    below make "one open lead per contact" and "one open lead per property"
    hold even when two requests race past the read-side checks.
    """
    __tablename__ = "leads"
    __table_args__ = (
        Index(
            "uq_leads_open_contact",
            "contact_id",
            unique=True,
            postgresql_where=text("is_open"),
            sqlite_where=text("is_open = 1"),
        ),
        Index(
            "uq_leads_open_property",
            "property_id",
            unique=True,
            postgresql_where=text("is_open AND property_id IS NOT NULL"),
            sqlite_where=text("is_open = 1 AND property_id IS NOT NULL"),
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    contact_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("contacts.id", ondelete="CASCADE"), nullable=False, index=True
    )
    property_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("properties.id", ondelete="SET NULL"), nullable=True, index=True
    )
    source_id: Mapped[int] = mapped_column(Integer, ForeignKey("lead_sources.id"), nullable=False)
    status_id: Mapped[int] = mapped_column(Integer, ForeignKey("lead_statuses.id"), nullable=False)
    assigned_to_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=False, index=True
    )
    is_open: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
    )

    # Relationships
    contact: Mapped["Contact"] = relationship("Contact", back_populates="leads")
    linked_property: Mapped["Property | None"] = relationship("Property")
    status: Mapped["LeadStatus"] = relationship("LeadStatus", lazy="joined")
    source: Mapped["LeadSource"] = relationship("LeadSource", lazy="joined")
    assigned_to: Mapped["User"] = relationship(
        "User", back_populates="assigned_leads", foreign_keys=[assigned_to_id]
    )
