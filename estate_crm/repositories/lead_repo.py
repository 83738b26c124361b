"""
Lead Repository - Data Access Layer for Lead model.
"""
from typing import Optional

from sqlalchemy import select, func, exists
from sqlalchemy.ext.asyncio import AsyncSession

from estate_crm.models.contact import Contact
from estate_crm.models.lead import Lead, LeadStatus, LeadSource
from estate_crm.models.user import User


class LeadRepository:
    """Repository for Lead CRUD operations and lead-side existence queries."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(self, lead: Lead) -> Lead:
        """Create a new lead."""
        self.db.add(lead)
        await self.db.flush()
        await self.db.refresh(lead)
        return lead

    async def get_by_id(self, lead_id: int) -> Optional[Lead]:
        """Get lead by ID."""
        result = await self.db.execute(select(Lead).where(Lead.id == lead_id))
        return result.scalar_one_or_none()

    async def get_all(
        self,
        assigned_to_id: Optional[int] = None,
        status_id: Optional[int] = None,
        offset: int = 0,
        limit: int = 50,
    ) -> list[Lead]:
        """Get leads with optional filtering and pagination."""
        stmt = select(Lead)
        if assigned_to_id is not None:
            stmt = stmt.where(Lead.assigned_to_id == assigned_to_id)
        if status_id is not None:
            stmt = stmt.where(Lead.status_id == status_id)
        stmt = stmt.order_by(Lead.created_at.desc()).offset(offset).limit(limit)

        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def save(self, lead: Lead) -> Lead:
        """Save lead changes."""
        await self.db.flush()
        await self.db.refresh(lead)
        return lead

    async def delete(self, lead: Lead) -> None:
        await self.db.delete(lead)
        await self.db.flush()

    # ──────────────────────────────────────────────
    # Lookups
    # ──────────────────────────────────────────────

    async def get_status(self, status_id: int) -> Optional[LeadStatus]:
        result = await self.db.execute(select(LeadStatus).where(LeadStatus.id == status_id))
        return result.scalar_one_or_none()

    async def source_exists(self, source_id: int) -> bool:
        result = await self.db.execute(select(LeadSource.id).where(LeadSource.id == source_id))
        return result.scalar_one_or_none() is not None

    # ──────────────────────────────────────────────
    # Existence queries used by the lifecycle rules
    # ──────────────────────────────────────────────

    async def has_open_lead_for_contact(self, contact_id: int) -> bool:
        stmt = select(exists().where(Lead.contact_id == contact_id, Lead.is_open.is_(True)))
        result = await self.db.execute(stmt)
        return bool(result.scalar())

    async def has_open_lead_for_property(self, property_id: int) -> bool:
        stmt = select(exists().where(Lead.property_id == property_id, Lead.is_open.is_(True)))
        result = await self.db.execute(stmt)
        return bool(result.scalar())

    # ──────────────────────────────────────────────
    # Aggregates
    # ──────────────────────────────────────────────

    async def count_leads_by_status_for_user(self, user_id: int) -> dict[str, int]:
        """Lead counts keyed by status name for one assignee. Missing statuses are absent."""
        stmt = (
            select(LeadStatus.name, func.count(Lead.id))
            .join(Lead, Lead.status_id == LeadStatus.id)
            .where(Lead.assigned_to_id == user_id)
            .group_by(LeadStatus.name)
        )
        result = await self.db.execute(stmt)
        return {name: count for name, count in result.all()}

    async def get_source_lead_rows(self) -> list[tuple]:
        """One row per lead with contact, source, assignee and status names."""
        stmt = (
            select(
                Lead.id,
                Lead.created_at,
                Contact.first_name,
                Contact.last_name,
                Contact.primary_phone,
                Contact.email,
                LeadSource.name,
                User.username,
                LeadStatus.name,
            )
            .join(Contact, Lead.contact_id == Contact.id)
            .join(LeadSource, Lead.source_id == LeadSource.id)
            .join(User, Lead.assigned_to_id == User.id)
            .join(LeadStatus, Lead.status_id == LeadStatus.id)
            .order_by(Lead.created_at.desc())
        )
        result = await self.db.execute(stmt)
        return [tuple(row) for row in result.all()]
