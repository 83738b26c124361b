"""
Contact Repository - Data Access Layer for Contact model.
"""
from typing import Optional

from sqlalchemy import select, exists
from sqlalchemy.ext.asyncio import AsyncSession

from estate_crm.models.contact import Contact
from estate_crm.models.lead import Lead


class ContactRepository:
    """Repository for Contact CRUD operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(self, contact: Contact) -> Contact:
        self.db.add(contact)
        await self.db.flush()
        await self.db.refresh(contact)
        return contact

    async def get_by_id(self, contact_id: int) -> Optional[Contact]:
        result = await self.db.execute(select(Contact).where(Contact.id == contact_id))
        return result.scalar_one_or_none()

    async def exists(self, contact_id: int) -> bool:
        result = await self.db.execute(select(Contact.id).where(Contact.id == contact_id))
        return result.scalar_one_or_none() is not None

    async def get_all(self, offset: int = 0, limit: int = 50) -> list[Contact]:
        stmt = select(Contact).order_by(Contact.created_at.desc()).offset(offset).limit(limit)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def get_all_for_agent(self, user_id: int, offset: int = 0, limit: int = 50) -> list[Contact]:
        """Contacts that have at least one lead assigned to the given agent."""
        stmt = (
            select(Contact)
            .where(exists().where(Lead.contact_id == Contact.id, Lead.assigned_to_id == user_id))
            .order_by(Contact.created_at.desc())
            .offset(offset)
            .limit(limit)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def is_assigned_to(self, contact_id: int, user_id: int) -> bool:
        """True if any lead for this contact is assigned to the user."""
        stmt = select(
            exists().where(Lead.contact_id == contact_id, Lead.assigned_to_id == user_id)
        )
        result = await self.db.execute(stmt)
        return bool(result.scalar())

    async def save(self, contact: Contact) -> Contact:
        await self.db.flush()
        await self.db.refresh(contact)
        return contact

    async def delete(self, contact: Contact) -> None:
        await self.db.delete(contact)
        await self.db.flush()
