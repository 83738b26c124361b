"""
Property Repository - Data Access Layer for Property model.
"""
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from estate_crm.models.property import Property, PropertyStatus


class PropertyRepository:
    """Repository for Property CRUD operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(self, prop: Property) -> Property:
        self.db.add(prop)
        await self.db.flush()
        await self.db.refresh(prop)
        return prop

    async def get_by_id(self, property_id: int) -> Optional[Property]:
        result = await self.db.execute(select(Property).where(Property.id == property_id))
        return result.scalar_one_or_none()

    async def exists(self, property_id: int) -> bool:
        result = await self.db.execute(select(Property.id).where(Property.id == property_id))
        return result.scalar_one_or_none() is not None

    async def get_all(
        self,
        status: Optional[PropertyStatus] = None,
        offset: int = 0,
        limit: int = 50,
    ) -> list[Property]:
        stmt = select(Property)
        if status:
            stmt = stmt.where(Property.status == status)
        stmt = stmt.order_by(Property.created_at.desc()).offset(offset).limit(limit)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def set_status(self, property_id: int, status: PropertyStatus) -> Optional[Property]:
        """Set the status of a property. Returns None if it does not exist."""
        prop = await self.get_by_id(property_id)
        if prop is None:
            return None
        prop.status = status
        return await self.save(prop)

    async def save(self, prop: Property) -> Property:
        await self.db.flush()
        await self.db.refresh(prop)
        return prop

    async def delete(self, prop: Property) -> None:
        await self.db.delete(prop)
        await self.db.flush()
