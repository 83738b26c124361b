"""
Deal Repository - Data Access Layer for Deal model.
"""
from decimal import Decimal
from typing import Optional

from sqlalchemy import select, func, exists
from sqlalchemy.ext.asyncio import AsyncSession

from estate_crm.models.deal import Deal, DealStage, DealStatus, TERMINAL_DEAL_STATUSES
from estate_crm.models.lead import Lead, LeadSource
from estate_crm.models.user import User


class DealRepository:
    """Repository for Deal CRUD operations and sales aggregates."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(self, deal: Deal) -> Deal:
        self.db.add(deal)
        await self.db.flush()
        await self.db.refresh(deal)
        return deal

    async def get_by_id(self, deal_id: int) -> Optional[Deal]:
        result = await self.db.execute(select(Deal).where(Deal.id == deal_id))
        return result.scalar_one_or_none()

    async def get_all(
        self,
        created_by: Optional[int] = None,
        deal_status: Optional[DealStatus] = None,
        offset: int = 0,
        limit: int = 50,
    ) -> list[Deal]:
        stmt = select(Deal)
        if created_by is not None:
            stmt = stmt.where(Deal.created_by == created_by)
        if deal_status:
            stmt = stmt.where(Deal.deal_status == deal_status)
        stmt = stmt.order_by(Deal.created_at.desc()).offset(offset).limit(limit)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def save(self, deal: Deal) -> Deal:
        await self.db.flush()
        await self.db.refresh(deal)
        return deal

    async def delete(self, deal: Deal) -> None:
        await self.db.delete(deal)
        await self.db.flush()

    async def stage_exists(self, stage_id: int) -> bool:
        result = await self.db.execute(select(DealStage.id).where(DealStage.id == stage_id))
        return result.scalar_one_or_none() is not None

    async def has_open_deal_for_property(self, property_id: int) -> bool:
        stmt = select(
            exists().where(
                Deal.property_id == property_id,
                Deal.deal_status.notin_(list(TERMINAL_DEAL_STATUSES)),
            )
        )
        result = await self.db.execute(stmt)
        return bool(result.scalar())

    async def has_any_deal_for_property(self, property_id: int) -> bool:
        stmt = select(exists().where(Deal.property_id == property_id))
        result = await self.db.execute(stmt)
        return bool(result.scalar())

    # ──────────────────────────────────────────────
    # Sales aggregates (Closed-Won only)
    # ──────────────────────────────────────────────

    async def get_employee_sales_rows(self) -> list[tuple[int, str, int, Decimal]]:
        """(user_id, username, deal count, total amount) per assigned agent."""
        total = func.coalesce(func.sum(Deal.deal_amount), 0)
        stmt = (
            select(User.id, User.username, func.count(Deal.id), total)
            .join(Lead, Deal.lead_id == Lead.id)
            .join(User, Lead.assigned_to_id == User.id)
            .where(Deal.deal_status == DealStatus.CLOSED_WON)
            .group_by(User.id, User.username)
            .order_by(total.desc())
        )
        result = await self.db.execute(stmt)
        return [tuple(row) for row in result.all()]

    async def get_source_sales_rows(self) -> list[tuple[str, int, Decimal]]:
        """(source name, deal count, total amount) per lead source."""
        total = func.coalesce(func.sum(Deal.deal_amount), 0)
        stmt = (
            select(LeadSource.name, func.count(Deal.id), total)
            .join(Lead, Deal.lead_id == Lead.id)
            .join(LeadSource, Lead.source_id == LeadSource.id)
            .where(Deal.deal_status == DealStatus.CLOSED_WON)
            .group_by(LeadSource.name)
            .order_by(total.desc())
        )
        result = await self.db.execute(stmt)
        return [tuple(row) for row in result.all()]

    async def get_sales_totals_for_user(self, user_id: int) -> tuple[int, Decimal]:
        """(deal count, total amount) of Closed-Won deals on leads assigned to the user."""
        stmt = (
            select(func.count(Deal.id), func.coalesce(func.sum(Deal.deal_amount), 0))
            .join(Lead, Deal.lead_id == Lead.id)
            .where(Lead.assigned_to_id == user_id, Deal.deal_status == DealStatus.CLOSED_WON)
        )
        result = await self.db.execute(stmt)
        count, total = result.one()
        return count, Decimal(str(total))

    async def get_pipeline_rows(self) -> list[tuple[Optional[str], int, Decimal]]:
        """(stage name, deal count, total amount) per stage; unstaged deals group under None."""
        total = func.coalesce(func.sum(Deal.deal_amount), 0)
        stmt = (
            select(DealStage.name, func.count(Deal.id), total)
            .select_from(Deal)
            .outerjoin(DealStage, Deal.stage_id == DealStage.id)
            .group_by(DealStage.id, DealStage.name)
            .order_by(DealStage.id.asc().nulls_last())
        )
        result = await self.db.execute(stmt)
        return [tuple(row) for row in result.all()]
