"""
DealService - deal lifecycle rules and the Closed-Won side effect.

- A deal is created from a lead that already has a property
- The deal's property must be the lead's property
- The amount must be positive
- The first move into Closed-Won marks the property Sold

The property update is best effort: it runs in its own SAVEPOINT after the
deal is written, and a failure is logged without undoing the deal.
"""
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from estate_crm.core.logging import get_logger
from estate_crm.core.roles import Claims, RoleConfig
from estate_crm.models.deal import Deal, DealStatus
from estate_crm.models.lead import Lead
from estate_crm.models.property import PropertyStatus
from estate_crm.repositories.deal_repo import DealRepository
from estate_crm.repositories.lead_repo import LeadRepository
from estate_crm.repositories.property_repo import PropertyRepository
from estate_crm.schemas.deal import DealCreate, DealUpdate
from estate_crm.services.errors import (
    BusinessRuleViolation,
    NotFoundError,
    ValidationError,
    translate_store_errors,
)
from estate_crm.services.permissions import Action, PermissionGuard, ResourceKind

logger = get_logger(__name__)


@dataclass(frozen=True)
class PropertyStatusChange:
    """A property status write to apply after the deal itself is stored."""
    property_id: int
    status: PropertyStatus


def _ensure_positive_amount(amount: Optional[Decimal]) -> None:
    if amount is None or amount <= 0:
        raise ValidationError("deal amount must be positive", deal_amount=str(amount))


def _closed_won_transition(previous: Optional[DealStatus], current: DealStatus) -> bool:
    return previous != DealStatus.CLOSED_WON and current == DealStatus.CLOSED_WON


class DealLifecycleValidator:
    def __init__(self, lead_repo: LeadRepository):
        self.lead_repo = lead_repo

    async def validate_and_prepare_create(
        self, data: DealCreate, lead: Optional[Lead] = None
    ) -> tuple[Deal, list[PropertyStatusChange]]:
        """
        Check a new deal against its lead and return it unsaved, together
        with the side effects to apply once it is persisted.

        ``lead`` may be passed in when the caller already loaded it.
        """
        if lead is None:
            with translate_store_errors("deal validation", lead_id=data.lead_id):
                lead = await self.lead_repo.get_by_id(data.lead_id)
        if lead is None:
            raise ValidationError("invalid lead", lead_id=data.lead_id)

        if lead.property_id is None:
            raise BusinessRuleViolation("lead has no property; cannot create deal", lead_id=lead.id)

        if data.property_id != lead.property_id:
            raise ValidationError(
                f"deal property does not match lead property: {data.property_id} vs {lead.property_id}",
                deal_property_id=data.property_id,
                lead_property_id=lead.property_id,
            )

        _ensure_positive_amount(data.deal_amount)

        deal = Deal(
            lead_id=lead.id,
            property_id=data.property_id,
            stage_id=data.stage_id,
            deal_status=data.deal_status,
            deal_amount=data.deal_amount,
            closing_date=data.closing_date,
            notes=data.notes,
        )
        side_effects = []
        if _closed_won_transition(None, data.deal_status):
            side_effects.append(PropertyStatusChange(data.property_id, PropertyStatus.SOLD))
        return deal, side_effects

    def validate_and_prepare_update(
        self, existing: Deal, incoming: DealUpdate
    ) -> tuple[Deal, list[PropertyStatusChange]]:
        """
        Merge ``incoming`` into ``existing``. The Sold side effect is only
        produced when the status moves into Closed-Won from something else,
        so repeating a Closed-Won update is a no-op for the property.
        """
        changes = incoming.model_dump(exclude_unset=True)

        if "deal_amount" in changes:
            _ensure_positive_amount(changes["deal_amount"])

        previous_status = existing.deal_status
        new_status = changes.get("deal_status") or previous_status

        for field, value in changes.items():
            if field == "deal_status" and value is None:
                continue
            setattr(existing, field, value)

        side_effects = []
        if _closed_won_transition(previous_status, new_status):
            side_effects.append(PropertyStatusChange(existing.property_id, PropertyStatus.SOLD))
        return existing, side_effects


class DealService:
    def __init__(
        self,
        deal_repo: DealRepository,
        lead_repo: LeadRepository,
        property_repo: PropertyRepository,
        validator: DealLifecycleValidator,
        guard: PermissionGuard,
        roles: RoleConfig,
    ):
        self.repo = deal_repo
        self.lead_repo = lead_repo
        self.property_repo = property_repo
        self.validator = validator
        self.guard = guard
        self.roles = roles

    async def create_deal(self, actor: Claims, data: DealCreate) -> Deal:
        with translate_store_errors("lead lookup", lead_id=data.lead_id):
            lead = await self.lead_repo.get_by_id(data.lead_id)
        # A Sales Agent may only turn their own lead into a deal
        self.guard.ensure(
            actor, Action.CREATE, ResourceKind.DEAL, lead.assigned_to_id if lead else None
        )

        deal, side_effects = await self.validator.validate_and_prepare_create(data, lead)
        await self._ensure_stage(deal.stage_id)
        deal.created_by = actor.user_id

        with translate_store_errors("deal write", lead_id=data.lead_id):
            deal = await self.repo.create(deal)
        logger.info("deal created", deal_id=deal.id, lead_id=deal.lead_id, deal_status=deal.deal_status.value)

        await self._apply_side_effects(deal.id, side_effects)
        return deal

    async def get_deals(
        self,
        actor: Claims,
        deal_status: Optional[DealStatus] = None,
        offset: int = 0,
        limit: int = 50,
    ) -> list[Deal]:
        """Reception sees every deal; a Sales Agent only the ones they recorded."""
        self.guard.ensure(actor, Action.READ, ResourceKind.DEAL)
        created_by = actor.user_id if self.roles.is_sales_agent(actor) else None
        with translate_store_errors("deal listing"):
            return await self.repo.get_all(
                created_by=created_by, deal_status=deal_status, offset=offset, limit=limit
            )

    async def get_deal(self, actor: Claims, deal_id: int) -> Deal:
        deal = await self._load(deal_id)
        self.guard.ensure(actor, Action.READ, ResourceKind.DEAL, deal.created_by)
        return deal

    async def update_deal(self, actor: Claims, deal_id: int, data: DealUpdate) -> Deal:
        deal = await self._load(deal_id)
        self.guard.ensure(actor, Action.UPDATE, ResourceKind.DEAL, deal.created_by)

        if "stage_id" in data.model_fields_set:
            await self._ensure_stage(data.stage_id)
        deal, side_effects = self.validator.validate_and_prepare_update(deal, data)
        with translate_store_errors("deal write", deal_id=deal_id):
            deal = await self.repo.save(deal)
        logger.info("deal updated", deal_id=deal.id, deal_status=deal.deal_status.value)

        await self._apply_side_effects(deal.id, side_effects)
        return deal

    async def delete_deal(self, actor: Claims, deal_id: int) -> None:
        deal = await self._load(deal_id)
        self.guard.ensure(actor, Action.DELETE, ResourceKind.DEAL, deal.created_by)
        with translate_store_errors("deal delete", deal_id=deal_id):
            await self.repo.delete(deal)
        logger.info("deal deleted", deal_id=deal_id)

    async def _apply_side_effects(self, deal_id: int, side_effects: list[PropertyStatusChange]) -> None:
        """Apply property status changes; failures are logged, never raised."""
        for change in side_effects:
            try:
                async with self.repo.db.begin_nested():
                    prop = await self.property_repo.set_status(change.property_id, change.status)
                    if prop is None:
                        raise LookupError(f"property {change.property_id} not found")
            except (SQLAlchemyError, LookupError) as exc:
                logger.warning(
                    "property status side effect failed",
                    deal_id=deal_id,
                    property_id=change.property_id,
                    status=change.status.value,
                    error=str(exc),
                )
                continue
            logger.info(
                "property status updated",
                deal_id=deal_id,
                property_id=change.property_id,
                status=change.status.value,
            )

    async def _ensure_stage(self, stage_id: Optional[int]) -> None:
        if stage_id is None:
            return
        with translate_store_errors("deal stage lookup", stage_id=stage_id):
            known = stage_id > 0 and await self.repo.stage_exists(stage_id)
        if not known:
            raise ValidationError(f"invalid stage_id: {stage_id}", field="stage_id", value=stage_id)

    async def _load(self, deal_id: int) -> Deal:
        with translate_store_errors("deal lookup", deal_id=deal_id):
            deal = await self.repo.get_by_id(deal_id)
        if deal is None:
            raise NotFoundError(f"Deal {deal_id} not found", deal_id=deal_id)
        return deal
