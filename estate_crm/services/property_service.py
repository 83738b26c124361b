"""
PropertyService - the property catalogue.

Status is not client-writable: properties are created Available and only the
deal lifecycle moves them to Sold.
"""
from typing import Optional

from estate_crm.core.logging import get_logger
from estate_crm.core.roles import Claims
from estate_crm.models.property import Property, PropertyStatus
from estate_crm.repositories.deal_repo import DealRepository
from estate_crm.repositories.property_repo import PropertyRepository
from estate_crm.schemas.property import PropertyCreate, PropertyUpdate
from estate_crm.services.errors import BusinessRuleViolation, NotFoundError, translate_store_errors
from estate_crm.services.permissions import Action, PermissionGuard, ResourceKind

logger = get_logger(__name__)


class PropertyService:
    def __init__(self, property_repo: PropertyRepository, deal_repo: DealRepository, guard: PermissionGuard):
        self.repo = property_repo
        self.deal_repo = deal_repo
        self.guard = guard

    async def create_property(self, actor: Claims, data: PropertyCreate) -> Property:
        self.guard.ensure(actor, Action.CREATE, ResourceKind.PROPERTY)
        prop = Property(**data.model_dump(), status=PropertyStatus.AVAILABLE)
        with translate_store_errors("property write"):
            prop = await self.repo.create(prop)
        logger.info("property created", property_id=prop.id)
        return prop

    async def get_properties(
        self,
        actor: Claims,
        status: Optional[PropertyStatus] = None,
        offset: int = 0,
        limit: int = 50,
    ) -> list[Property]:
        self.guard.ensure(actor, Action.READ, ResourceKind.PROPERTY)
        with translate_store_errors("property listing"):
            return await self.repo.get_all(status=status, offset=offset, limit=limit)

    async def get_property(self, actor: Claims, property_id: int) -> Property:
        self.guard.ensure(actor, Action.READ, ResourceKind.PROPERTY)
        return await self._load(property_id)

    async def update_property(self, actor: Claims, property_id: int, data: PropertyUpdate) -> Property:
        self.guard.ensure(actor, Action.UPDATE, ResourceKind.PROPERTY)
        prop = await self._load(property_id)
        for field, value in data.model_dump(exclude_unset=True).items():
            setattr(prop, field, value)
        with translate_store_errors("property write", property_id=property_id):
            prop = await self.repo.save(prop)
        logger.info("property updated", property_id=property_id)
        return prop

    async def delete_property(self, actor: Claims, property_id: int) -> None:
        self.guard.ensure(actor, Action.DELETE, ResourceKind.PROPERTY)
        prop = await self._load(property_id)
        with translate_store_errors("property delete", property_id=property_id):
            if await self.deal_repo.has_any_deal_for_property(property_id):
                raise BusinessRuleViolation("property is referenced by a deal", property_id=property_id)
            await self.repo.delete(prop)
        logger.info("property deleted", property_id=property_id)

    async def _load(self, property_id: int) -> Property:
        with translate_store_errors("property lookup", property_id=property_id):
            prop = await self.repo.get_by_id(property_id)
        if prop is None:
            raise NotFoundError(f"Property {property_id} not found", property_id=property_id)
        return prop
