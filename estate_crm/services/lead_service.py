"""
LeadService - owns the business rules for the lead lifecycle.

Rules enforced here (NOT in the API layer):
- Only Reception creates, updates and deletes leads
- Required ids are positive and reference existing rows, checked in a fixed order
- At most one open lead per contact
- A property may be held by one open lead or open deal at a time

The two uniqueness rules are checked up front and backed by partial unique
indexes on ``leads``; a concurrent insert that slips past the read-side check
is rejected by the index and reported the same way.
"""
from typing import Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from estate_crm.core.logging import get_logger
from estate_crm.core.roles import Claims, RoleConfig
from estate_crm.models.lead import Lead, LeadStatus, is_open_status
from estate_crm.repositories.contact_repo import ContactRepository
from estate_crm.repositories.lead_repo import LeadRepository
from estate_crm.repositories.property_repo import PropertyRepository
from estate_crm.repositories.user_repo import UserRepository
from estate_crm.schemas.lead import LeadCreate, LeadUpdate
from estate_crm.services.availability import PropertyAvailabilityIndex
from estate_crm.services.errors import (
    BusinessRuleViolation,
    NotFoundError,
    StoreFailure,
    ValidationError,
    translate_store_errors,
)
from estate_crm.services.permissions import Action, PermissionGuard, ResourceKind

logger = get_logger(__name__)

CONTACT_HAS_OPEN_LEAD = "contact already has an active lead"
PROPERTY_COMMITTED = "property already committed"

REQUIRED_LEAD_FIELDS = ("contact_id", "source_id", "status_id", "assigned_to_id")


class LeadLifecycleValidator:
    """Admission rules for new leads and foreign-key rules for edits."""

    def __init__(
        self,
        guard: PermissionGuard,
        lead_repo: LeadRepository,
        contact_repo: ContactRepository,
        property_repo: PropertyRepository,
        user_repo: UserRepository,
        availability: PropertyAvailabilityIndex,
    ):
        self.guard = guard
        self.lead_repo = lead_repo
        self.contact_repo = contact_repo
        self.property_repo = property_repo
        self.user_repo = user_repo
        self.availability = availability

    async def validate_create(self, actor: Claims, data: LeadCreate) -> Lead:
        """
        Run every admission check in order and return an unsaved Lead.
        The first failing check raises; nothing is aggregated.
        """
        self.guard.ensure(actor, Action.CREATE, ResourceKind.LEAD)

        for field in REQUIRED_LEAD_FIELDS:
            value = getattr(data, field)
            if value is None or value <= 0:
                raise ValidationError(f"{field} is required", field=field, value=value)

        with translate_store_errors("lead validation"):
            if not await self.contact_repo.exists(data.contact_id):
                raise ValidationError(
                    f"invalid contact_id: {data.contact_id}", field="contact_id", value=data.contact_id
                )
            if not await self.user_repo.exists(data.assigned_to_id):
                raise ValidationError(
                    f"invalid assigned_to_id: {data.assigned_to_id}",
                    field="assigned_to_id",
                    value=data.assigned_to_id,
                )
            status = await self._resolve_status(data.status_id)
            await self._ensure_source(data.source_id)

        await self._ensure_no_open_lead(data.contact_id)

        property_id = data.property_id if data.property_id and data.property_id > 0 else None
        if property_id is not None:
            await self._ensure_property_available(property_id)

        return Lead(
            contact_id=data.contact_id,
            property_id=property_id,
            source_id=data.source_id,
            status_id=status.id,
            assigned_to_id=data.assigned_to_id,
            is_open=is_open_status(status.name),
            notes=data.notes,
        )

    async def validate_update(self, existing: Lead, incoming: LeadUpdate, actor: Claims) -> Lead:
        """
        Apply ``incoming`` to ``existing`` after re-resolving any changed reference.
        Open-lead uniqueness is an admission rule and is not re-checked here;
        the one exception is an open lead moved onto a different property,
        which must find that property uncommitted.
        """
        self.guard.ensure(actor, Action.UPDATE, ResourceKind.LEAD, existing.assigned_to_id)

        changes = incoming.model_dump(exclude_unset=True)

        with translate_store_errors("lead validation", lead_id=existing.id):
            if "assigned_to_id" in changes and changes["assigned_to_id"] != existing.assigned_to_id:
                assigned_to_id = changes["assigned_to_id"]
                if assigned_to_id is None or assigned_to_id <= 0 or not await self.user_repo.exists(assigned_to_id):
                    raise ValidationError(
                        f"invalid assigned_to_id: {assigned_to_id}",
                        field="assigned_to_id",
                        value=assigned_to_id,
                    )
                existing.assigned_to_id = assigned_to_id

            if "status_id" in changes and changes["status_id"] != existing.status_id:
                status = await self._resolve_status(changes["status_id"])
                existing.status_id = status.id
                existing.is_open = is_open_status(status.name)

            if "source_id" in changes and changes["source_id"] != existing.source_id:
                await self._ensure_source(changes["source_id"])
                existing.source_id = changes["source_id"]

            if "property_id" in changes and changes["property_id"] != existing.property_id:
                property_id = changes["property_id"]
                if property_id is not None and property_id > 0:
                    if not await self.property_repo.exists(property_id):
                        raise ValidationError(
                            f"invalid property_id: {property_id}", field="property_id", value=property_id
                        )
                    # Moving an open lead onto a property is admission for that property
                    if existing.is_open and await self.availability.is_committed(property_id):
                        raise BusinessRuleViolation(PROPERTY_COMMITTED, property_id=property_id)
                    existing.property_id = property_id
                else:
                    existing.property_id = None

        if "notes" in changes:
            existing.notes = changes["notes"]

        return existing

    async def _resolve_status(self, status_id: Optional[int]) -> LeadStatus:
        status = await self.lead_repo.get_status(status_id) if status_id and status_id > 0 else None
        if status is None:
            raise ValidationError(f"invalid status_id: {status_id}", field="status_id", value=status_id)
        return status

    async def _ensure_source(self, source_id: Optional[int]) -> None:
        if not source_id or source_id <= 0 or not await self.lead_repo.source_exists(source_id):
            raise ValidationError(f"invalid source_id: {source_id}", field="source_id", value=source_id)

    async def _ensure_no_open_lead(self, contact_id: int) -> None:
        try:
            has_open_lead = await self.lead_repo.has_open_lead_for_contact(contact_id)
        except SQLAlchemyError as exc:
            logger.error("failed to check for existing open lead", contact_id=contact_id, error=str(exc))
            raise StoreFailure("could not verify lead status", contact_id=contact_id) from exc
        if has_open_lead:
            raise BusinessRuleViolation(CONTACT_HAS_OPEN_LEAD, contact_id=contact_id)

    async def _ensure_property_available(self, property_id: int) -> None:
        try:
            if not await self.property_repo.exists(property_id):
                raise ValidationError(
                    f"invalid property_id: {property_id}", field="property_id", value=property_id
                )
            committed = await self.availability.is_committed(property_id)
        except SQLAlchemyError as exc:
            logger.error("failed to check property availability", property_id=property_id, error=str(exc))
            raise StoreFailure("could not verify property availability", property_id=property_id) from exc
        if committed:
            raise BusinessRuleViolation(PROPERTY_COMMITTED, property_id=property_id)


def _open_lead_conflict(exc: IntegrityError, contact_id: int, property_id: Optional[int]) -> Exception:
    """Map a partial unique index violation back to the rule it protects."""
    message = str(exc.orig)
    if "property" in message:
        return BusinessRuleViolation(PROPERTY_COMMITTED, property_id=property_id)
    if "contact" in message:
        return BusinessRuleViolation(CONTACT_HAS_OPEN_LEAD, contact_id=contact_id)
    return StoreFailure("lead write failed", contact_id=contact_id)


class LeadService:
    def __init__(
        self,
        lead_repo: LeadRepository,
        validator: LeadLifecycleValidator,
        guard: PermissionGuard,
        roles: RoleConfig,
    ):
        self.repo = lead_repo
        self.validator = validator
        self.guard = guard
        self.roles = roles

    async def create_lead(self, actor: Claims, data: LeadCreate) -> Lead:
        lead = await self.validator.validate_create(actor, data)
        contact_id, property_id = lead.contact_id, lead.property_id

        try:
            async with self.repo.db.begin_nested():
                lead = await self.repo.create(lead)
        except IntegrityError as exc:
            logger.warning(
                "lead insert rejected by open lead index",
                contact_id=contact_id,
                property_id=property_id,
            )
            raise _open_lead_conflict(exc, contact_id, property_id) from exc
        except SQLAlchemyError as exc:
            raise StoreFailure("lead write failed", contact_id=contact_id) from exc

        logger.info("lead created", lead_id=lead.id, contact_id=lead.contact_id, assigned_to_id=lead.assigned_to_id)
        return lead

    async def get_leads(
        self,
        actor: Claims,
        status_id: Optional[int] = None,
        offset: int = 0,
        limit: int = 50,
    ) -> list[Lead]:
        """Reception sees every lead; a Sales Agent only the ones assigned to them."""
        self.guard.ensure(actor, Action.READ, ResourceKind.LEAD)
        assigned_to_id = actor.user_id if self.roles.is_sales_agent(actor) else None
        with translate_store_errors("lead listing"):
            return await self.repo.get_all(
                assigned_to_id=assigned_to_id, status_id=status_id, offset=offset, limit=limit
            )

    async def get_lead(self, actor: Claims, lead_id: int) -> Lead:
        lead = await self._load(lead_id)
        self.guard.ensure(actor, Action.READ, ResourceKind.LEAD, lead.assigned_to_id)
        return lead

    async def update_lead(self, actor: Claims, lead_id: int, data: LeadUpdate) -> Lead:
        lead = await self._load(lead_id)
        lead = await self.validator.validate_update(lead, data, actor)
        contact_id, property_id = lead.contact_id, lead.property_id

        try:
            async with self.repo.db.begin_nested():
                lead = await self.repo.save(lead)
        except IntegrityError as exc:
            raise _open_lead_conflict(exc, contact_id, property_id) from exc
        except SQLAlchemyError as exc:
            raise StoreFailure("lead write failed", lead_id=lead_id) from exc

        logger.info("lead updated", lead_id=lead.id, status_id=lead.status_id, is_open=lead.is_open)
        return lead

    async def delete_lead(self, actor: Claims, lead_id: int) -> None:
        lead = await self._load(lead_id)
        self.guard.ensure(actor, Action.DELETE, ResourceKind.LEAD, lead.assigned_to_id)
        with translate_store_errors("lead delete", lead_id=lead_id):
            await self.repo.delete(lead)
        logger.info("lead deleted", lead_id=lead_id)

    async def _load(self, lead_id: int) -> Lead:
        with translate_store_errors("lead lookup", lead_id=lead_id):
            lead = await self.repo.get_by_id(lead_id)
        if lead is None:
            raise NotFoundError(f"Lead {lead_id} not found", lead_id=lead_id)
        return lead
