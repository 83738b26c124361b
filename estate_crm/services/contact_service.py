"""
ContactService - contacts are created and managed by Reception; a Sales Agent
sees the contacts behind the leads assigned to them.
"""
from estate_crm.core.logging import get_logger
from estate_crm.core.roles import Claims, RoleConfig
from estate_crm.models.contact import Contact
from estate_crm.repositories.contact_repo import ContactRepository
from estate_crm.schemas.contact import ContactCreate, ContactUpdate
from estate_crm.services.errors import NotFoundError, ValidationError, translate_store_errors
from estate_crm.services.permissions import Action, PermissionGuard, ResourceKind

logger = get_logger(__name__)

REQUIRED_CONTACT_FIELDS = ("first_name", "primary_phone")


class ContactService:
    def __init__(self, contact_repo: ContactRepository, guard: PermissionGuard, roles: RoleConfig):
        self.repo = contact_repo
        self.guard = guard
        self.roles = roles

    async def create_contact(self, actor: Claims, data: ContactCreate) -> Contact:
        self.guard.ensure(actor, Action.CREATE, ResourceKind.CONTACT)
        contact = Contact(**data.model_dump(), created_by=actor.user_id)
        with translate_store_errors("contact write"):
            contact = await self.repo.create(contact)
        logger.info("contact created", contact_id=contact.id, created_by=actor.user_id)
        return contact

    async def get_contacts(self, actor: Claims, offset: int = 0, limit: int = 50) -> list[Contact]:
        self.guard.ensure(actor, Action.READ, ResourceKind.CONTACT)
        with translate_store_errors("contact listing"):
            if self.roles.is_sales_agent(actor):
                return await self.repo.get_all_for_agent(actor.user_id, offset=offset, limit=limit)
            return await self.repo.get_all(offset=offset, limit=limit)

    async def get_contact(self, actor: Claims, contact_id: int) -> Contact:
        contact = await self._load(contact_id)
        owner = await self._read_owner(actor, contact)
        self.guard.ensure(actor, Action.READ, ResourceKind.CONTACT, owner)
        return contact

    async def update_contact(self, actor: Claims, contact_id: int, data: ContactUpdate) -> Contact:
        contact = await self._load(contact_id)
        self.guard.ensure(actor, Action.UPDATE, ResourceKind.CONTACT, contact.created_by)
        changes = data.model_dump(exclude_unset=True)
        for field in REQUIRED_CONTACT_FIELDS:
            if field in changes and changes[field] is None:
                raise ValidationError(f"{field} is required", field=field, value=None)
        for field, value in changes.items():
            setattr(contact, field, value)
        with translate_store_errors("contact write", contact_id=contact_id):
            contact = await self.repo.save(contact)
        logger.info("contact updated", contact_id=contact_id)
        return contact

    async def delete_contact(self, actor: Claims, contact_id: int) -> None:
        contact = await self._load(contact_id)
        self.guard.ensure(actor, Action.DELETE, ResourceKind.CONTACT, contact.created_by)
        with translate_store_errors("contact delete", contact_id=contact_id):
            await self.repo.delete(contact)
        logger.info("contact deleted", contact_id=contact_id)

    async def _read_owner(self, actor: Claims, contact: Contact) -> int:
        """Owner for read checks: an agent owns a contact through a lead assigned to them."""
        if self.roles.is_sales_agent(actor):
            with translate_store_errors("contact lookup", contact_id=contact.id):
                if await self.repo.is_assigned_to(contact.id, actor.user_id):
                    return actor.user_id
        return contact.created_by or 0

    async def _load(self, contact_id: int) -> Contact:
        with translate_store_errors("contact lookup", contact_id=contact_id):
            contact = await self.repo.get_by_id(contact_id)
        if contact is None:
            raise NotFoundError(f"Contact {contact_id} not found", contact_id=contact_id)
        return contact
