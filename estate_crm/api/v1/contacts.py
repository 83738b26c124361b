"""
Contact API endpoints.
"""
from fastapi import APIRouter, Depends, Query
from starlette import status

from estate_crm.core.deps import CurrentActor, get_contact_service
from estate_crm.schemas.contact import ContactCreate, ContactResponse, ContactUpdate
from estate_crm.services.contact_service import ContactService

router = APIRouter()


@router.post("", response_model=ContactResponse, status_code=status.HTTP_201_CREATED)
async def create_contact(
    data: ContactCreate,
    actor: CurrentActor,
    svc: ContactService = Depends(get_contact_service),
):
    return await svc.create_contact(actor, data)


@router.get("", response_model=list[ContactResponse])
async def list_contacts(
    actor: CurrentActor,
    page: int = Query(default=1, ge=1, description="Page number"),
    page_size: int = Query(default=50, ge=1, le=200, description="Items per page"),
    svc: ContactService = Depends(get_contact_service),
):
    """List contacts. Sales agents only see contacts behind their own leads."""
    return await svc.get_contacts(actor, offset=(page - 1) * page_size, limit=page_size)


@router.get("/{contact_id}", response_model=ContactResponse)
async def get_contact(contact_id: int, actor: CurrentActor, svc: ContactService = Depends(get_contact_service)):
    return await svc.get_contact(actor, contact_id)


@router.patch("/{contact_id}", response_model=ContactResponse)
async def update_contact(
    contact_id: int,
    data: ContactUpdate,
    actor: CurrentActor,
    svc: ContactService = Depends(get_contact_service),
):
    return await svc.update_contact(actor, contact_id, data)


@router.delete("/{contact_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_contact(contact_id: int, actor: CurrentActor, svc: ContactService = Depends(get_contact_service)):
    await svc.delete_contact(actor, contact_id)
