"""
Property API endpoints.
"""
from fastapi import APIRouter, Depends, Query
from starlette import status

from estate_crm.core.deps import CurrentActor, get_property_service
from estate_crm.models.property import PropertyStatus
from estate_crm.schemas.property import PropertyCreate, PropertyResponse, PropertyUpdate
from estate_crm.services.property_service import PropertyService

router = APIRouter()


@router.post("", response_model=PropertyResponse, status_code=status.HTTP_201_CREATED)
async def create_property(
    data: PropertyCreate,
    actor: CurrentActor,
    svc: PropertyService = Depends(get_property_service),
):
    return await svc.create_property(actor, data)


@router.get("", response_model=list[PropertyResponse])
async def list_properties(
    actor: CurrentActor,
    status_filter: PropertyStatus | None = Query(default=None, alias="status"),
    page: int = Query(default=1, ge=1, description="Page number"),
    page_size: int = Query(default=50, ge=1, le=200, description="Items per page"),
    svc: PropertyService = Depends(get_property_service),
):
    return await svc.get_properties(
        actor, status=status_filter, offset=(page - 1) * page_size, limit=page_size
    )


@router.get("/{property_id}", response_model=PropertyResponse)
async def get_property(property_id: int, actor: CurrentActor, svc: PropertyService = Depends(get_property_service)):
    return await svc.get_property(actor, property_id)


@router.patch("/{property_id}", response_model=PropertyResponse)
async def update_property(
    property_id: int,
    data: PropertyUpdate,
    actor: CurrentActor,
    svc: PropertyService = Depends(get_property_service),
):
    return await svc.update_property(actor, property_id, data)


@router.delete("/{property_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_property(
    property_id: int,
    actor: CurrentActor,
    svc: PropertyService = Depends(get_property_service),
):
    await svc.delete_property(actor, property_id)
