"""
Deal API endpoints.
"""
from fastapi import APIRouter, Depends, Query
from starlette import status

from estate_crm.core.deps import CurrentActor, get_deal_service
from estate_crm.models.deal import DealStatus
from estate_crm.schemas.deal import DealCreate, DealResponse, DealUpdate
from estate_crm.services.deal_service import DealService

router = APIRouter()


@router.post("", response_model=DealResponse, status_code=status.HTTP_201_CREATED)
async def create_deal(data: DealCreate, actor: CurrentActor, svc: DealService = Depends(get_deal_service)):
    """Create a deal from a lead. Closing it as Closed-Won marks the property Sold."""
    return await svc.create_deal(actor, data)


@router.get("", response_model=list[DealResponse])
async def list_deals(
    actor: CurrentActor,
    deal_status: DealStatus | None = Query(default=None),
    page: int = Query(default=1, ge=1, description="Page number"),
    page_size: int = Query(default=50, ge=1, le=200, description="Items per page"),
    svc: DealService = Depends(get_deal_service),
):
    return await svc.get_deals(
        actor, deal_status=deal_status, offset=(page - 1) * page_size, limit=page_size
    )


@router.get("/{deal_id}", response_model=DealResponse)
async def get_deal(deal_id: int, actor: CurrentActor, svc: DealService = Depends(get_deal_service)):
    return await svc.get_deal(actor, deal_id)


@router.patch("/{deal_id}", response_model=DealResponse)
async def update_deal(
    deal_id: int,
    data: DealUpdate,
    actor: CurrentActor,
    svc: DealService = Depends(get_deal_service),
):
    return await svc.update_deal(actor, deal_id, data)


@router.delete("/{deal_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_deal(deal_id: int, actor: CurrentActor, svc: DealService = Depends(get_deal_service)):
    await svc.delete_deal(actor, deal_id)
