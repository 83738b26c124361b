"""
Lead API endpoints.
"""
from fastapi import APIRouter, Depends, Query
from starlette import status

from estate_crm.core.deps import CurrentActor, get_lead_service
from estate_crm.schemas.lead import LeadCreate, LeadResponse, LeadUpdate
from estate_crm.services.lead_service import LeadService

router = APIRouter()


# ──────────────────────────────────────────────
# CRUD
# ──────────────────────────────────────────────

@router.post("", response_model=LeadResponse, status_code=status.HTTP_201_CREATED)
async def create_lead(data: LeadCreate, actor: CurrentActor, svc: LeadService = Depends(get_lead_service)):
    """Create a lead. Reception only; one open lead per contact and per property."""
    return await svc.create_lead(actor, data)


@router.get("", response_model=list[LeadResponse])
async def list_leads(
    actor: CurrentActor,
    status_id: int | None = Query(default=None, description="Filter by status ID"),
    page: int = Query(default=1, ge=1, description="Page number"),
    page_size: int = Query(default=50, ge=1, le=200, description="Items per page"),
    svc: LeadService = Depends(get_lead_service),
):
    """List leads. Sales agents only see leads assigned to them."""
    return await svc.get_leads(
        actor, status_id=status_id, offset=(page - 1) * page_size, limit=page_size
    )


@router.get("/{lead_id}", response_model=LeadResponse)
async def get_lead(lead_id: int, actor: CurrentActor, svc: LeadService = Depends(get_lead_service)):
    return await svc.get_lead(actor, lead_id)


@router.patch("/{lead_id}", response_model=LeadResponse)
async def update_lead(
    lead_id: int,
    data: LeadUpdate,
    actor: CurrentActor,
    svc: LeadService = Depends(get_lead_service),
):
    return await svc.update_lead(actor, lead_id, data)


@router.delete("/{lead_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_lead(lead_id: int, actor: CurrentActor, svc: LeadService = Depends(get_lead_service)):
    await svc.delete_lead(actor, lead_id)
