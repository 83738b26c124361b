"""
Pydantic schemas for Deal API.
"""
from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from estate_crm.models.deal import DealStatus


# ──────────────────────────────────────────────
# Request Schemas
# ──────────────────────────────────────────────

class DealCreate(BaseModel):
    """Amount positivity is checked by the deal lifecycle after the lead checks."""
    lead_id: int
    property_id: int
    deal_amount: Decimal
    deal_status: DealStatus = DealStatus.OPEN
    stage_id: Optional[int] = None
    closing_date: Optional[datetime] = None
    notes: Optional[str] = Field(None, max_length=2048)


class DealUpdate(BaseModel):
    deal_amount: Optional[Decimal] = None
    deal_status: Optional[DealStatus] = None
    stage_id: Optional[int] = None
    closing_date: Optional[datetime] = None
    notes: Optional[str] = Field(None, max_length=2048)


# ──────────────────────────────────────────────
# Response Schemas
# ──────────────────────────────────────────────

class DealResponse(BaseModel):
    id: int
    lead_id: int
    property_id: int
    stage_id: Optional[int]
    deal_status: DealStatus
    deal_amount: Decimal
    closing_date: Optional[datetime]
    notes: Optional[str]
    created_by: Optional[int]
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
