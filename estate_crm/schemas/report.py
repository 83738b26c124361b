"""
Pydantic schemas for reports.
"""
from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field


class LeadStatusSummary(BaseModel):
    """Lead counts per status."""
    new: int = 0
    contacted: int = 0
    qualified: int = 0
    converted: int = 0
    lost: int = 0

    @property
    def total(self) -> int:
        return self.new + self.contacted + self.qualified + self.converted + self.lost


class EmployeeLeadRow(BaseModel):
    user_id: int
    username: str
    counts: LeadStatusSummary
    total: int


class EmployeeLeadReport(BaseModel):
    rows: list[EmployeeLeadRow] = Field(default_factory=list)
    totals: LeadStatusSummary = Field(default_factory=LeadStatusSummary)
    grand_total: int = 0


class EmployeeSalesRow(BaseModel):
    user_id: int
    username: str
    deals_won: int
    total_amount: Decimal


class SourceSalesRow(BaseModel):
    source: str
    deals_won: int
    total_amount: Decimal


class SourceLeadRow(BaseModel):
    lead_id: int
    created_at: datetime
    contact_name: str
    phone: str
    email: Optional[str]
    source: str
    assigned_to: str
    status: str


class MySalesReport(BaseModel):
    user_id: int
    deals_won: int
    total_amount: Decimal


class DealsPipelineRow(BaseModel):
    stage_name: str
    deal_count: int
    total_amount: Decimal


class DealsPipelineSummary(BaseModel):
    total_deal_count: int = 0
    total_deal_amount: Decimal = Decimal("0")


class DealsPipelineReport(BaseModel):
    rows: list[DealsPipelineRow] = Field(default_factory=list)
    total: DealsPipelineSummary = Field(default_factory=DealsPipelineSummary)
