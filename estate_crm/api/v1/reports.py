"""
Report endpoints.
"""
from fastapi import APIRouter, Depends

from estate_crm.core.deps import CurrentActor, get_report_aggregator
from estate_crm.schemas.report import (
    DealsPipelineReport,
    EmployeeLeadReport,
    EmployeeSalesRow,
    MySalesReport,
    SourceLeadRow,
    SourceSalesRow,
)
from estate_crm.services.report_service import ReportAggregator

router = APIRouter()


@router.get("/employee-leads", response_model=EmployeeLeadReport)
async def employee_lead_report(actor: CurrentActor, svc: ReportAggregator = Depends(get_report_aggregator)):
    """Lead counts by status for every sales agent."""
    return await svc.build_employee_lead_report(actor)


@router.get("/employee-sales", response_model=list[EmployeeSalesRow])
async def employee_sales_report(actor: CurrentActor, svc: ReportAggregator = Depends(get_report_aggregator)):
    return await svc.build_employee_sales_report(actor)


@router.get("/source-sales", response_model=list[SourceSalesRow])
async def source_sales_report(actor: CurrentActor, svc: ReportAggregator = Depends(get_report_aggregator)):
    return await svc.build_source_sales_report(actor)


@router.get("/source-leads", response_model=list[SourceLeadRow])
async def source_lead_report(actor: CurrentActor, svc: ReportAggregator = Depends(get_report_aggregator)):
    return await svc.build_source_lead_report(actor)


@router.get("/my-sales", response_model=MySalesReport)
async def my_sales_report(actor: CurrentActor, svc: ReportAggregator = Depends(get_report_aggregator)):
    """Closed-Won totals for the calling user."""
    return await svc.build_my_sales_report(actor)


@router.get("/deals-pipeline", response_model=DealsPipelineReport)
async def deals_pipeline_report(actor: CurrentActor, svc: ReportAggregator = Depends(get_report_aggregator)):
    return await svc.build_deals_pipeline_report(actor)
