"""
ReportAggregator - cross-agent summaries.

The employee lead report fans out one query per sales agent, each on its own
session, and merges whatever comes back. A failing agent query drops that
agent's row; cancellation of the report itself is never turned into a
partial result.
"""
import asyncio
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from estate_crm.core.logging import get_logger
from estate_crm.core.roles import Claims, RoleConfig
from estate_crm.models.lead import LeadStatusName
from estate_crm.repositories.deal_repo import DealRepository
from estate_crm.repositories.lead_repo import LeadRepository
from estate_crm.repositories.user_repo import UserRepository
from estate_crm.schemas.report import (
    DealsPipelineReport,
    DealsPipelineRow,
    EmployeeLeadReport,
    EmployeeLeadRow,
    EmployeeSalesRow,
    LeadStatusSummary,
    MySalesReport,
    SourceLeadRow,
    SourceSalesRow,
)
from estate_crm.services.errors import translate_store_errors
from estate_crm.services.permissions import Action, PermissionGuard, ResourceKind

logger = get_logger(__name__)

UNSTAGED = "Unstaged"


def _summary_from_counts(counts: dict[str, int]) -> LeadStatusSummary:
    return LeadStatusSummary(
        new=counts.get(LeadStatusName.NEW.value, 0),
        contacted=counts.get(LeadStatusName.CONTACTED.value, 0),
        qualified=counts.get(LeadStatusName.QUALIFIED.value, 0),
        converted=counts.get(LeadStatusName.CONVERTED.value, 0),
        lost=counts.get(LeadStatusName.LOST.value, 0),
    )


class ReportAggregator:
    def __init__(
        self,
        session: AsyncSession,
        session_factory: async_sessionmaker[AsyncSession],
        guard: PermissionGuard,
        roles: RoleConfig,
    ):
        self.session = session
        self.session_factory = session_factory
        self.guard = guard
        self.roles = roles

    async def build_employee_lead_report(self, actor: Claims) -> EmployeeLeadReport:
        """Lead counts by status for every sales agent, plus column totals."""
        self.guard.ensure(actor, Action.READ, ResourceKind.REPORT)

        with translate_store_errors("sales agent lookup"):
            agents = await UserRepository(self.session).get_by_role(self.roles.sales_agent_id)

        results = await asyncio.gather(
            *(self._count_for_agent(agent.id) for agent in agents),
            return_exceptions=True,
        )

        report = EmployeeLeadReport()
        totals = {field: 0 for field in LeadStatusSummary.model_fields}
        for agent, result in zip(agents, results):
            if isinstance(result, asyncio.CancelledError):
                logger.warning("employee lead report cancelled", user_id=agent.id)
                raise result
            if isinstance(result, Exception):
                logger.error(
                    "lead count query failed for agent",
                    user_id=agent.id,
                    username=agent.username,
                    error=str(result),
                )
                continue

            summary = _summary_from_counts(result)
            report.rows.append(
                EmployeeLeadRow(
                    user_id=agent.id,
                    username=agent.username,
                    counts=summary,
                    total=summary.total,
                )
            )
            for field in totals:
                totals[field] += getattr(summary, field)

        report.totals = LeadStatusSummary(**totals)
        report.grand_total = report.totals.total
        logger.info("employee lead report built", rows=len(report.rows), agents=len(agents))
        return report

    async def _count_for_agent(self, user_id: int) -> dict[str, int]:
        # One session per task: an AsyncSession can't run concurrent queries
        async with self.session_factory() as session:
            return await LeadRepository(session).count_leads_by_status_for_user(user_id)

    async def build_employee_sales_report(self, actor: Claims) -> list[EmployeeSalesRow]:
        self.guard.ensure(actor, Action.READ, ResourceKind.REPORT)
        with translate_store_errors("employee sales report"):
            rows = await DealRepository(self.session).get_employee_sales_rows()
        return [
            EmployeeSalesRow(user_id=user_id, username=username, deals_won=count, total_amount=Decimal(str(total)))
            for user_id, username, count, total in rows
        ]

    async def build_source_sales_report(self, actor: Claims) -> list[SourceSalesRow]:
        self.guard.ensure(actor, Action.READ, ResourceKind.REPORT)
        with translate_store_errors("source sales report"):
            rows = await DealRepository(self.session).get_source_sales_rows()
        return [
            SourceSalesRow(source=source, deals_won=count, total_amount=Decimal(str(total)))
            for source, count, total in rows
        ]

    async def build_source_lead_report(self, actor: Claims) -> list[SourceLeadRow]:
        self.guard.ensure(actor, Action.READ, ResourceKind.REPORT)
        with translate_store_errors("source lead report"):
            rows = await LeadRepository(self.session).get_source_lead_rows()
        return [
            SourceLeadRow(
                lead_id=lead_id,
                created_at=created_at,
                contact_name=" ".join(part for part in (first_name, last_name) if part),
                phone=phone,
                email=email,
                source=source,
                assigned_to=username,
                status=status,
            )
            for lead_id, created_at, first_name, last_name, phone, email, source, username, status in rows
        ]

    async def build_deals_pipeline_report(self, actor: Claims) -> DealsPipelineReport:
        """Deal count and amount per pipeline stage, with a summary row."""
        self.guard.ensure(actor, Action.READ, ResourceKind.REPORT)
        with translate_store_errors("deals pipeline report"):
            rows = await DealRepository(self.session).get_pipeline_rows()

        report = DealsPipelineReport()
        for stage_name, count, total in rows:
            amount = Decimal(str(total))
            report.rows.append(
                DealsPipelineRow(stage_name=stage_name or UNSTAGED, deal_count=count, total_amount=amount)
            )
            report.total.total_deal_count += count
            report.total.total_deal_amount += amount
        return report

    async def build_my_sales_report(self, actor: Claims) -> MySalesReport:
        """The caller's own Closed-Won totals."""
        self.guard.ensure(actor, Action.READ, ResourceKind.REPORT, actor.user_id)
        with translate_store_errors("my sales report", user_id=actor.user_id):
            count, total = await DealRepository(self.session).get_sales_totals_for_user(actor.user_id)
        return MySalesReport(user_id=actor.user_id, deals_won=count, total_amount=total)

