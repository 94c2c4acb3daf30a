# psb/services/psb/psb_analytics_service.py

from datetime import date
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from psb.models.enums.psb_order_status import PSBOrderStatus
from psb.schemas.psb.psb_analytics_schemas import (
    PSBAnalytics,
    PSBSummary,
    PSBGroupStat,
    PSBMonthlyTrend,
    PSBReport,
    PSBReportRow,
)
from psb.services.psb.psb_order_query import (
    created_between,
    status_counts_stmt,
    cluster_stats_stmt,
    sto_stats_stmt,
    technician_stats_stmt,
    package_stats_stmt,
    monthly_trends_stmt,
)
from psb.core.exceptions import AppException
from psb.constants.error_codes import ErrorCode
from psb.utils.logger import get_logger

logger = get_logger(__name__)

REPORT_TITLES = {
    "summary": "PSB Summary Report",
    "cluster": "PSB Report by Cluster",
    "technician": "PSB Technician Report",
    "package": "PSB Package Report",
}

REPORT_ROWS = {
    "cluster": cluster_stats_stmt,
    "technician": technician_stats_stmt,
    "package": package_stats_stmt,
}


def completion_rate(completed: int, total: int) -> float:
    if not total:
        return 0.0
    return round(completed / total * 100, 1)


async def _summary(db: AsyncSession, conditions) -> PSBSummary:
    result = await db.execute(status_counts_stmt(conditions))
    counts = {PSBOrderStatus(status): count for status, count in result.all()}

    total = sum(counts.values())
    completed = counts.get(PSBOrderStatus.COMPLETED, 0)

    return PSBSummary(
        total_orders=total,
        completed_orders=completed,
        pending_orders=counts.get(PSBOrderStatus.PENDING, 0),
        in_progress_orders=counts.get(PSBOrderStatus.IN_PROGRESS, 0),
        cancelled_orders=counts.get(PSBOrderStatus.CANCELLED, 0),
        completion_rate=completion_rate(completed, total),
    )


async def _group_stats(db: AsyncSession, stmt) -> list[PSBGroupStat]:
    result = await db.execute(stmt)
    return [
        PSBGroupStat(name=name, count=count, completed=int(completed or 0))
        for name, count, completed in result.all()
    ]


async def _monthly_trends(db: AsyncSession, conditions) -> list[PSBMonthlyTrend]:
    result = await db.execute(monthly_trends_stmt(conditions))
    return [
        PSBMonthlyTrend(
            year=int(year),
            month=int(month),
            count=count,
            completed=int(completed or 0),
        )
        for year, month, count, completed in result.all()
    ]


# =========================
# ANALYTICS
# =========================
async def get_analytics(
    db: AsyncSession,
    *,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
) -> PSBAnalytics:
    conditions = created_between(date_from, date_to)

    analytics = PSBAnalytics(
        summary=await _summary(db, conditions),
        cluster_stats=await _group_stats(db, cluster_stats_stmt(conditions)),
        sto_stats=await _group_stats(db, sto_stats_stmt(conditions)),
        monthly_trends=await _monthly_trends(db, conditions),
    )

    logger.debug(
        "PSB analytics computed",
        extra={"total_orders": analytics.summary.total_orders},
    )
    return analytics


# =========================
# REPORTS
# =========================
async def build_report(
    db: AsyncSession,
    report_type: str,
    *,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
) -> PSBReport:
    if report_type not in REPORT_TITLES:
        raise AppException(
            400,
            f"Unknown report type '{report_type}'",
            ErrorCode.PSB_REPORT_TYPE_INVALID,
            details={"allowed": sorted(REPORT_TITLES)},
        )

    conditions = created_between(date_from, date_to)

    rows: list[PSBReportRow] = []
    if report_type in REPORT_ROWS:
        stats = await _group_stats(db, REPORT_ROWS[report_type](conditions))
        rows = [
            PSBReportRow(
                **s.model_dump(),
                completion_rate=completion_rate(s.completed, s.count),
            )
            for s in stats
        ]

    return PSBReport(
        report_type=report_type,
        title=REPORT_TITLES[report_type],
        summary=await _summary(db, conditions),
        rows=rows,
        monthly_trends=await _monthly_trends(db, conditions),
    )
