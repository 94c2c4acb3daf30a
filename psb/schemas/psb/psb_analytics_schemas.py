from pydantic import BaseModel
from typing import List, Literal


class PSBSummary(BaseModel):
    total_orders: int
    completed_orders: int
    pending_orders: int
    in_progress_orders: int
    cancelled_orders: int
    completion_rate: float


class PSBGroupStat(BaseModel):
    name: str
    count: int
    completed: int


class PSBMonthlyTrend(BaseModel):
    year: int
    month: int
    count: int
    completed: int


class PSBAnalytics(BaseModel):
    summary: PSBSummary
    cluster_stats: List[PSBGroupStat]
    sto_stats: List[PSBGroupStat]
    monthly_trends: List[PSBMonthlyTrend]


# =========================
# REPORTS
# =========================
ReportType = Literal["summary", "cluster", "technician", "package"]


class PSBReportRow(PSBGroupStat):
    completion_rate: float


class PSBReport(BaseModel):
    report_type: str
    title: str
    summary: PSBSummary
    rows: List[PSBReportRow]
    monthly_trends: List[PSBMonthlyTrend]
