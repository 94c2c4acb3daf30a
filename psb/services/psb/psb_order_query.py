# psb/services/psb/psb_order_query.py
"""
Statement builders for PSB orders.

Everything here returns SQLAlchemy constructs and never touches a session,
so the list, export, analytics and report services share one set of
predicates.
"""

from datetime import date, datetime, time, timedelta
from typing import Optional

from sqlalchemy import select, func, or_, case, extract, desc, asc, literal_column
from sqlalchemy.sql.elements import ColumnElement

from psb.models.psb.psb_order_models import PSBOrder
from psb.models.enums.psb_order_status import PSBOrderStatus
from psb.schemas.psb.psb_order_schemas import PSBOrderFilters
from psb.core.exceptions import AppException
from psb.constants.error_codes import ErrorCode

LIKE_ESCAPE = "\\"
STO_STATS_LIMIT = 10
MONTHLY_TRENDS_LIMIT = 12
UNASSIGNED_TECHNICIAN = "Unassigned"


# =====================================================
# PREDICATES
# =====================================================
def escape_like(value: str) -> str:
    """Escape LIKE wildcards so user input is matched literally."""
    return (
        value.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", f"{LIKE_ESCAPE}%")
        .replace("_", f"{LIKE_ESCAPE}_")
    )


def contains_ci(column, value: str) -> ColumnElement:
    return column.ilike(f"%{escape_like(value)}%", escape=LIKE_ESCAPE)


def created_between(
    date_from: Optional[date],
    date_to: Optional[date],
) -> list[ColumnElement]:
    if date_from and date_to and date_from > date_to:
        raise AppException(
            400,
            "date_from must not be after date_to",
            ErrorCode.PSB_DATE_RANGE_INVALID,
        )

    conditions: list[ColumnElement] = []
    if date_from:
        conditions.append(
            PSBOrder.created_at >= datetime.combine(date_from, time.min)
        )
    if date_to:
        # inclusive of the whole last day
        conditions.append(
            PSBOrder.created_at
            < datetime.combine(date_to + timedelta(days=1), time.min)
        )
    return conditions


def build_order_filters(filters: PSBOrderFilters) -> list[ColumnElement]:
    conditions: list[ColumnElement] = []

    if filters.cluster:
        conditions.append(contains_ci(PSBOrder.cluster, filters.cluster))

    if filters.sto:
        conditions.append(contains_ci(PSBOrder.sto, filters.sto))

    if filters.status:
        conditions.append(PSBOrder.status == filters.status)

    if filters.search:
        conditions.append(
            or_(
                contains_ci(PSBOrder.customer_name, filters.search),
                contains_ci(PSBOrder.order_no, filters.search),
                contains_ci(PSBOrder.customer_phone, filters.search),
            )
        )

    return conditions


# =====================================================
# LIST / COUNT
# =====================================================
def orders_page_stmt(conditions: list[ColumnElement], *, page: int, limit: int):
    return (
        select(PSBOrder)
        .where(*conditions)
        .order_by(desc(PSBOrder.created_at), desc(PSBOrder.id))
        .offset((page - 1) * limit)
        .limit(limit)
    )


def orders_count_stmt(conditions: list[ColumnElement]):
    return select(func.count(PSBOrder.id)).where(*conditions)


def orders_export_stmt(conditions: list[ColumnElement]):
    return select(PSBOrder).where(*conditions).order_by(asc(PSBOrder.no))


def next_order_no_stmt():
    return select(func.coalesce(func.max(PSBOrder.no), 0) + 1)


# =====================================================
# AGGREGATIONS
# =====================================================
def completed_sum():
    return func.sum(
        case((PSBOrder.status == PSBOrderStatus.COMPLETED, 1), else_=0)
    )


def status_counts_stmt(conditions: list[ColumnElement]):
    return (
        select(PSBOrder.status, func.count(PSBOrder.id))
        .where(*conditions)
        .group_by(PSBOrder.status)
    )


def group_stats_stmt(
    key,
    conditions: list[ColumnElement],
    limit: Optional[int] = None,
):
    """count / completed per distinct key, largest groups first."""
    key = key.label("name")
    count = func.count(PSBOrder.id).label("count")

    stmt = (
        select(key, count, completed_sum().label("completed"))
        .where(*conditions)
        .group_by(key)
        .order_by(desc(count), asc(key))
    )
    if limit:
        stmt = stmt.limit(limit)
    return stmt


def cluster_stats_stmt(conditions: list[ColumnElement]):
    return group_stats_stmt(PSBOrder.cluster, conditions)


def sto_stats_stmt(conditions: list[ColumnElement]):
    return group_stats_stmt(PSBOrder.sto, conditions, limit=STO_STATS_LIMIT)


def package_stats_stmt(conditions: list[ColumnElement]):
    return group_stats_stmt(PSBOrder.package, conditions)


def technician_stats_stmt(conditions: list[ColumnElement]):
    # literals inline so the GROUP BY expression matches the select list
    technician = func.coalesce(
        func.nullif(PSBOrder.technician, literal_column("''")),
        literal_column(f"'{UNASSIGNED_TECHNICIAN}'"),
    )
    return group_stats_stmt(technician, conditions)


def monthly_trends_stmt(conditions: list[ColumnElement]):
    year = extract("year", PSBOrder.created_at).label("year")
    month = extract("month", PSBOrder.created_at).label("month")

    return (
        select(
            year,
            month,
            func.count(PSBOrder.id).label("count"),
            completed_sum().label("completed"),
        )
        .where(*conditions)
        .group_by(year, month)
        .order_by(desc(year), desc(month))
        .limit(MONTHLY_TRENDS_LIMIT)
    )
