"""
View models for the PSB dashboard pages.

Each function turns store state (analytics dict / list of order dicts as
returned by the API) into the rows, cards and chart series a page draws.
"""
from typing import Optional

from psb.models.enums.psb_order_status import PSBOrderStatus
from psb.schemas.psb.psb_order_schemas import REQUIRED_ORDER_FIELDS

STATUS_BADGES = {
    PSBOrderStatus.COMPLETED.value: "default",
    PSBOrderStatus.IN_PROGRESS.value: "secondary",
    PSBOrderStatus.PENDING.value: "outline",
    PSBOrderStatus.CANCELLED.value: "destructive",
}

PACKAGE_OPTIONS = [
    "Indihome 20 Mbps",
    "Indihome 30 Mbps",
    "Indihome 50 Mbps",
    "Indihome 100 Mbps",
    "IndiHome Gamer 50 Mbps",
    "IndiHome Gamer 100 Mbps",
]

CLUSTER_CHART_LIMIT = 8
CLUSTER_LIST_LIMIT = 10


def status_badge(status: str) -> str:
    return STATUS_BADGES.get(status, "outline")


def _rate(completed: int, total: int) -> float:
    return round(completed / total * 100, 1) if total else 0.0


def _count_by_status(orders: list[dict]) -> dict:
    counts = {s.value: 0 for s in PSBOrderStatus}
    for order in orders:
        status = order.get("status")
        if status in counts:
            counts[status] += 1
    return counts


# =========================
# DASHBOARD
# =========================
def dashboard_view(analytics: dict) -> dict:
    summary = analytics["summary"]

    cards = [
        {"title": "Total Orders", "value": summary["total_orders"]},
        {"title": "Completed", "value": summary["completed_orders"]},
        {"title": "In Progress", "value": summary["in_progress_orders"]},
        {"title": "Completion Rate", "value": f"{summary['completion_rate']:.1f}%"},
    ]

    distribution = [
        {"name": PSBOrderStatus.COMPLETED.value, "value": summary["completed_orders"]},
        {"name": PSBOrderStatus.IN_PROGRESS.value, "value": summary["in_progress_orders"]},
        {"name": PSBOrderStatus.PENDING.value, "value": summary["pending_orders"]},
        {"name": PSBOrderStatus.CANCELLED.value, "value": summary.get("cancelled_orders", 0)},
    ]

    return {
        "cards": cards,
        "status_distribution": [d for d in distribution if d["value"] > 0],
        "cluster_chart": [
            {"name": c["name"], "total": c["count"], "completed": c["completed"]}
            for c in analytics["cluster_stats"][:CLUSTER_CHART_LIMIT]
        ],
        "cluster_list": [
            {
                "name": c["name"],
                "total": c["count"],
                "completed": c["completed"],
                "rate": _rate(c["completed"], c["count"]),
            }
            for c in analytics["cluster_stats"][:CLUSTER_LIST_LIMIT]
        ],
    }


# =========================
# ANALYTICS
# =========================
def analytics_view(analytics: dict) -> dict:
    clusters = analytics["cluster_stats"]

    cluster_chart = [
        {
            "name": c["name"],
            "total": c["count"],
            "completed": c["completed"],
            "rate": _rate(c["completed"], c["count"]),
        }
        for c in clusters[:CLUSTER_CHART_LIMIT]
    ]

    sto_chart = [
        {
            "name": s["name"],
            "total": s["count"],
            "completed": s["completed"],
            "rate": _rate(s["completed"], s["count"]),
        }
        for s in analytics["sto_stats"]
    ]

    insight: Optional[str] = None
    if clusters:
        top = clusters[0]
        insight = (
            f"Cluster {top['name']} leads with {top['count']} orders "
            f"and a {_rate(top['completed'], top['count']):.1f}% completion rate"
        )

    return {
        "cluster_count": len(clusters),
        "cluster_chart": cluster_chart,
        "sto_chart": sto_chart,
        "insight": insight,
    }


# =========================
# CUSTOMERS / DATA MANAGEMENT
# =========================
def order_row(order: dict) -> dict:
    return {
        "id": order["id"],
        "no": order["no"],
        "order_no": order["order_no"],
        "customer": order["customer_name"],
        "phone": order["customer_phone"],
        "address": order.get("address", ""),
        "cluster": order["cluster"],
        "sto": order["sto"],
        "package": order["package"],
        "status": order["status"],
        "badge": status_badge(order["status"]),
        "technician": order.get("technician") or "-",
        "created_at": order.get("created_at"),
    }


def customers_view(orders: list[dict]) -> dict:
    counts = _count_by_status(orders)
    return {
        "total_customers": len(orders),
        "active_installations": counts[PSBOrderStatus.IN_PROGRESS.value],
        "completed_installations": counts[PSBOrderStatus.COMPLETED.value],
        "clusters": sorted({o["cluster"] for o in orders}),
        "rows": [order_row(o) for o in orders],
    }


def data_management_view(orders: list[dict]) -> dict:
    return {
        "total": len(orders),
        "status_counts": _count_by_status(orders),
        "rows": [order_row(o) for o in orders],
    }


# =========================
# INPUT FORM
# =========================
def validate_order_form(form: dict) -> list[str]:
    """Names of required fields that are missing or blank."""
    return [
        field
        for field in REQUIRED_ORDER_FIELDS
        if not str(form.get(field) or "").strip()
    ]


def input_form_view() -> dict:
    form = {field: "" for field in REQUIRED_ORDER_FIELDS}
    form.update({
        "status": PSBOrderStatus.PENDING.value,
        "technician": "",
        "notes": "",
    })
    return {
        "form": form,
        "status_options": [s.value for s in PSBOrderStatus],
        "package_options": list(PACKAGE_OPTIONS),
    }


# =========================
# REPORTS
# =========================
def trend_rows(analytics: dict) -> list[dict]:
    return [
        {
            "month": f"{t['month']}/{t['year']}",
            "total": t["count"],
            "completed": t["completed"],
            "pending": t["count"] - t["completed"],
        }
        for t in analytics["monthly_trends"]
    ]


def reports_view(analytics: dict) -> dict:
    summary = analytics["summary"]
    return {
        "summary": {
            "total_orders": summary["total_orders"],
            "completion_rate": f"{summary['completion_rate']:.1f}%",
        },
        "trend": trend_rows(analytics),
        "clusters": analytics_view(analytics)["cluster_chart"],
    }
