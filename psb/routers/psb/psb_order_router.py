# psb/routers/psb/psb_order_router.py

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, UploadFile, File, Response, status
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from psb.core.config import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from psb.core.db import get_db
from psb.core.exceptions import AppException
from psb.constants.error_codes import ErrorCode
from psb.models.enums.psb_order_status import PSBOrderStatus
from psb.schemas.psb.psb_order_schemas import (
    PSBOrderCreate,
    PSBOrderUpdate,
    PSBOrderOut,
    PSBOrderFilters,
    PSBImportResult,
)
from psb.schemas.psb.psb_analytics_schemas import PSBAnalytics, PSBReport
from psb.services.psb.psb_order_service import (
    list_orders,
    list_orders_for_export,
    get_order,
    create_order,
    update_order,
    delete_order,
)
from psb.services.psb.psb_analytics_service import get_analytics, build_report
from psb.services.psb.psb_transfer_service import (
    build_orders_workbook,
    export_filename,
    import_orders_workbook,
)
from psb.utils.pdf_generators.psb_report_pdf import generate_report_pdf, report_filename
from psb.utils.check_roles import require_role, PSB_STAFF, PSB_ADMIN
from psb.utils.response import (
    APIResponse,
    PaginatedResponse,
    success_response,
    paginated_response,
)
from psb.utils.logger import get_logger

router = APIRouter(prefix="/psb-orders", tags=["PSB Orders"])
logger = get_logger(__name__)

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def order_filters(
    cluster: Optional[str] = Query(None),
    sto: Optional[str] = Query(None),
    status: Optional[PSBOrderStatus] = Query(None),
    search: Optional[str] = Query(None),
) -> PSBOrderFilters:
    return PSBOrderFilters(cluster=cluster, sto=sto, status=status, search=search)


def _attachment(filename: str) -> dict:
    return {"Content-Disposition": f'attachment; filename="{filename}"'}


# =========================
# LIST
# =========================
@router.get("/", response_model=PaginatedResponse[PSBOrderOut])
async def list_orders_api(
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(PSB_STAFF)),
    filters: PSBOrderFilters = Depends(order_filters),

    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
):
    logger.info(
        "List PSB orders",
        extra={**filters.model_dump(exclude_none=True), "page": page, "limit": limit},
    )

    items, total = await list_orders(db, filters, page=page, limit=limit)

    return paginated_response(
        "PSB orders fetched successfully",
        items,
        page=page,
        limit=limit,
        total=total,
    )


# =========================
# ANALYTICS / REPORTS
# =========================
@router.get("/analytics", response_model=APIResponse[PSBAnalytics])
async def analytics_api(
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(PSB_STAFF)),
    date_from: Optional[date] = Query(None),
    date_to: Optional[date] = Query(None),
):
    analytics = await get_analytics(db, date_from=date_from, date_to=date_to)
    return success_response("PSB analytics fetched successfully", analytics)


@router.get("/reports/{report_type}", response_model=APIResponse[PSBReport])
async def report_api(
    report_type: str,
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(PSB_STAFF)),
    format: str = Query("json", pattern="^(json|pdf)$"),
    date_from: Optional[date] = Query(None),
    date_to: Optional[date] = Query(None),
):
    logger.info("PSB report", extra={"report_type": report_type, "format": format})

    report = await build_report(
        db, report_type, date_from=date_from, date_to=date_to
    )

    if format == "pdf":
        return Response(
            content=await run_in_threadpool(generate_report_pdf, report),
            media_type="application/pdf",
            headers=_attachment(report_filename(report)),
        )

    return success_response("PSB report generated successfully", report)


# =========================
# EXPORT / IMPORT
# =========================
@router.get("/export")
async def export_orders_api(
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(PSB_STAFF)),
    filters: PSBOrderFilters = Depends(order_filters),
):
    orders = await list_orders_for_export(db, filters)
    logger.info("Export PSB orders", extra={"rows": len(orders), "user_id": user.id})

    return Response(
        content=await run_in_threadpool(build_orders_workbook, orders),
        media_type=XLSX_MEDIA_TYPE,
        headers=_attachment(export_filename()),
    )


@router.post("/import", response_model=APIResponse[PSBImportResult])
async def import_orders_api(
    file: UploadFile = File(...),
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(PSB_STAFF)),
):
    if not (file.filename or "").lower().endswith(".xlsx"):
        raise AppException(
            400,
            "Unsupported file format. Upload an Excel .xlsx file",
            ErrorCode.PSB_IMPORT_FILE_INVALID,
        )

    logger.info("Import PSB orders", extra={"file_name": file.filename, "user_id": user.id})

    content = await file.read()
    result = await import_orders_workbook(db, content, user)

    return success_response(
        f"Imported {result.imported} PSB orders from {file.filename}",
        result,
    )


# =========================
# SINGLE ORDER
# =========================
@router.get("/{order_id}", response_model=APIResponse[PSBOrderOut])
async def get_order_api(
    order_id: int,
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(PSB_STAFF)),
):
    order = await get_order(db, order_id)
    return success_response("PSB order fetched successfully", order)


@router.post(
    "/",
    response_model=APIResponse[PSBOrderOut],
    status_code=status.HTTP_201_CREATED,
)
async def create_order_api(
    payload: PSBOrderCreate,
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(PSB_STAFF)),
):
    logger.info("Create PSB order", extra={"order_no": payload.order_no})
    order = await create_order(db, payload, user)
    return success_response("PSB order created successfully", order)


@router.put("/{order_id}", response_model=APIResponse[PSBOrderOut])
async def update_order_api(
    order_id: int,
    payload: PSBOrderUpdate,
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(PSB_STAFF)),
):
    logger.info("Update PSB order", extra={"order_id": order_id})
    order = await update_order(db, order_id, payload, user)
    return success_response("PSB order updated successfully", order)


@router.delete("/{order_id}", response_model=APIResponse[None])
async def delete_order_api(
    order_id: int,
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(PSB_ADMIN)),
):
    logger.info("Delete PSB order", extra={"order_id": order_id})
    await delete_order(db, order_id, user)
    return success_response("PSB order deleted successfully")
