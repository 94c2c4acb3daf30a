# psb/services/psb/psb_transfer_service.py
"""
Excel import / export of PSB orders.

Export and import share one column layout so an exported sheet can be
edited and fed back in. `No` and `Created At` are ignored on import, the
sequence number is always assigned by the server.
"""

import io
from datetime import datetime
from typing import Any, Optional
from zipfile import BadZipFile

from openpyxl import Workbook, load_workbook
from openpyxl.utils.exceptions import InvalidFileException
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from psb.core.config import MAX_IMPORT_ROWS
from psb.core.exceptions import AppException
from psb.constants.error_codes import ErrorCode
from psb.models.psb.psb_order_models import PSBOrder
from psb.models.enums.psb_order_status import PSBOrderStatus
from psb.models.users.user_models import User
from psb.schemas.psb.psb_order_schemas import (
    PSBOrderCreate,
    PSBImportResult,
    PSBImportRowError,
    REQUIRED_ORDER_FIELDS,
)
from psb.services.psb.psb_order_service import next_order_no
from psb.utils.logger import get_logger

logger = get_logger(__name__)

SHEET_TITLE = "PSB Orders"

# (header, attribute)
EXPORT_COLUMNS = [
    ("No", "no"),
    ("Order No", "order_no"),
    ("Customer Name", "customer_name"),
    ("Customer Phone", "customer_phone"),
    ("Address", "address"),
    ("Cluster", "cluster"),
    ("STO", "sto"),
    ("Package", "package"),
    ("Status", "status"),
    ("Technician", "technician"),
    ("Notes", "notes"),
    ("Created At", "created_at"),
]

IMPORT_IGNORED = {"no", "created_at"}


def _normalize_header(value: Any) -> str:
    return " ".join(str(value or "").replace("_", " ").split()).lower()


HEADER_TO_FIELD = {
    _normalize_header(header): attr
    for header, attr in EXPORT_COLUMNS
    if attr not in IMPORT_IGNORED
}
# snake_case headers (API field names) are accepted too
HEADER_TO_FIELD.update({_normalize_header(attr): attr for attr in HEADER_TO_FIELD.values()})


# =========================
# EXPORT
# =========================
def _export_value(order: PSBOrder, attr: str):
    value = getattr(order, attr)
    if isinstance(value, PSBOrderStatus):
        return value.value
    if isinstance(value, datetime):
        # openpyxl rejects tz-aware datetimes
        return value.replace(tzinfo=None)
    return value if value is not None else ""


def build_orders_workbook(orders: list[PSBOrder]) -> bytes:
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = SHEET_TITLE

    sheet.append([header for header, _ in EXPORT_COLUMNS])
    for order in orders:
        sheet.append([_export_value(order, attr) for _, attr in EXPORT_COLUMNS])

    sheet.freeze_panes = "A2"

    output = io.BytesIO()
    workbook.save(output)
    workbook.close()
    return output.getvalue()


def export_filename(now: Optional[datetime] = None) -> str:
    now = now or datetime.now()
    return f"psb_orders_{now.strftime('%Y%m%d_%H%M%S')}.xlsx"


# =========================
# IMPORT
# =========================
def _cell_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    # phone numbers typed into Excel come back as floats
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    text = str(value).strip()
    return text or None


def _parse_status(value: Optional[str]) -> Optional[PSBOrderStatus]:
    if value is None:
        return None
    for status in PSBOrderStatus:
        if status.value.lower() == value.lower():
            return status
    raise ValueError(
        f"status must be one of: {', '.join(s.value for s in PSBOrderStatus)}"
    )


def _format_validation_error(exc: ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
        for err in exc.errors()
    )


def _read_rows(content: bytes) -> tuple[dict[int, str], list[tuple[int, tuple]]]:
    try:
        workbook = load_workbook(io.BytesIO(content), read_only=True, data_only=True)
    except (InvalidFileException, BadZipFile, KeyError, OSError):
        raise AppException(
            400,
            "File is not a valid Excel workbook",
            ErrorCode.PSB_IMPORT_FILE_INVALID,
        )

    try:
        sheet = workbook.active
        rows = sheet.iter_rows(values_only=True)

        header_row = next(rows, None)
        if header_row is None:
            raise AppException(
                400,
                "Workbook is empty",
                ErrorCode.PSB_IMPORT_FILE_INVALID,
            )

        columns = {
            idx: HEADER_TO_FIELD[_normalize_header(cell)]
            for idx, cell in enumerate(header_row)
            if _normalize_header(cell) in HEADER_TO_FIELD
        }

        data_rows = []
        # row numbers as Excel shows them, header is row 1
        for row_number, values in enumerate(rows, start=2):
            if all(_cell_text(v) is None for v in values):
                continue
            data_rows.append((row_number, values))
            if len(data_rows) > MAX_IMPORT_ROWS:
                raise AppException(
                    400,
                    f"Import is limited to {MAX_IMPORT_ROWS} rows",
                    ErrorCode.PSB_IMPORT_FILE_INVALID,
                )
    finally:
        workbook.close()

    missing = [f for f in REQUIRED_ORDER_FIELDS if f not in columns.values()]
    if missing:
        raise AppException(
            400,
            "Missing required columns",
            ErrorCode.PSB_IMPORT_FILE_INVALID,
            details={"missing": missing},
        )

    return columns, data_rows


def parse_order_row(columns: dict[int, str], values: tuple) -> PSBOrderCreate:
    data: dict[str, Any] = {}
    for idx, field in columns.items():
        if idx < len(values):
            data[field] = _cell_text(values[idx])

    status = _parse_status(data.pop("status", None))
    if status:
        data["status"] = status

    # absent cells fail the required-field check instead of a None type error
    for field in REQUIRED_ORDER_FIELDS:
        if data.get(field) is None:
            data[field] = ""

    return PSBOrderCreate(**data)


async def import_orders_workbook(
    db: AsyncSession,
    content: bytes,
    user: User,
) -> PSBImportResult:
    # openpyxl is blocking
    columns, data_rows = await run_in_threadpool(_read_rows, content)

    errors: list[PSBImportRowError] = []
    payloads: list[PSBOrderCreate] = []

    for row_number, values in data_rows:
        try:
            payloads.append(parse_order_row(columns, values))
        except ValidationError as exc:
            errors.append(
                PSBImportRowError(row=row_number, error=_format_validation_error(exc))
            )
        except ValueError as exc:
            errors.append(PSBImportRowError(row=row_number, error=str(exc)))

    if payloads:
        no = await next_order_no(db)
        for offset, payload in enumerate(payloads):
            db.add(
                PSBOrder(
                    **payload.model_dump(),
                    no=no + offset,
                    created_by_id=user.id,
                )
            )
        # IntegrityError on a sequence race bubbles up as 409
        await db.commit()

    logger.info(
        "PSB orders imported",
        extra={"imported": len(payloads), "rejected": len(errors), "user_id": user.id},
    )

    return PSBImportResult(
        imported=len(payloads),
        skipped=len(errors),
        errors=errors,
    )
