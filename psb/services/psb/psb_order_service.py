# psb/services/psb/psb_order_service.py

import re
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from psb.models.psb.psb_order_models import PSBOrder
from psb.models.users.user_models import User
from psb.schemas.psb.psb_order_schemas import (
    PSBOrderCreate,
    PSBOrderUpdate,
    PSBOrderOut,
    PSBOrderFilters,
)
from psb.schemas.users.user_schemas import UserRef
from psb.services.psb.psb_order_query import (
    build_order_filters,
    orders_page_stmt,
    orders_count_stmt,
    orders_export_stmt,
    next_order_no_stmt,
)
from psb.core.exceptions import AppException
from psb.constants.error_codes import ErrorCode
from psb.utils.logger import get_logger

logger = get_logger(__name__)

ORDER_NO_INDEX = "ix_psb_orders_no"


def _user_ref(user: Optional[User]) -> Optional[UserRef]:
    if not user:
        return None
    return UserRef(id=user.id, name=user.name, email=user.username)


def _map_order(order: PSBOrder) -> PSBOrderOut:
    return PSBOrderOut(
        id=order.id,
        no=order.no,
        order_no=order.order_no,
        customer_name=order.customer_name,
        customer_phone=order.customer_phone,
        address=order.address,
        cluster=order.cluster,
        sto=order.sto,
        package=order.package,
        status=order.status,
        technician=order.technician,
        notes=order.notes,

        created_by=_user_ref(order.created_by),
        updated_by=_user_ref(order.updated_by),

        created_at=order.created_at,
        updated_at=order.updated_at,
    )


async def _load_order(db: AsyncSession, order_id: int) -> PSBOrder:
    result = await db.execute(
        select(PSBOrder)
        .where(PSBOrder.id == order_id)
        .execution_options(populate_existing=True)
    )
    order = result.scalar_one_or_none()

    if not order:
        raise AppException(
            404,
            "PSB order not found",
            ErrorCode.PSB_ORDER_NOT_FOUND,
        )
    return order


async def next_order_no(db: AsyncSession) -> int:
    return await db.scalar(next_order_no_stmt())


def is_order_no_conflict(exc: IntegrityError) -> bool:
    """True when the unique index on `no` rejected the row."""
    message = str(exc.orig).lower()
    # sqlite names the column, postgres names the index
    return bool(re.search(r"psb_orders\.no\b", message)) or ORDER_NO_INDEX in message


# =========================
# LIST
# =========================
async def list_orders(
    db: AsyncSession,
    filters: PSBOrderFilters,
    *,
    page: int,
    limit: int,
) -> tuple[list[PSBOrderOut], int]:
    conditions = build_order_filters(filters)

    total = await db.scalar(orders_count_stmt(conditions)) or 0

    result = await db.execute(
        orders_page_stmt(conditions, page=page, limit=limit)
    )
    orders = result.scalars().all()

    return [_map_order(o) for o in orders], total


async def list_orders_for_export(
    db: AsyncSession,
    filters: PSBOrderFilters,
) -> list[PSBOrder]:
    result = await db.execute(
        orders_export_stmt(build_order_filters(filters))
    )
    return list(result.scalars().all())


# =========================
# GET
# =========================
async def get_order(db: AsyncSession, order_id: int) -> PSBOrderOut:
    return _map_order(await _load_order(db, order_id))


# =========================
# CREATE
# =========================
async def create_order(
    db: AsyncSession,
    payload: PSBOrderCreate,
    user: User,
) -> PSBOrderOut:
    # max + 1, not safe against concurrent creates; the unique index on
    # `no` turns a lost race into a 409
    no = await next_order_no(db)

    order = PSBOrder(
        **payload.model_dump(),
        no=no,
        created_by_id=user.id,
    )
    db.add(order)

    try:
        await db.commit()
    except IntegrityError as exc:
        await db.rollback()
        if not is_order_no_conflict(exc):
            raise
        logger.warning("Sequence number taken", extra={"no": no})
        raise AppException(
            409,
            "Order number sequence conflict. Please retry.",
            ErrorCode.PSB_ORDER_NO_CONFLICT,
        )

    logger.info(
        "PSB order created",
        extra={"order_id": order.id, "no": no, "user_id": user.id},
    )
    return _map_order(await _load_order(db, order.id))


# =========================
# UPDATE
# =========================
async def update_order(
    db: AsyncSession,
    order_id: int,
    payload: PSBOrderUpdate,
    user: User,
) -> PSBOrderOut:
    order = await _load_order(db, order_id)

    updates = payload.model_dump(exclude_unset=True)
    if not updates:
        raise AppException(
            400,
            "No changes provided",
            ErrorCode.PSB_NO_CHANGES,
        )

    for field, value in updates.items():
        setattr(order, field, value)
    order.updated_by_id = user.id

    await db.commit()

    logger.info(
        "PSB order updated",
        extra={"order_id": order_id, "fields": sorted(updates), "user_id": user.id},
    )
    return _map_order(await _load_order(db, order_id))


# =========================
# DELETE
# =========================
async def delete_order(db: AsyncSession, order_id: int, user: User) -> None:
    order = await _load_order(db, order_id)

    await db.delete(order)
    await db.commit()

    logger.info(
        "PSB order deleted",
        extra={"order_id": order_id, "no": order.no, "user_id": user.id},
    )
