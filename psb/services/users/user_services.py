from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from psb.models.users.user_models import User
from psb.schemas.users.user_schemas import UserCreateSchema
from psb.core.security import hash_password
from psb.core.exceptions import AppException
from psb.constants.error_codes import ErrorCode
from psb.utils.logger import get_logger

logger = get_logger(__name__)

ALLOWED_ROLES = {"admin", "operator"}


async def create_user(db: AsyncSession, payload: UserCreateSchema) -> User:
    if payload.role not in ALLOWED_ROLES:
        raise AppException(400, "Invalid role", ErrorCode.USER_ROLE_INVALID)

    exists = await db.scalar(select(User.id).where(User.username == payload.email))
    if exists:
        raise AppException(400, "User already exists", ErrorCode.USER_EMAIL_EXISTS)

    user = User(
        username=payload.email,
        name=payload.name,
        password_hash=hash_password(payload.password),
        role=payload.role,
    )

    db.add(user)
    await db.commit()
    await db.refresh(user)

    logger.info("User created", extra={"user_id": user.id, "role": user.role})
    return user
