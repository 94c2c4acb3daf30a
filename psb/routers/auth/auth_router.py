from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from psb.core.db import get_db
from psb.schemas.auth.auth_schemas import (
    LoginRequest,
    RefreshRequest,
    LoginData,
    AuthTokens,
)
from psb.services.auth.auth_service import (
    login_user,
    refresh_tokens,
    logout_user,
)
from psb.utils.get_user import get_current_user
from psb.utils.response import APIResponse, success_response
from psb.utils.logger import get_logger

logger = get_logger("auth.router")

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post("/login", response_model=APIResponse[LoginData])
async def login(
    payload: LoginRequest,
    db: AsyncSession = Depends(get_db),
):
    logger.info("Login attempt", extra={"email": payload.email})
    data = await login_user(db, payload.email, payload.password)
    return success_response("Login successful", data)


@router.post("/refresh", response_model=APIResponse[AuthTokens])
async def refresh(
    payload: RefreshRequest,
    db: AsyncSession = Depends(get_db),
):
    logger.info("Token refresh attempt")
    tokens = await refresh_tokens(db, payload.refresh_token)
    return success_response("Token refreshed", tokens)


@router.post("/logout", response_model=APIResponse[None])
async def logout(
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user),
):
    logger.info("Logout request", extra={"user_id": current_user.id})
    await logout_user(db, current_user)
    return success_response("Logged out successfully")
