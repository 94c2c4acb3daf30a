import asyncio
import os

from psb.core.db import AsyncSessionLocal, init_models
from psb.core.config import APP_ENV
from psb.core.exceptions import AppException
from psb.core.logging import setup_logging
from psb.schemas.users.user_schemas import UserCreateSchema
from psb.services.users.user_services import create_user
from psb.utils.logger import get_logger

logger = get_logger(__name__)


async def create_admin():
    if APP_ENV == "development":
        await init_models()

    payload = UserCreateSchema(
        email=os.getenv("ADMIN_EMAIL", "admin@psbtracker.com"),
        name=os.getenv("ADMIN_NAME", "Administrator"),
        password=os.getenv("ADMIN_PASSWORD", "admin123"),
        role="admin",
    )

    async with AsyncSessionLocal() as session:
        try:
            user = await create_user(session, payload)
        except AppException as exc:
            logger.warning("Admin not created: %s", exc.detail)
            return
        logger.info("Admin user created: %s", user.username)


def main():
    setup_logging()
    asyncio.run(create_admin())


if __name__ == "__main__":
    main()
