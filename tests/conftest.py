import asyncio
import os
import tempfile
from datetime import datetime

_TMP_DIR = tempfile.mkdtemp(prefix="psb-tests-")

# config is read at import time
os.environ["APP_ENV"] = "development"
os.environ["DB_TYPE"] = "sqlite"
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TMP_DIR}/psb_test.db"
os.environ["JWT_SECRET_KEY"] = "test-secret-key"

import pytest
from fastapi.testclient import TestClient

from psb.core.db import Base, engine, AsyncSessionLocal
from psb.models.psb.psb_order_models import PSBOrder
from psb.models.enums.psb_order_status import PSBOrderStatus
from psb.schemas.users.user_schemas import UserCreateSchema
from psb.services.users.user_services import create_user

ADMIN_EMAIL = "admin@psbtracker.com"
OPERATOR_EMAIL = "operator@psbtracker.com"
PASSWORD = "secret123"


async def _reset_db():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)


async def _create_user(email: str, name: str, role: str) -> int:
    async with AsyncSessionLocal() as db:
        user = await create_user(
            db,
            UserCreateSchema(email=email, name=name, password=PASSWORD, role=role),
        )
        return user.id


async def _insert_orders(rows: list[dict]) -> None:
    async with AsyncSessionLocal() as db:
        db.add_all(PSBOrder(**row) for row in rows)
        await db.commit()


def order_payload(**overrides) -> dict:
    payload = {
        "cluster": "Bandung Barat",
        "sto": "CMI",
        "order_no": "SC-1001",
        "customer_name": "Budi Santoso",
        "customer_phone": "081234567890",
        "address": "Jl. Merdeka No. 10",
        "package": "Indihome 50 Mbps",
        "status": "Pending",
        "technician": "Andi",
        "notes": None,
    }
    payload.update(overrides)
    return payload


def order_row(no: int, **overrides) -> dict:
    """Column values for inserting an order straight into the table."""
    row = {
        "no": no,
        "order_no": f"SC-{no:04d}",
        "customer_name": f"Customer {no}",
        "customer_phone": f"0812{no:08d}",
        "address": f"Jl. Test {no}",
        "cluster": "Bandung Barat",
        "sto": "CMI",
        "package": "Indihome 20 Mbps",
        "status": PSBOrderStatus.PENDING,
        "technician": None,
        "created_at": datetime(2024, 6, 15, 10, 0, 0),
    }
    row.update(overrides)
    return row


@pytest.fixture
def client():
    asyncio.run(_reset_db())

    from main import app

    with TestClient(app) as c:
        yield c


@pytest.fixture
def admin_id(client):
    return asyncio.run(_create_user(ADMIN_EMAIL, "Admin PSB", "admin"))


@pytest.fixture
def operator_id(client):
    return asyncio.run(_create_user(OPERATOR_EMAIL, "Operator PSB", "operator"))


def _login(client, email: str) -> dict:
    resp = client.post("/auth/login", json={"email": email, "password": PASSWORD})
    assert resp.status_code == 200, resp.text
    token = resp.json()["data"]["auth"]["access_token"]
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_headers(client, admin_id):
    return _login(client, ADMIN_EMAIL)


@pytest.fixture
def operator_headers(client, operator_id):
    return _login(client, OPERATOR_EMAIL)


@pytest.fixture
def seed_orders(client, admin_id):
    def _seed(rows: list[dict]):
        asyncio.run(
            _insert_orders([{**row, "created_by_id": admin_id} for row in rows])
        )
    return _seed
