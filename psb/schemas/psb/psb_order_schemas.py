# psb/schemas/psb/psb_order_schemas.py

from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from datetime import datetime

from psb.models.enums.psb_order_status import PSBOrderStatus
from psb.schemas.users.user_schemas import UserRef

REQUIRED_ORDER_FIELDS = (
    "cluster",
    "sto",
    "order_no",
    "customer_name",
    "customer_phone",
    "address",
    "package",
)


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


class PSBOrderBase(BaseModel):
    cluster: str = Field(min_length=1, max_length=100)
    sto: str = Field(min_length=1, max_length=100)
    order_no: str = Field(min_length=1, max_length=100)
    customer_name: str = Field(min_length=1, max_length=255)
    customer_phone: str = Field(min_length=1, max_length=30)
    address: str = Field(min_length=1)
    package: str = Field(min_length=1, max_length=150)
    status: PSBOrderStatus = PSBOrderStatus.PENDING
    technician: Optional[str] = Field(None, max_length=150)
    notes: Optional[str] = None

    class Config:
        str_strip_whitespace = True

    @field_validator("technician", "notes")
    @classmethod
    def optional_text(cls, v):
        return _blank_to_none(v)


class PSBOrderCreate(PSBOrderBase):
    pass


class PSBOrderUpdate(BaseModel):
    cluster: Optional[str] = Field(None, min_length=1, max_length=100)
    sto: Optional[str] = Field(None, min_length=1, max_length=100)
    order_no: Optional[str] = Field(None, min_length=1, max_length=100)
    customer_name: Optional[str] = Field(None, min_length=1, max_length=255)
    customer_phone: Optional[str] = Field(None, min_length=1, max_length=30)
    address: Optional[str] = Field(None, min_length=1)
    package: Optional[str] = Field(None, min_length=1, max_length=150)
    status: Optional[PSBOrderStatus] = None
    technician: Optional[str] = Field(None, max_length=150)
    notes: Optional[str] = None

    class Config:
        str_strip_whitespace = True

    @field_validator(*REQUIRED_ORDER_FIELDS, "status")
    @classmethod
    def not_null(cls, v):
        if v is None:
            raise ValueError("field cannot be null")
        return v

    @field_validator("technician", "notes")
    @classmethod
    def optional_text(cls, v):
        return _blank_to_none(v)


class PSBOrderOut(BaseModel):
    id: int
    no: int
    order_no: str
    customer_name: str
    customer_phone: str
    address: str
    cluster: str
    sto: str
    package: str
    status: PSBOrderStatus
    technician: Optional[str]
    notes: Optional[str]

    created_by: Optional[UserRef]
    updated_by: Optional[UserRef]

    created_at: datetime
    updated_at: Optional[datetime]

    class Config:
        from_attributes = True


class PSBOrderFilters(BaseModel):
    cluster: Optional[str] = None
    sto: Optional[str] = None
    status: Optional[PSBOrderStatus] = None
    search: Optional[str] = None


class PSBImportRowError(BaseModel):
    row: int
    error: str


class PSBImportResult(BaseModel):
    imported: int
    skipped: int
    errors: List[PSBImportRowError]
