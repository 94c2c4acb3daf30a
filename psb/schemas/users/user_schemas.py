from pydantic import BaseModel, EmailStr, Field
from typing import Optional


class UserCreateSchema(BaseModel):
    email: EmailStr
    name: str = Field(min_length=1, max_length=150)
    password: str = Field(min_length=6)
    role: str = "operator"


class UserRef(BaseModel):
    """Compact user reference embedded in PSB order payloads."""

    id: int
    name: Optional[str] = None
    email: str
