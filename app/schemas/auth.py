"""Pydantic schemas for authentication."""

from typing import Literal

from pydantic import BaseModel

Role = Literal["super_admin", "admin", "agent", "user"]


class TokenUser(BaseModel):
    """Lightweight user representation from JWT claims. No DB query needed."""

    id: str
    username: str = ""
    role: Role
    email: str = ""
    tenant_id: str | None = None
