"""Pydantic schemas for user accounts.

UserRead has no password_hash / salt fields, so credentials can't leak
through a response even when an ORM User is returned directly.
"""

from datetime import datetime
from typing import Optional

from tollgate.schemas.auth import CamelModel


class UserCreate(CamelModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


class UserUpdate(CamelModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


class UserRead(CamelModel):
    id: int
    first_name: str
    last_name: str
    email: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class UserWritten(CamelModel):
    message: str
    user: UserRead
