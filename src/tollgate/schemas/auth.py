"""Pydantic schemas for the auth routes.

Response keys are camelCase on the wire (sessionExpires, firstName, ...),
snake_case in Python. Request fields are optional at the schema level so
a missing field becomes a 400 from the service, not a 422 from FastAPI.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# ─── Requests ─────────────────────────────────────────────

class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class SessionRequest(BaseModel):
    session: Optional[str] = None


# ─── Responses ────────────────────────────────────────────

class UserIdRead(CamelModel):
    id: int


class UserProfileRead(CamelModel):
    id: int
    email: str
    first_name: str
    last_name: str


class LoginResponse(CamelModel):
    user: UserIdRead
    token: str
    session: str
    session_expires: datetime


class SessionVerifyResponse(CamelModel):
    user_id: int
    user: UserProfileRead
    expires_at: datetime


class TokenVerifyResponse(CamelModel):
    user_id: int
    expires_at: datetime


class MessageResponse(BaseModel):
    message: str
