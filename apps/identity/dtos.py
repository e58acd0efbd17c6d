"""DTOs for Identity app."""
from dataclasses import dataclass
from datetime import datetime
from uuid import UUID
from typing import Optional

from ninja import Schema


@dataclass(frozen=True)
class Principal:
    """
    The verified identity attached to one request.

    Built by IdentityMiddleware from a session token and passed explicitly
    into every service call that authorizes or mutates; never persisted.
    """
    user_id: UUID
    email: Optional[str]
    display_name: Optional[str]


@dataclass(frozen=True)
class UserDTO:
    id: UUID
    email: str
    display_name: Optional[str]
    created_at: datetime


class UserOut(Schema):
    id: UUID
    email: str
    display_name: Optional[str] = None
    created_at: datetime


class GoogleLoginSchema(Schema):
    id_token: str


class TokenResponse(Schema):
    success: bool
    user: Optional[UserOut] = None
    access_token: Optional[str] = None
    message: Optional[str] = None
