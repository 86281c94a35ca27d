from datetime import datetime
from typing import Optional

from pydantic import EmailStr, Field

from eventreg.models.user import UserRole

from .base import APIModel


# Properties to receive via API on creation
class UserCreate(APIModel):
    username: str = Field(..., min_length=1)
    email: EmailStr
    password: str = Field(..., min_length=1)


class UserLogin(APIModel):
    email: EmailStr
    password: str


class User(APIModel):
    id: int
    username: str
    email: EmailStr
    role: UserRole
    created_at: Optional[datetime] = None


class Token(APIModel):
    token: str
    role: UserRole
    token_type: str = "bearer"


class TokenPayload(APIModel):
    sub: Optional[str] = None
    exp: Optional[int] = None
    jti: Optional[str] = None


class Message(APIModel):
    message: str
