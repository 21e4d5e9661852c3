from datetime import datetime
from typing import Literal, Optional

from pydantic import EmailStr, Field, field_validator

from spacevox.schemas.base import CamelModel
from spacevox.utils.timeutil import as_utc


class UserOut(CamelModel):
    id: str
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    profile_image_url: Optional[str] = None
    role: str
    created_at: Optional[datetime] = None

    @field_validator("created_at")
    @classmethod
    def ensure_utc(cls, v):
        return as_utc(v)


class SignupIn(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=8)
    first_name: Optional[str] = None
    last_name: Optional[str] = None


class LoginIn(CamelModel):
    email: EmailStr
    password: str


class AuthOut(CamelModel):
    token: str
    user: UserOut


class RoleIn(CamelModel):
    role: Literal["user", "admin"]
