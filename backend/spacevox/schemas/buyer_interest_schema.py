import re
from datetime import datetime
from typing import Literal, Optional

from pydantic import EmailStr, Field, field_validator, model_validator

from spacevox.schemas.base import CamelModel
from spacevox.utils.timeutil import as_utc

E164 = re.compile(r"^\+[1-9]\d{1,14}$")


def _blank_to_none(v):
    if isinstance(v, str) and not v.strip():
        return None
    return v


def _check_phone(v: Optional[str]) -> Optional[str]:
    if v is not None and not E164.match(v):
        raise ValueError(
            "Please enter a valid phone number in E.164 format (e.g., +12345678901)"
        )
    return v


class BuyerInterestOut(CamelModel):
    id: str
    product_id: str
    buyer_name: str
    phone: Optional[str] = None
    email: Optional[str] = None
    sms_opt_in: bool
    pickup_time: datetime
    offer_price: Optional[int] = None
    status: str
    position: Optional[int] = None
    created_at: datetime

    @field_validator("pickup_time", "created_at")
    @classmethod
    def ensure_utc(cls, v):
        return as_utc(v)


class BuyerInterestIn(CamelModel):
    product_id: str = Field(..., min_length=1)
    buyer_name: str = Field(..., min_length=1)
    phone: Optional[str] = None
    email: Optional[EmailStr] = None
    sms_opt_in: bool = False
    pickup_time: datetime
    offer_price: Optional[int] = Field(None, ge=0)  # cents, null means free

    @field_validator("phone", "email", mode="before")
    @classmethod
    def blank_contact_to_none(cls, v):
        return _blank_to_none(v)

    @field_validator("phone")
    @classmethod
    def check_phone(cls, v):
        return _check_phone(v)

    @field_validator("pickup_time")
    @classmethod
    def pickup_time_utc(cls, v):
        return as_utc(v)

    @model_validator(mode="after")
    def contact_required(self):
        if not self.phone and not self.email:
            raise ValueError("Please provide at least one contact method (phone or email)")
        return self


class BuyerInterestUpdateIn(CamelModel):
    buyer_name: Optional[str] = Field(None, min_length=1)
    phone: Optional[str] = None
    email: Optional[EmailStr] = None
    sms_opt_in: Optional[bool] = None
    pickup_time: Optional[datetime] = None
    offer_price: Optional[int] = Field(None, ge=0)
    status: Optional[Literal["active", "missed", "completed"]] = None

    @field_validator("phone", "email", mode="before")
    @classmethod
    def blank_contact_to_none(cls, v):
        return _blank_to_none(v)

    @field_validator("phone")
    @classmethod
    def check_phone(cls, v):
        return _check_phone(v)
