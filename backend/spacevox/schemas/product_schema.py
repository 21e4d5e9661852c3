from datetime import datetime
from typing import List, Literal, Optional

from pydantic import Field, field_validator

from spacevox.schemas.base import CamelModel
from spacevox.utils.timeutil import as_utc


class ProductImageOut(CamelModel):
    id: str
    product_id: str
    image_url: str
    sort_order: int


class ProductOut(CamelModel):
    id: str
    user_id: str
    title: str
    description: str
    price: int
    status: str
    created_at: datetime
    images: List[ProductImageOut] = []

    @field_validator("created_at")
    @classmethod
    def ensure_utc(cls, v):
        return as_utc(v)


class ProductPublicOut(CamelModel):
    id: str
    title: str
    description: str
    price: int
    image_url: Optional[str] = None
    images: List[ProductImageOut] = []
    queue_length: int


class ProductCreateIn(CamelModel):
    title: str = Field(..., min_length=1)
    description: str = ""
    price: Optional[int] = Field(None, ge=0)  # cents
    image_urls: List[str] = []


class ProductUpdateIn(CamelModel):
    title: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    price: Optional[int] = Field(None, ge=0)
    status: Optional[Literal["active", "sold", "removed"]] = None


class ProductImagesIn(CamelModel):
    image_urls: List[str] = Field(..., min_length=1)
