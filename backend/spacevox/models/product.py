from uuid import uuid4

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from spacevox.db import Base
from spacevox.utils.timeutil import utcnow

PRODUCT_STATUSES = ("active", "sold", "removed")


class Product(Base):
    __tablename__ = "products"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    user_id = Column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    title = Column(Text, nullable=False)
    description = Column(Text, nullable=False, default="")
    price = Column(Integer, nullable=False, default=0)  # cents
    status = Column(String(16), nullable=False, default="active")  # active, sold, removed
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    owner = relationship("User", back_populates="products")
    images = relationship(
        "ProductImage",
        back_populates="product",
        order_by="ProductImage.sort_order",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    interests = relationship(
        "BuyerInterest",
        back_populates="product",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @property
    def is_active(self) -> bool:
        return self.status == "active"

    def __repr__(self):
        return f"<Product id={self.id} title={self.title!r} status={self.status}>"
