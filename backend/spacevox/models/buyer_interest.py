from uuid import uuid4

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    text,
)
from sqlalchemy.orm import relationship

from spacevox.db import Base
from spacevox.utils.timeutil import utcnow

INTEREST_STATUSES = ("active", "missed", "completed")


class BuyerInterest(Base):
    __tablename__ = "buyer_interests"
    __table_args__ = (
        # one queue slot per position among active interests of a product
        Index(
            "unique_active_position",
            "product_id",
            "position",
            unique=True,
            sqlite_where=text("status = 'active'"),
            postgresql_where=text("status = 'active'"),
        ),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    product_id = Column(
        String(36), ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True
    )
    buyer_name = Column(Text, nullable=False)
    phone = Column(String(16), nullable=True)  # E.164
    email = Column(String(320), nullable=True)
    sms_opt_in = Column(Boolean, nullable=False, default=False)
    pickup_time = Column(DateTime(timezone=True), nullable=False)
    offer_price = Column(Integer, nullable=True)  # cents, NULL means free
    status = Column(String(16), nullable=False, default="active")  # active, missed, completed
    position = Column(Integer, nullable=True)  # NULL unless active
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    product = relationship("Product", back_populates="interests")

    def __repr__(self):
        return (
            f"<BuyerInterest id={self.id} product={self.product_id} "
            f"status={self.status} position={self.position}>"
        )
