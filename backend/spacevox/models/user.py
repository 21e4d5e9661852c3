from uuid import uuid4

from sqlalchemy import Column, DateTime, String
from sqlalchemy.orm import relationship

from spacevox.db import Base
from spacevox.utils.timeutil import utcnow

ROLES = ("user", "admin")


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    email = Column(String(320), unique=True, index=True, nullable=False)
    password = Column(String(255), nullable=False)  # passlib hash
    first_name = Column(String(128), nullable=True)
    last_name = Column(String(128), nullable=True)
    profile_image_url = Column(String(1024), nullable=True)
    role = Column(String(16), nullable=False, default="user")  # user, admin
    facebook_id = Column(String(128), nullable=True)
    facebook_profile_url = Column(String(1024), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    products = relationship(
        "Product", back_populates="owner", cascade="all, delete-orphan", passive_deletes=True
    )

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    def __repr__(self):
        return f"<User email={self.email} role={self.role}>"
