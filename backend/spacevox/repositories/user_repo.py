from typing import List, Optional

from sqlalchemy.orm import Session

from spacevox.models.user import User


class UserRepository:
    def __init__(self, db: Session):
        self.db = db

    def get(self, user_id: str) -> Optional[User]:
        return self.db.get(User, user_id)

    def get_by_email(self, email: str) -> Optional[User]:
        return self.db.query(User).filter(User.email == email.lower()).first()

    def list(self) -> List[User]:
        return self.db.query(User).order_by(User.created_at.desc()).all()

    def create(
        self,
        email: str,
        password_hash: str,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
        role: str = "user",
    ) -> User:
        u = User(
            email=email.lower(),
            password=password_hash,
            first_name=first_name,
            last_name=last_name,
            role=role,
        )
        self.db.add(u)
        self.db.flush()
        return u
