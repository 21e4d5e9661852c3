import logging
from typing import Optional, Tuple

from sqlalchemy.orm import Session

from spacevox.auth.auth_handler import create_access_token, hash_password, verify_password
from spacevox.models.user import ROLES, User
from spacevox.repositories.user_repo import UserRepository

log = logging.getLogger("auth")


class AuthServiceException(Exception):
    pass


class UserExistsError(AuthServiceException):
    pass


class InvalidCredentialsError(AuthServiceException):
    pass


class UserNotFoundError(AuthServiceException):
    pass


class InvalidRoleError(AuthServiceException):
    pass


class AuthService:
    def __init__(self, db: Session):
        self.db = db
        self.users = UserRepository(db)

    def signup(
        self,
        email: str,
        password: str,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
    ) -> Tuple[str, User]:
        if self.users.get_by_email(email):
            raise UserExistsError("User already exists")
        user = self.users.create(
            email=email,
            password_hash=hash_password(password),
            first_name=first_name,
            last_name=last_name,
        )
        self.db.commit()
        self.db.refresh(user)
        log.info("signup user=%s", user.id)
        return create_access_token(user), user

    def login(self, email: str, password: str) -> Tuple[str, User]:
        user = self.users.get_by_email(email)
        if not user or not verify_password(password, user.password):
            raise InvalidCredentialsError("Invalid credentials")
        return create_access_token(user), user

    def get_user(self, user_id: str) -> Optional[User]:
        return self.users.get(user_id)

    def list_users(self):
        return self.users.list()

    def update_role(self, user_id: str, role: str) -> User:
        if role not in ROLES:
            raise InvalidRoleError("Invalid role. Must be 'user' or 'admin'")
        user = self.users.get(user_id)
        if not user:
            raise UserNotFoundError("User not found")
        user.role = role
        self.db.commit()
        self.db.refresh(user)
        log.info("role change user=%s role=%s", user.id, role)
        return user
