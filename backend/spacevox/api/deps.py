from fastapi import Depends, HTTPException
from fastapi.security import OAuth2PasswordBearer

from spacevox.auth.auth_handler import decode_token
from spacevox.config import settings
from spacevox.db import SessionLocal
from spacevox.models.user import User
from spacevox.utils.rate_limit import FixedWindowRateLimiter

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)

join_limiter = FixedWindowRateLimiter(
    max_requests=settings.JOIN_RATE_LIMIT_MAX,
    window_seconds=settings.JOIN_RATE_LIMIT_WINDOW_SECONDS,
    message="Too many join requests from this IP, please try again later.",
)


def get_current_user(token: str = Depends(oauth2_scheme)) -> User:
    if not token:
        raise HTTPException(status_code=401, detail="Not authenticated")
    claims = decode_token(token)
    if not claims or not claims.get("sub"):
        raise HTTPException(status_code=401, detail="Invalid token")
    # short-lived session so the request session starts with no open transaction
    with SessionLocal() as s:
        user = s.get(User, claims["sub"])
    if not user:
        raise HTTPException(status_code=401, detail="User not found")
    return user


def get_admin_user(user: User = Depends(get_current_user)) -> User:
    if user.role != "admin":
        raise HTTPException(status_code=403, detail="Admin access required")
    return user
