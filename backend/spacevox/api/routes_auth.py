import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from spacevox.api.deps import get_current_user
from spacevox.db import get_db
from spacevox.models.user import User
from spacevox.schemas.user_schema import AuthOut, LoginIn, SignupIn, UserOut
from spacevox.services.auth_service import (
    AuthService,
    InvalidCredentialsError,
    UserExistsError,
)

router = APIRouter(prefix="/api/auth", tags=["auth"])
log = logging.getLogger("api.auth")


@router.post("/signup", response_model=AuthOut, status_code=201)
def signup(payload: SignupIn, db: Session = Depends(get_db)):
    svc = AuthService(db)
    try:
        token, user = svc.signup(
            payload.email, payload.password, payload.first_name, payload.last_name
        )
    except UserExistsError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception:
        log.exception("signup failed")
        raise HTTPException(status_code=500, detail="Failed to create account")
    return {"token": token, "user": user}


@router.post("/login", response_model=AuthOut)
def login(payload: LoginIn, db: Session = Depends(get_db)):
    svc = AuthService(db)
    try:
        token, user = svc.login(payload.email, payload.password)
    except InvalidCredentialsError as e:
        raise HTTPException(status_code=401, detail=str(e))
    except Exception:
        log.exception("login failed")
        raise HTTPException(status_code=500, detail="Failed to log in")
    return {"token": token, "user": user}


@router.get("/me", response_model=UserOut)
def me(user: User = Depends(get_current_user)):
    return user
