import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from spacevox.api.deps import get_admin_user, get_current_user, join_limiter
from spacevox.db import get_db
from spacevox.models.user import User
from spacevox.schemas.buyer_interest_schema import (
    BuyerInterestIn,
    BuyerInterestOut,
    BuyerInterestUpdateIn,
)
from spacevox.services.queue_service import (
    DuplicateContactError,
    InterestNotFoundError,
    PermissionDeniedError,
    ProductNotFoundError,
    ProductUnavailableError,
    QueueService,
    QueueServiceException,
    QueueValidationError,
)

router = APIRouter(prefix="/api/buyer-interests", tags=["buyer-interests"])
log = logging.getLogger("api.queue")


def _raise_for(e: QueueServiceException, failure: str):
    if isinstance(e, QueueValidationError):
        raise HTTPException(status_code=400, detail=str(e))
    if isinstance(e, PermissionDeniedError):
        raise HTTPException(status_code=403, detail=str(e))
    if isinstance(e, (ProductNotFoundError, InterestNotFoundError)):
        raise HTTPException(status_code=404, detail=str(e))
    if isinstance(e, DuplicateContactError):
        raise HTTPException(status_code=409, detail=str(e))
    if isinstance(e, ProductUnavailableError):
        raise HTTPException(status_code=410, detail=str(e))
    log.error("%s: %s", failure, e)
    raise HTTPException(status_code=500, detail=failure)


@router.post(
    "",
    response_model=BuyerInterestOut,
    status_code=201,
    dependencies=[Depends(join_limiter)],
    summary="Join a product's pickup queue",
)
def join_queue(payload: BuyerInterestIn, db: Session = Depends(get_db)):
    svc = QueueService(db)
    buyer = payload.model_dump(exclude={"product_id"})
    try:
        return svc.join(payload.product_id, buyer)
    except QueueServiceException as e:
        _raise_for(e, "Failed to join queue")
    except Exception:
        log.exception("join failed for product %s", payload.product_id)
        raise HTTPException(status_code=500, detail="Failed to join queue")


@router.get("", response_model=List[BuyerInterestOut], summary="Sweep, then list all interests")
def list_interests(admin: User = Depends(get_admin_user), db: Session = Depends(get_db)):
    svc = QueueService(db)
    try:
        svc.sweep_missed()
        return svc.list_all()
    except Exception:
        log.exception("listing buyer interests failed")
        raise HTTPException(status_code=500, detail="Failed to fetch buyer interests")


@router.patch("/{interest_id}", response_model=BuyerInterestOut)
def update_interest(
    interest_id: str,
    payload: BuyerInterestUpdateIn,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    svc = QueueService(db)
    try:
        return svc.update(interest_id, payload.model_dump(exclude_unset=True), actor=user)
    except QueueServiceException as e:
        _raise_for(e, "Failed to update buyer interest")


@router.post("/{interest_id}/approve", response_model=BuyerInterestOut)
def approve_interest(
    interest_id: str, user: User = Depends(get_current_user), db: Session = Depends(get_db)
):
    try:
        return QueueService(db).approve(interest_id, actor=user)
    except QueueServiceException as e:
        _raise_for(e, "Failed to approve buyer")


@router.post("/{interest_id}/deny", response_model=BuyerInterestOut)
def deny_interest(
    interest_id: str, user: User = Depends(get_current_user), db: Session = Depends(get_db)
):
    try:
        return QueueService(db).deny(interest_id, actor=user)
    except QueueServiceException as e:
        _raise_for(e, "Failed to deny buyer")
