import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.orm import Session

from spacevox.api.deps import get_current_user
from spacevox.db import get_db
from spacevox.models.user import User
from spacevox.schemas.buyer_interest_schema import BuyerInterestOut
from spacevox.schemas.product_schema import (
    ProductCreateIn,
    ProductImagesIn,
    ProductOut,
    ProductPublicOut,
    ProductUpdateIn,
)
from spacevox.services.product_service import (
    ProductForbidden,
    ProductGone,
    ProductNotFound,
    ProductService,
    ProductServiceException,
    ProductValidationError,
)
from spacevox.services.queue_service import QueueService, can_manage

router = APIRouter(prefix="/api/products", tags=["products"])
log = logging.getLogger("api.products")


def _raise_for(e: ProductServiceException, failure: str):
    if isinstance(e, ProductNotFound):
        raise HTTPException(status_code=404, detail=str(e))
    if isinstance(e, ProductForbidden):
        raise HTTPException(status_code=403, detail=str(e))
    if isinstance(e, ProductGone):
        raise HTTPException(status_code=410, detail=str(e))
    if isinstance(e, ProductValidationError):
        raise HTTPException(status_code=400, detail=str(e))
    log.error("%s: %s", failure, e)
    raise HTTPException(status_code=500, detail=failure)


@router.get("", response_model=List[ProductOut], summary="List my products")
def list_my_products(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    try:
        return ProductService(db).list_for_owner(user.id)
    except Exception:
        log.exception("listing products failed for user %s", user.id)
        raise HTTPException(status_code=500, detail="Failed to fetch products")


@router.post("", response_model=ProductOut, status_code=201, summary="Create product")
def create_product(
    payload: ProductCreateIn,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    svc = ProductService(db)
    try:
        return svc.create(
            user, payload.title, payload.description, payload.price, payload.image_urls
        )
    except Exception:
        log.exception("creating product failed for user %s", user.id)
        raise HTTPException(status_code=500, detail="Failed to create product")


@router.get("/{product_id}", response_model=ProductOut)
def get_product(product_id: str, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    try:
        return ProductService(db).get(product_id)
    except ProductServiceException as e:
        _raise_for(e, "Failed to fetch product")
    except Exception:
        log.exception("fetching product %s failed", product_id)
        raise HTTPException(status_code=500, detail="Failed to fetch product")


@router.get("/{product_id}/public", response_model=ProductPublicOut, summary="Public product view")
def get_public_product(product_id: str, db: Session = Depends(get_db)):
    try:
        return ProductService(db).public_view(product_id)
    except ProductServiceException as e:
        _raise_for(e, "Failed to fetch product")
    except Exception:
        log.exception("fetching product %s failed", product_id)
        raise HTTPException(status_code=500, detail="Failed to fetch product")


@router.patch("/{product_id}", response_model=ProductOut)
def update_product(
    product_id: str,
    payload: ProductUpdateIn,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        return ProductService(db).update(
            product_id, payload.model_dump(exclude_unset=True), actor=user
        )
    except ProductServiceException as e:
        _raise_for(e, "Failed to update product")
    except Exception:
        log.exception("updating product %s failed", product_id)
        raise HTTPException(status_code=500, detail="Failed to update product")


@router.post("/{product_id}/images", response_model=ProductOut, status_code=201)
def add_images(
    product_id: str,
    payload: ProductImagesIn,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        return ProductService(db).add_images(product_id, payload.image_urls, actor=user)
    except ProductServiceException as e:
        _raise_for(e, "Failed to add images")
    except Exception:
        log.exception("adding images to product %s failed", product_id)
        raise HTTPException(status_code=500, detail="Failed to add images")


@router.delete("/{product_id}/images/{image_id}", status_code=204)
def remove_image(
    product_id: str,
    image_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        ProductService(db).remove_image(product_id, image_id, actor=user)
    except ProductServiceException as e:
        _raise_for(e, "Failed to remove image")
    except Exception:
        log.exception("removing image %s from product %s failed", image_id, product_id)
        raise HTTPException(status_code=500, detail="Failed to remove image")
    return Response(status_code=204)


@router.get(
    "/{product_id}/buyer-interests",
    response_model=List[BuyerInterestOut],
    summary="Sweep missed buyers, then list the product's queue",
)
def list_product_interests(
    product_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        product = ProductService(db).get(product_id)
    except ProductServiceException as e:
        _raise_for(e, "Failed to fetch buyer interests")
    except Exception:
        log.exception("fetching product %s failed", product_id)
        raise HTTPException(status_code=500, detail="Failed to fetch buyer interests")
    if not can_manage(product, user):
        raise HTTPException(status_code=403, detail="Forbidden: not your product")

    svc = QueueService(db)
    try:
        svc.sweep_missed()
        return svc.list_for_product(product_id)
    except Exception:
        log.exception("listing buyer interests failed for product %s", product_id)
        raise HTTPException(status_code=500, detail="Failed to fetch buyer interests")
