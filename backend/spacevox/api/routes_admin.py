import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.orm import Session

from spacevox.api.deps import get_admin_user
from spacevox.db import get_db
from spacevox.models.user import User
from spacevox.schemas.product_schema import ProductOut
from spacevox.schemas.user_schema import RoleIn, UserOut
from spacevox.services.auth_service import AuthService, InvalidRoleError, UserNotFoundError
from spacevox.services.product_service import ProductNotFound, ProductService

router = APIRouter(prefix="/api/admin", tags=["admin"])
log = logging.getLogger("api.admin")


@router.get("/products", response_model=List[ProductOut], summary="List products of all users")
def list_all_products(admin: User = Depends(get_admin_user), db: Session = Depends(get_db)):
    try:
        return ProductService(db).list_all()
    except Exception:
        log.exception("admin product listing failed")
        raise HTTPException(status_code=500, detail="Failed to fetch products")


@router.delete("/products/{product_id}", status_code=204, summary="Delete any product")
def delete_product(
    product_id: str, admin: User = Depends(get_admin_user), db: Session = Depends(get_db)
):
    try:
        ProductService(db).delete(product_id)
    except ProductNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception:
        log.exception("admin delete of product %s failed", product_id)
        raise HTTPException(status_code=500, detail="Failed to delete product")
    return Response(status_code=204)


@router.get("/users", response_model=List[UserOut])
def list_users(admin: User = Depends(get_admin_user), db: Session = Depends(get_db)):
    try:
        return AuthService(db).list_users()
    except Exception:
        log.exception("admin user listing failed")
        raise HTTPException(status_code=500, detail="Failed to fetch users")


@router.patch("/users/{user_id}/role", response_model=UserOut)
def update_user_role(
    user_id: str,
    payload: RoleIn,
    admin: User = Depends(get_admin_user),
    db: Session = Depends(get_db),
):
    svc = AuthService(db)
    try:
        return svc.update_role(user_id, payload.role)
    except InvalidRoleError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except UserNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception:
        log.exception("role change for user %s failed", user_id)
        raise HTTPException(status_code=500, detail="Failed to update user role")
