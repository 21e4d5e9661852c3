import logging
from typing import Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from spacevox.models.product import PRODUCT_STATUSES, Product
from spacevox.repositories.interest_repo import BuyerInterestRepository
from spacevox.repositories.product_repo import ProductRepository
from spacevox.services.queue_service import can_manage
from spacevox.utils.transactions import LockTimeout, product_transaction

log = logging.getLogger("products")

UPDATABLE_FIELDS = ("title", "description", "price", "status")


class ProductServiceException(Exception):
    pass


class ProductNotFound(ProductServiceException):
    pass


class ProductGone(ProductServiceException):
    pass


class ProductForbidden(ProductServiceException):
    pass


class ProductValidationError(ProductServiceException):
    pass


class ProductService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = ProductRepository(db)
        self.interests = BuyerInterestRepository(db)

    def _get_managed(self, product_id: str, actor) -> Product:
        product = self.get(product_id)
        if not can_manage(product, actor):
            raise ProductForbidden("Forbidden: You can only update your own products")
        return product

    def get(self, product_id: str) -> Product:
        product = self.repo.get(product_id)
        if not product:
            raise ProductNotFound("Product not found")
        return product

    def list_for_owner(self, user_id: str) -> List[Product]:
        return self.repo.list(user_id=user_id)

    def list_all(self) -> List[Product]:
        return self.repo.list()

    def create(
        self,
        owner,
        title: str,
        description: str,
        price: Optional[int] = None,
        image_urls: Iterable[str] = (),
    ) -> Product:
        """Create the product and its images (sort order 0..n-1) in one transaction."""
        product = self.repo.create(
            user_id=owner.id,
            title=title,
            description=description,
            price=price or 0,
            image_urls=list(image_urls or ()),
        )
        self.db.commit()
        product = self.get(product.id)
        log.info("created product=%s owner=%s images=%d", product.id, owner.id, len(product.images))
        return product

    def public_view(self, product_id: str) -> Dict:
        product = self.get(product_id)
        if not product.is_active:
            raise ProductGone("This listing is no longer available")
        return {
            "id": product.id,
            "title": product.title,
            "description": product.description,
            "price": product.price,
            "image_url": product.images[0].image_url if product.images else None,
            "images": product.images,
            "queue_length": self.interests.count_active(product.id),
        }

    def update(self, product_id: str, fields: Dict, actor) -> Product:
        unknown = set(fields) - set(UPDATABLE_FIELDS)
        if unknown:
            raise ProductValidationError(f"Cannot update fields: {', '.join(sorted(unknown))}")
        if "status" in fields and fields["status"] not in PRODUCT_STATUSES:
            raise ProductValidationError(f"Invalid status: {fields['status']}")
        for key in ("title", "price", "status"):
            if key in fields and fields[key] is None:
                raise ProductValidationError(f"{key} must not be null")
        if fields.get("price") is not None and fields["price"] < 0:
            raise ProductValidationError("Price must not be negative")

        product = self._get_managed(product_id, actor)
        for key, value in fields.items():
            setattr(product, key, value if value is not None else "")
        self.db.commit()
        log.info("updated product=%s fields=%s", product_id, sorted(fields))
        return self.get(product_id)

    def add_images(self, product_id: str, image_urls: Iterable[str], actor) -> Product:
        """Append images after the current last sort order, under the product lock."""
        self._get_managed(product_id, actor)
        try:
            with product_transaction(self.db, product_id):
                product = self.repo.get_for_update(product_id)
                if not product:
                    raise ProductNotFound("Product not found")
                added = self.repo.append_images(product, image_urls)
        except LockTimeout as e:
            raise ProductServiceException(str(e))
        log.info("added %d images to product=%s", len(added), product_id)
        return self.get(product_id)

    def remove_image(self, product_id: str, image_id: str, actor):
        self._get_managed(product_id, actor)
        img = self.repo.get_image(product_id, image_id)
        if not img:
            raise ProductNotFound("Image not found")
        self.db.delete(img)
        self.db.commit()

    def delete(self, product_id: str):
        product = self.get(product_id)
        self.repo.delete(product)
        self.db.commit()
        log.info("deleted product=%s", product_id)
