from typing import Iterable, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from spacevox.models.product import Product
from spacevox.models.product_image import ProductImage


class ProductRepository:
    def __init__(self, db: Session):
        self.db = db

    def get(self, product_id: str) -> Optional[Product]:
        return (
            self.db.query(Product)
            .options(selectinload(Product.images))
            .filter(Product.id == product_id)
            .first()
        )

    def get_for_update(self, product_id: str) -> Optional[Product]:
        """
        Load the product row with SELECT ... FOR UPDATE.
        Dialects without row locks (sqlite) silently ignore FOR UPDATE.
        """
        return (
            self.db.query(Product)
            .filter(Product.id == product_id)
            .with_for_update()
            .first()
        )

    def list(self, user_id: Optional[str] = None) -> List[Product]:
        query = self.db.query(Product).options(selectinload(Product.images))
        if user_id is not None:
            query = query.filter(Product.user_id == user_id)
        return query.order_by(Product.created_at.desc()).all()

    def create(
        self,
        user_id: str,
        title: str,
        description: str,
        price: int = 0,
        image_urls: Iterable[str] = (),
    ) -> Product:
        p = Product(user_id=user_id, title=title, description=description, price=price)
        self.db.add(p)
        self.db.flush()
        self.append_images(p, image_urls)
        return p

    def max_image_order(self, product_id: str) -> Optional[int]:
        return (
            self.db.query(func.max(ProductImage.sort_order))
            .filter(ProductImage.product_id == product_id)
            .scalar()
        )

    def append_images(self, product: Product, image_urls: Iterable[str]) -> List[ProductImage]:
        current = self.max_image_order(product.id)
        next_order = 0 if current is None else current + 1
        added = []
        for offset, url in enumerate(image_urls):
            img = ProductImage(product_id=product.id, image_url=url, sort_order=next_order + offset)
            self.db.add(img)
            added.append(img)
        self.db.flush()
        if added:
            self.db.refresh(product, attribute_names=["images"])
        return added

    def get_image(self, product_id: str, image_id: str) -> Optional[ProductImage]:
        return (
            self.db.query(ProductImage)
            .filter(ProductImage.id == image_id, ProductImage.product_id == product_id)
            .first()
        )

    def delete(self, product: Product):
        self.db.delete(product)
        self.db.flush()
