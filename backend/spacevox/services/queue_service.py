import logging
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from spacevox.models.buyer_interest import INTEREST_STATUSES, BuyerInterest
from spacevox.models.product import Product
from spacevox.repositories.interest_repo import BuyerInterestRepository
from spacevox.repositories.product_repo import ProductRepository
from spacevox.utils.timeutil import as_utc, utcnow
from spacevox.utils.transactions import LockTimeout, product_transaction

log = logging.getLogger("queue")

# fields a caller may change through update(); position is owned by the queue
UPDATABLE_FIELDS = (
    "buyer_name",
    "phone",
    "email",
    "sms_opt_in",
    "pickup_time",
    "offer_price",
    "status",
)
REQUIRED_FIELDS = ("buyer_name", "sms_opt_in", "pickup_time", "status")


class QueueServiceException(Exception):
    pass


class ProductNotFoundError(QueueServiceException):
    pass


class InterestNotFoundError(QueueServiceException):
    pass


class ProductUnavailableError(QueueServiceException):
    pass


class DuplicateContactError(QueueServiceException):
    pass


class QueueValidationError(QueueServiceException):
    pass


class PermissionDeniedError(QueueServiceException):
    pass


class InvalidStatusTransitionError(QueueValidationError):
    pass


class QueueBusyError(QueueServiceException):
    pass


def can_manage(product: Product, actor) -> bool:
    return actor is not None and (actor.role == "admin" or product.user_id == actor.id)


class QueueService:
    """
    FIFO pickup queue per product.

    Every mutation of a product's queue runs in one transaction while holding
    that product's lock, so active positions stay unique, dense and zero-based.
    """

    def __init__(self, db: Session):
        self.db = db
        self.products = ProductRepository(db)
        self.interests = BuyerInterestRepository(db)

    def _now(self) -> datetime:
        return utcnow()

    def _lock_product(self, product_id: str) -> Product:
        product = self.products.get_for_update(product_id)
        if not product:
            raise ProductNotFoundError("Product not found")
        return product

    def _renumber(self, product_id: str) -> int:
        """Reassign positions 0..N-1 to the active interests, keeping their order."""
        active = self.interests.active(product_id)
        for idx, interest in enumerate(active):
            if interest.position != idx:
                interest.position = idx
                # one statement per row, in ascending order, so the partial
                # unique index never sees two rows on the same slot
                self.db.flush()
        return len(active)

    def join(self, product_id: str, buyer: Dict) -> BuyerInterest:
        """
        buyer: {buyer_name, phone, email, sms_opt_in, pickup_time, offer_price}
        Appends a new active interest at the tail of the product's queue.
        """
        phone = buyer.get("phone") or None
        email = buyer.get("email") or None
        if not phone and not email:
            raise QueueValidationError(
                "Please provide at least one contact method (phone or email)"
            )
        try:
            with product_transaction(self.db, product_id):
                product = self._lock_product(product_id)
                if not product.is_active:
                    raise ProductUnavailableError("This listing is no longer available")

                if self.interests.find_active_by_contact(product_id, phone, email):
                    raise DuplicateContactError(
                        "You're already in the queue for this item with this contact information"
                    )

                position = self.interests.next_position(product_id)
                interest = self.interests.add(
                    BuyerInterest(
                        product_id=product_id,
                        buyer_name=buyer["buyer_name"],
                        phone=phone,
                        email=email,
                        sms_opt_in=bool(buyer.get("sms_opt_in", False)),
                        pickup_time=as_utc(buyer["pickup_time"]),
                        offer_price=buyer.get("offer_price"),
                        status="active",
                        position=position,
                    )
                )
        except LockTimeout as e:
            raise QueueBusyError(str(e))

        self.db.refresh(interest)
        log.info(
            "joined queue product=%s interest=%s position=%s",
            product_id,
            interest.id,
            interest.position,
        )
        return interest

    def list_for_product(self, product_id: str) -> List[BuyerInterest]:
        return self.interests.list_for_product(product_id)

    def list_all(self) -> List[BuyerInterest]:
        return self.interests.list_all()

    def queue_length(self, product_id: str) -> int:
        return self.interests.count_active(product_id)

    def sweep_missed(self, now: Optional[datetime] = None) -> List[str]:
        """
        Mark active interests whose pickup time has passed as missed and close
        the gaps they leave. Each product is swept in its own transaction; a
        product that fails is rolled back, logged and skipped.
        Returns the ids of interests marked missed.
        """
        now = as_utc(now) if now else self._now()
        product_ids = self.interests.overdue_product_ids(now)

        missed_ids: List[str] = []
        for product_id in product_ids:
            try:
                with product_transaction(self.db, product_id):
                    self._lock_product(product_id)
                    overdue = self.interests.overdue(product_id, now)
                    ids = []
                    for interest in overdue:
                        interest.status = "missed"
                        interest.position = None
                        ids.append(interest.id)
                    self.db.flush()
                    remaining = self._renumber(product_id)
            except Exception:
                log.exception("sweep failed for product %s; rolled back", product_id)
                continue
            missed_ids.extend(ids)
            log.info(
                "sweep product=%s missed=%d remaining_active=%d",
                product_id,
                len(ids),
                remaining,
            )
        return missed_ids

    def get_interest(self, interest_id: str) -> BuyerInterest:
        interest = self.interests.get(interest_id)
        if not interest:
            raise InterestNotFoundError("Buyer interest not found")
        return interest

    def update(self, interest_id: str, fields: Dict, actor=None) -> BuyerInterest:
        """
        Partial update of a buyer interest by the product owner or an admin.
        Leaving the active status clears the position and renumbers the rest
        of the queue in the same transaction.
        """
        unknown = set(fields) - set(UPDATABLE_FIELDS)
        if unknown:
            raise QueueValidationError(f"Cannot update fields: {', '.join(sorted(unknown))}")
        for key in REQUIRED_FIELDS:
            if key in fields and fields[key] is None:
                raise QueueValidationError(f"{key} must not be null")
        new_status = fields.get("status")
        if new_status is not None and new_status not in INTEREST_STATUSES:
            raise InvalidStatusTransitionError(f"Invalid status: {new_status}")

        product_id = self.get_interest(interest_id).product_id

        try:
            with product_transaction(self.db, product_id):
                product = self._lock_product(product_id)
                interest = self.get_interest(interest_id)
                if not can_manage(product, actor):
                    raise PermissionDeniedError(
                        "Forbidden: You can only manage buyers for your own products"
                    )

                was_active = interest.status == "active"
                if new_status == "active" and not was_active:
                    raise InvalidStatusTransitionError(
                        "An interest cannot be reactivated; join the queue again"
                    )

                if "phone" in fields or "email" in fields:
                    phone = fields.get("phone", interest.phone)
                    email = fields.get("email", interest.email)
                    if not phone and not email:
                        raise QueueValidationError(
                            "Please provide at least one contact method (phone or email)"
                        )
                    if was_active and self.interests.find_active_by_contact(
                        product_id, phone, email, exclude_id=interest.id
                    ):
                        raise DuplicateContactError(
                            "Another buyer in this queue already uses this contact information"
                        )

                for key, value in fields.items():
                    if key == "pickup_time":
                        value = as_utc(value)
                    setattr(interest, key, value)

                if was_active and interest.status != "active":
                    interest.position = None
                    self.db.flush()
                    self._renumber(product_id)
                self.db.flush()
        except LockTimeout as e:
            raise QueueBusyError(str(e))

        self.db.refresh(interest)
        log.info("updated interest=%s status=%s", interest.id, interest.status)
        return interest

    def approve(self, interest_id: str, actor=None) -> BuyerInterest:
        return self.update(interest_id, {"status": "completed"}, actor=actor)

    def deny(self, interest_id: str, actor=None) -> BuyerInterest:
        return self.update(interest_id, {"status": "missed"}, actor=actor)
