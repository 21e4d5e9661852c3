from datetime import datetime
from typing import List, Optional

from sqlalchemy import case, func, or_
from sqlalchemy.orm import Session

from spacevox.models.buyer_interest import BuyerInterest

# active first, then completed, then everything else (missed)
_STATUS_RANK = case(
    (BuyerInterest.status == "active", 0),
    (BuyerInterest.status == "completed", 1),
    else_=2,
)


class BuyerInterestRepository:
    def __init__(self, db: Session):
        self.db = db

    def get(self, interest_id: str) -> Optional[BuyerInterest]:
        return self.db.get(BuyerInterest, interest_id)

    def list_for_product(self, product_id: str) -> List[BuyerInterest]:
        return (
            self.db.query(BuyerInterest)
            .filter(BuyerInterest.product_id == product_id)
            .order_by(
                _STATUS_RANK,
                BuyerInterest.position.is_(None),
                BuyerInterest.position,
                BuyerInterest.created_at,
                BuyerInterest.id,
            )
            .all()
        )

    def list_all(self) -> List[BuyerInterest]:
        return (
            self.db.query(BuyerInterest)
            .order_by(BuyerInterest.created_at, BuyerInterest.id)
            .all()
        )

    def active(self, product_id: str) -> List[BuyerInterest]:
        return (
            self.db.query(BuyerInterest)
            .filter(
                BuyerInterest.product_id == product_id,
                BuyerInterest.status == "active",
            )
            .order_by(BuyerInterest.position)
            .all()
        )

    def count_active(self, product_id: str) -> int:
        return (
            self.db.query(func.count(BuyerInterest.id))
            .filter(
                BuyerInterest.product_id == product_id,
                BuyerInterest.status == "active",
            )
            .scalar()
            or 0
        )

    def find_active_by_contact(
        self,
        product_id: str,
        phone: Optional[str],
        email: Optional[str],
        exclude_id: Optional[str] = None,
    ) -> Optional[BuyerInterest]:
        conditions = []
        if phone:
            conditions.append(BuyerInterest.phone == phone)
        if email:
            conditions.append(BuyerInterest.email == email)
        if not conditions:
            return None
        query = self.db.query(BuyerInterest).filter(
            BuyerInterest.product_id == product_id,
            BuyerInterest.status == "active",
            or_(*conditions),
        )
        if exclude_id is not None:
            query = query.filter(BuyerInterest.id != exclude_id)
        return (
            query
            .first()
        )

    def next_position(self, product_id: str) -> int:
        current = (
            self.db.query(func.max(BuyerInterest.position))
            .filter(
                BuyerInterest.product_id == product_id,
                BuyerInterest.status == "active",
            )
            .scalar()
        )
        return 0 if current is None else current + 1

    def overdue_product_ids(self, now: datetime) -> List[str]:
        rows = (
            self.db.query(BuyerInterest.product_id)
            .filter(
                BuyerInterest.status == "active",
                BuyerInterest.pickup_time < now,
            )
            .distinct()
            .all()
        )
        return [r[0] for r in rows]

    def overdue(self, product_id: str, now: datetime) -> List[BuyerInterest]:
        return (
            self.db.query(BuyerInterest)
            .filter(
                BuyerInterest.product_id == product_id,
                BuyerInterest.status == "active",
                BuyerInterest.pickup_time < now,
            )
            .all()
        )

    def add(self, interest: BuyerInterest) -> BuyerInterest:
        self.db.add(interest)
        self.db.flush()
        return interest
