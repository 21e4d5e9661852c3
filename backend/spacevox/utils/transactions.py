import os
from contextlib import contextmanager
from typing import Iterator, Optional

from filelock import FileLock, Timeout
from sqlalchemy.orm import Session

from spacevox.config import settings


class LockTimeout(Exception):
    """Raised when a per-product lock could not be acquired in time."""


def product_lock(product_id: str) -> FileLock:
    locks_dir = os.path.join(settings.LOCK_DIR, "spacevox_locks")
    os.makedirs(locks_dir, exist_ok=True)
    return FileLock(os.path.join(locks_dir, f"product_{product_id}.lock"))


@contextmanager
def product_transaction(
    session: Session, product_id: str, timeout: Optional[float] = None
) -> Iterator[Session]:
    """
    Run one transaction while holding the product's file lock.

    The file lock linearizes writers to a single product's queue even on
    backends without row locks (sqlite); callers also take
    SELECT ... FOR UPDATE on the product row inside the transaction, which is
    what serializes writers on postgres across processes.

    Whatever transaction the session already had open (usually the implicit
    one started by an earlier read) is committed first, so the block below
    always runs in its own top-level transaction that is committed before
    the lock is released.
    Usage:
        with product_transaction(db, product_id):
            ... DB work ...
    """
    if timeout is None:
        timeout = settings.QUEUE_LOCK_TIMEOUT_SECONDS
    if session.in_transaction():
        session.commit()

    lock = product_lock(product_id)
    try:
        lock.acquire(timeout=timeout)
    except Timeout:
        raise LockTimeout(f"Could not acquire lock for product {product_id}")
    try:
        with session.begin():
            yield session
    finally:
        lock.release()
