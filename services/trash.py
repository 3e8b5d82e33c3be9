"""
Product trash: soft delete, restore and permanent removal.

A trashed product keeps its row with ``deleted_at`` set. Only trashed
products can be purged.
"""
import logging
from datetime import datetime
from typing import Callable, List, Optional

from sqlalchemy.orm import Session

from core.errors import NotFound, ValidationFailed
from core.realtime import ChangeEvent, ChangeFeed, LiveList, change_feed, row_snapshot
from models.product import Product, Active, Trashed

logger = logging.getLogger(__name__)


def get_product(db: Session, store_id: str, product_id: str) -> Product:
    product = db.query(Product).filter(Product.store_id == store_id, Product.id == product_id).one_or_none()
    if not product:
        raise NotFound("Product not found")
    return product


def list_active(db: Session, store_id: str) -> List[Product]:
    return (
        db.query(Product)
        .filter(Product.store_id == store_id, Product.deleted_at.is_(None))
        .order_by(Product.name)
        .all()
    )


def list_trash(db: Session, store_id: str) -> List[Product]:
    return (
        db.query(Product)
        .filter(Product.store_id == store_id, Product.deleted_at.is_not(None))
        .order_by(Product.deleted_at.desc())
        .all()
    )


def move_to_trash(db: Session, product: Product, at: Optional[datetime] = None) -> Product:
    if isinstance(product.lifecycle, Trashed):
        return product
    product.deleted_at = at or datetime.utcnow()
    db.commit()
    db.refresh(product)
    logger.info("Product %s moved to trash", product.id)
    return product


def restore(db: Session, product: Product) -> Product:
    if isinstance(product.lifecycle, Active):
        raise ValidationFailed("Product is not in trash")
    product.deleted_at = None
    db.commit()
    db.refresh(product)
    logger.info("Product %s restored from trash", product.id)
    return product


def purge(db: Session, product: Product) -> None:
    if isinstance(product.lifecycle, Active):
        raise ValidationFailed("Only products in trash can be deleted permanently")
    product_id = product.id
    db.delete(product)
    db.commit()
    logger.info("Product %s deleted permanently", product_id)


def _in_trash(row: dict) -> bool:
    return row.get("deleted_at") is not None


class TrashBin:
    """
    Live view of a store's trash, newest first.

    Seeded from the database, then kept current by product change events.
    Call ``close()`` (or use it as a context manager) when done with it.
    ``on_change`` receives the items whenever an event changes them.
    """

    def __init__(
        self,
        db: Session,
        store_id: str,
        feed: ChangeFeed = change_feed,
        on_change: Optional[Callable[[List[dict]], None]] = None,
    ):
        self.store_id = store_id
        self.view = LiveList(
            (row_snapshot(p) for p in list_trash(db, store_id)),
            accept=_in_trash,
            newest_first=True,
        )
        self.on_change = on_change
        self.subscription = feed.subscribe("products", self._apply, store_id=store_id)

    def _apply(self, change: ChangeEvent) -> None:
        before = self.view.items
        self.view.apply(change)
        after = self.view.items
        if self.on_change is not None and after != before:
            self.on_change(after)

    @property
    def items(self) -> List[dict]:
        return self.view.items

    @property
    def ids(self) -> List[str]:
        return [row["id"] for row in self.view.items]

    def close(self) -> None:
        self.subscription.unsubscribe()

    def __enter__(self) -> "TrashBin":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
