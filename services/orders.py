"""
Order intake for guest (catalog link), retail and wholesale checkouts.

The order row and its items are written in two separate commits. When the
items fail to persist, the order row is deleted again so no empty order is
left behind. Store notifications are queued after the fact and never fail
the order.
"""
import enum
import logging
import random
import threading
import time
from decimal import Decimal
from typing import List

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from core.errors import NotActivated, NotFound, UpstreamFailure, ValidationFailed
from models.catalog import Catalog, ProductCatalogVisibility
from models.order import Order, OrderStatus
from models.order_item import OrderItem
from models.store import Store, Channel, StoreStatus
from schemas.order import GuestOrderCreate, OrderLineIn, StoreOrderCreate
from tasks.email_tasks import send_order_notification_task

logger = logging.getLogger(__name__)

BASE36_ALPHABET = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ"

_last_timestamp = 0
_timestamp_lock = threading.Lock()


class OrderSource(str, enum.Enum):
    GUEST = "guest"
    RETAIL = "retail"
    WHOLESALE = "wholesale"

    @property
    def prefix(self) -> str:
        return {"guest": "G", "retail": "R", "wholesale": "W"}[self.value]


def to_base36(number: int) -> str:
    if number == 0:
        return "0"
    digits = []
    while number:
        number, remainder = divmod(number, 36)
        digits.append(BASE36_ALPHABET[remainder])
    return "".join(reversed(digits))


def _next_timestamp() -> int:
    """Microseconds since the epoch, strictly increasing within this process."""
    global _last_timestamp
    with _timestamp_lock:
        _last_timestamp = max(time.time_ns() // 1000, _last_timestamp + 1)
        return _last_timestamp


def generate_order_number(source: OrderSource) -> str:
    """Channel prefix + base-36 microsecond timestamp + 4 random base-36 characters."""
    timestamp = to_base36(_next_timestamp())
    suffix = "".join(random.choices(BASE36_ALPHABET, k=4))
    return f"{source.prefix}{timestamp}{suffix}"


def _to_decimal(value: float | int | Decimal) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def _require(value: str | None, field: str) -> str:
    if not value or not value.strip():
        raise ValidationFailed(f"{field} is required")
    return value.strip()


def _optional(value: str | None) -> str | None:
    if value is None:
        return None
    return value.strip() or None


def validate_lines(items: List[OrderLineIn]) -> List[OrderLineIn]:
    if not items:
        raise ValidationFailed("items are required")
    for line in items:
        _require(line.product_name, "product_name")
        if line.quantity <= 0:
            raise ValidationFailed(f"Quantity for {line.product_name.strip()} must be greater than 0")
        if line.price < 0:
            raise ValidationFailed(f"Price for {line.product_name.strip()} cannot be negative")
    return items


def line_total(line: OrderLineIn) -> Decimal:
    return _to_decimal(line.price) * line.quantity


def compute_subtotal(items: List[OrderLineIn]) -> Decimal:
    return sum((line_total(line) for line in items), Decimal("0.00"))


def check_minimum_order(store: Store, total: Decimal) -> None:
    minimum = _to_decimal(store.wholesale_min_order_amount or 0)
    if total < minimum:
        raise ValidationFailed(f"Minimum order amount is {minimum}; add {minimum - total} more to place this order")


def _persist_items(db: Session, order: Order, items: List[OrderLineIn]) -> None:
    db.add_all(
        [
            OrderItem(
                order_id=order.id,
                product_id=line.product_id or None,
                product_name=_item_name(line),
                quantity=line.quantity,
                price=_to_decimal(line.price),
                total=line_total(line),
            )
            for line in items
        ]
    )
    db.commit()


def _item_name(line: OrderLineIn) -> str:
    name = line.product_name.strip()
    label = _optional(line.variant_label)
    return f"{name} ({label})" if label else name


def _discard_order(db: Session, order: Order) -> None:
    try:
        db.delete(order)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Failed to remove order %s after item persistence failure", order.order_number)


def persist_order(db: Session, order: Order, items: List[OrderLineIn]) -> Order:
    try:
        db.add(order)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Error creating order: %s", exc)
        raise UpstreamFailure("Failed to create order", status_code=500)

    try:
        _persist_items(db, order, items)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Error creating order items for %s: %s", order.order_number, exc)
        _discard_order(db, order)
        raise UpstreamFailure("Failed to create order items", status_code=500)

    db.refresh(order)
    return order


def notify_order_created(order: Order) -> None:
    try:
        send_order_notification_task.delay(order.id)
        logger.info("Notification queued for order %s", order.order_number)
    except Exception:
        logger.exception("Failed to queue notification for order %s (non-critical)", order.order_number)


def create_guest_order(db: Session, data: GuestOrderCreate) -> Order:
    access_code = _require(data.access_code, "access_code")
    guest_name = _require(data.guest_name, "guest_name")
    guest_phone = _require(data.guest_phone, "guest_phone")
    items = validate_lines(data.items)

    catalog = db.query(Catalog).filter(Catalog.access_code == access_code).one_or_none()
    if not catalog:
        raise NotFound("Invalid access code or catalog not found")

    # Products outside the catalog are reported, not rejected
    product_ids = [line.product_id for line in items if line.product_id]
    if product_ids:
        visible = {
            row.product_id
            for row in db.query(ProductCatalogVisibility).filter(
                ProductCatalogVisibility.catalog_id == catalog.id,
                ProductCatalogVisibility.product_id.in_(product_ids),
            )
        }
        missing = [pid for pid in product_ids if pid not in visible]
        if missing:
            logger.warning("Products not found in catalog %s: %s", catalog.id, missing)

    subtotal = compute_subtotal(items)
    order = Order(
        order_number=generate_order_number(OrderSource.GUEST),
        store_id=catalog.store_id,
        customer_id=None,
        guest_name=guest_name,
        guest_phone=guest_phone,
        is_guest_order=True,
        notes=_optional(data.guest_comment),
        subtotal=subtotal,
        total=subtotal,
        status=OrderStatus.PENDING.value,
    )
    persist_order(db, order, items)
    notify_order_created(order)
    logger.info("Guest order %s created for store %s via catalog %s, %d items, total %s",
                order.order_number, order.store_id, catalog.id, len(items), order.total)
    return order


def _create_store_order(db: Session, data: StoreOrderCreate, channel: Channel) -> Order:
    store_id = _require(data.store_id, "store_id")
    customer_name = _require(data.customer_name, "customer_name")
    customer_phone = _require(data.customer_phone, "customer_phone")
    customer_address = _require(data.customer_address, "customer_address")
    items = validate_lines(data.items)

    store = db.query(Store).filter(Store.id == store_id).one_or_none()
    if not store:
        raise NotFound("Store not found")
    if store.status != StoreStatus.ACTIVE.value:
        raise NotActivated("Store is not active")
    if not store.channel_enabled(channel):
        raise NotActivated(f"{channel.value.capitalize()} is not enabled for this store")

    subtotal = compute_subtotal(items)
    if channel == Channel.WHOLESALE:
        check_minimum_order(store, subtotal)

    comment = _optional(data.customer_comment)
    order = Order(
        order_number=generate_order_number(OrderSource(channel.value)),
        store_id=store.id,
        customer_id=None,
        guest_name=customer_name,
        guest_phone=customer_phone,
        is_guest_order=True,
        shipping_address={
            "name": customer_name,
            "phone": customer_phone,
            "address": customer_address,
            "comment": comment,
            "source": channel.value,
        },
        notes=comment,
        subtotal=subtotal,
        total=subtotal,
        status=OrderStatus.PENDING.value,
    )
    persist_order(db, order, items)
    notify_order_created(order)
    logger.info("%s order %s created for store %s, %d items, total %s",
                channel.value.capitalize(), order.order_number, store.id, len(items), order.total)
    return order


def create_retail_order(db: Session, data: StoreOrderCreate) -> Order:
    return _create_store_order(db, data, Channel.RETAIL)


def create_wholesale_order(db: Session, data: StoreOrderCreate) -> Order:
    return _create_store_order(db, data, Channel.WHOLESALE)
