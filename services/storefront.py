"""
Per-channel storefront assembly: store settings, the products exposed by the
channel's catalog, and the category list with product counts.

Steps run strictly in order since each one filters on the previous result:
store -> catalog gate -> products -> categories -> counts. A channel without a
bound catalog shows no products at all; it never falls back to the whole
store assortment.
"""
import enum
import logging
from collections import Counter
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, List, Optional, Set

from sqlalchemy import and_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from core.config import settings
from models.catalog import CatalogProductSettings, ProductCatalogVisibility, HIDDEN_STATUSES
from models.category import Category, CatalogCategorySettings
from models.product import Product, ProductCategoryAssignment
from models.store import Store, Channel, StoreStatus
from services.category_tree import CategoryNode, build_tree, descendant_ids, filter_to_populated, parent_chain

logger = logging.getLogger(__name__)


class FailureReason(str, enum.Enum):
    STORE_NOT_FOUND = "store_not_found"
    CHANNEL_NOT_ACTIVATED = "channel_not_activated"
    LOAD_FAILED = "load_failed"


NOT_ACTIVATED_MESSAGES = {
    Channel.RETAIL: "Retail store is not activated",
    Channel.WHOLESALE: "Wholesale store is not activated",
    Channel.SHOWCASE: "Showcase is not activated",
}


def _to_decimal(value) -> Decimal:
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


@dataclass
class StorefrontProduct:
    id: str
    name: str
    slug: str
    price: Decimal
    description: Optional[str] = None
    compare_price: Optional[Decimal] = None
    images: List[str] = field(default_factory=list)
    unit: str = "pcs"
    sku: Optional[str] = None
    quantity: int = 0
    category_id: Optional[str] = None
    category_ids: List[str] = field(default_factory=list)
    catalog_status: Optional[str] = None

    @property
    def category_set(self) -> Set[str]:
        ids = set(self.category_ids)
        if self.category_id:
            ids.add(self.category_id)
        return ids


@dataclass
class StorefrontData:
    store: Store
    channel: Channel
    catalog_id: Optional[str]
    products: List[StorefrontProduct]
    categories: List[CategoryNode]

    @property
    def tree(self) -> List[CategoryNode]:
        return build_tree(self.categories)

    @property
    def menu(self) -> List[CategoryNode]:
        return filter_to_populated(self.tree)


@dataclass
class StorefrontResult:
    data: Optional[StorefrontData] = None
    reason: Optional[FailureReason] = None
    message: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.data is not None

    @classmethod
    def failure(cls, reason: FailureReason, message: str) -> "StorefrontResult":
        return cls(reason=reason, message=message)


def catalog_price(product: Product, product_settings: Optional[CatalogProductSettings]) -> Decimal:
    """The product's own price, or its buy price plus the catalog markup when no price is set."""
    price = _to_decimal(product.price)
    if price > 0:
        return price
    buy_price = _to_decimal(product.buy_price)
    if buy_price <= 0 or product_settings is None:
        return price
    markup = _to_decimal(product_settings.markup_value)
    if product_settings.markup_type == "percent":
        return (buy_price * (1 + markup / 100)).quantize(Decimal("0.01"))
    if product_settings.markup_type == "fixed":
        return buy_price + markup
    return price


def fetch_catalog_products(db: Session, catalog_id: str) -> List[StorefrontProduct]:
    rows = (
        db.query(Product, CatalogProductSettings)
        .join(ProductCatalogVisibility, ProductCatalogVisibility.product_id == Product.id)
        .outerjoin(
            CatalogProductSettings,
            and_(CatalogProductSettings.product_id == Product.id, CatalogProductSettings.catalog_id == catalog_id),
        )
        .filter(
            ProductCatalogVisibility.catalog_id == catalog_id,
            Product.is_active.is_(True),
            Product.deleted_at.is_(None),
        )
        .order_by(Product.name)
        .all()
    )

    product_ids = [product.id for product, _ in rows]
    assigned: Dict[str, List[str]] = {}
    if product_ids:
        for assignment in db.query(ProductCategoryAssignment).filter(ProductCategoryAssignment.product_id.in_(product_ids)):
            assigned.setdefault(assignment.product_id, []).append(assignment.category_id)

    products: List[StorefrontProduct] = []
    for product, product_settings in rows:
        status = product_settings.status if product_settings else None
        if status in HIDDEN_STATUSES:
            continue
        price = catalog_price(product, product_settings)
        if price <= 0:
            continue

        catalog_categories = (product_settings.categories if product_settings else None) or []
        if catalog_categories:
            category_ids = list(catalog_categories)
            primary_category = catalog_categories[0]
        else:
            category_ids = assigned.get(product.id, [])
            primary_category = product.category_id

        products.append(
            StorefrontProduct(
                id=product.id,
                name=product.name,
                slug=product.slug,
                price=price,
                description=product.description,
                compare_price=product.compare_price,
                images=list(product.images or []),
                unit=product.unit or settings.DEFAULT_UNIT,
                sku=product.sku,
                quantity=product.quantity,
                category_id=primary_category,
                category_ids=category_ids,
                catalog_status=status,
            )
        )
    return products


def fetch_categories(db: Session, store_id: str, catalog_id: Optional[str]) -> List[CategoryNode]:
    categories = (
        db.query(Category)
        .filter(Category.store_id == store_id)
        .order_by(Category.sort_order, Category.name)
        .all()
    )
    overrides: Dict[str, CatalogCategorySettings] = {}
    if catalog_id:
        overrides = {
            s.category_id: s
            for s in db.query(CatalogCategorySettings).filter(CatalogCategorySettings.catalog_id == catalog_id)
        }

    nodes = []
    for category in categories:
        override = overrides.get(category.id)
        nodes.append(
            CategoryNode(
                id=category.id,
                name=category.name,
                slug=category.slug,
                parent_id=category.parent_id,
                sort_order=category.sort_order,
                image_url=category.image_url,
                custom_name=override.custom_name if override else None,
                catalog_parent_id=override.parent_category_id if override else None,
                catalog_sort_order=override.sort_order if override else None,
            )
        )
    return nodes


def count_products(categories: List[CategoryNode], products: List[StorefrontProduct]) -> None:
    """Direct product count per category; a product counts once per category."""
    counts: Counter = Counter()
    for product in products:
        counts.update(product.category_set)
    for node in categories:
        node.product_count = counts.get(node.id, 0)


def assemble(db: Session, store: Optional[Store], channel: Channel) -> StorefrontResult:
    if store is None:
        return StorefrontResult.failure(FailureReason.STORE_NOT_FOUND, "Store not found")
    if not store.channel_enabled(channel):
        return StorefrontResult.failure(FailureReason.CHANNEL_NOT_ACTIVATED, NOT_ACTIVATED_MESSAGES[channel])

    catalog_id = store.channel_catalog_id(channel)
    products = fetch_catalog_products(db, catalog_id) if catalog_id else []

    categories = fetch_categories(db, store.id, catalog_id)
    count_products(categories, products)

    return StorefrontResult(
        data=StorefrontData(store=store, channel=channel, catalog_id=catalog_id, products=products, categories=categories)
    )


def load_storefront(db: Session, subdomain: str, channel: Channel) -> StorefrontResult:
    try:
        store = (
            db.query(Store)
            .filter(Store.subdomain == subdomain.lower(), Store.status == StoreStatus.ACTIVE.value)
            .one_or_none()
        )
        return assemble(db, store, channel)
    except SQLAlchemyError:
        logger.exception("Error loading %s storefront for %s", channel.value, subdomain)
        return StorefrontResult.failure(FailureReason.LOAD_FAILED, "Failed to load store")


def load_storefront_by_store_id(db: Session, store_id: str, channel: Channel) -> StorefrontResult:
    try:
        store = (
            db.query(Store)
            .filter(Store.id == store_id, Store.status == StoreStatus.ACTIVE.value)
            .one_or_none()
        )
        return assemble(db, store, channel)
    except SQLAlchemyError:
        logger.exception("Error loading %s storefront for store %s", channel.value, store_id)
        return StorefrontResult.failure(FailureReason.LOAD_FAILED, "Failed to load store")


def products_in_category(data: StorefrontData, category_id: str) -> List[StorefrontProduct]:
    """Products filed under the category or any of its descendants."""
    ids = descendant_ids(category_id, data.tree)
    return [p for p in data.products if p.category_set & ids]


def find_product(data: StorefrontData, slug: str) -> Optional[StorefrontProduct]:
    """A product page only opens for products the channel's catalog lists."""
    return next((p for p in data.products if p.slug == slug), None)


def category_path(data: StorefrontData, category_id: Optional[str]) -> List[str]:
    """Breadcrumb ids from the root down to ``category_id``."""
    if not category_id:
        return []
    return list(reversed(parent_chain(category_id, data.categories))) + [category_id]
