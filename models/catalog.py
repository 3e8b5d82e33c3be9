import enum
from datetime import datetime
from decimal import Decimal

from sqlalchemy import String, DateTime, ForeignKey, Numeric, JSON, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from core.db import Base
from models.store import new_id


class CatalogProductStatus(str, enum.Enum):
    IN_STOCK = "in_stock"
    PRE_ORDER = "pre_order"
    VISIBLE = "visible"
    HIDDEN = "hidden"
    OUT_OF_STOCK = "out_of_stock"


# Products with these statuses are not shown on a storefront
HIDDEN_STATUSES = {CatalogProductStatus.HIDDEN.value, CatalogProductStatus.OUT_OF_STOCK.value}


class Catalog(Base):
    __tablename__ = "catalogs"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    store_id: Mapped[str] = mapped_column(ForeignKey("stores.id", ondelete="CASCADE"), index=True)
    name: Mapped[str] = mapped_column(String(150))
    # Shared-link access for guest orders
    access_code: Mapped[str | None] = mapped_column(String(64), unique=True, nullable=True, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    store = relationship("Store")


class ProductCatalogVisibility(Base):
    __tablename__ = "product_catalog_visibility"

    catalog_id: Mapped[str] = mapped_column(ForeignKey("catalogs.id", ondelete="CASCADE"), primary_key=True)
    product_id: Mapped[str] = mapped_column(ForeignKey("products.id", ondelete="CASCADE"), primary_key=True)


class CatalogProductSettings(Base):
    __tablename__ = "catalog_product_settings"
    __table_args__ = (UniqueConstraint("catalog_id", "product_id", name="uq_catalog_product"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    catalog_id: Mapped[str] = mapped_column(ForeignKey("catalogs.id", ondelete="CASCADE"), index=True)
    product_id: Mapped[str] = mapped_column(ForeignKey("products.id", ondelete="CASCADE"), index=True)
    markup_type: Mapped[str | None] = mapped_column(String(20), nullable=True)  # percent, fixed
    markup_value: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    status: Mapped[str | None] = mapped_column(String(20), nullable=True)
    # Replaces the product's own category set inside this catalog when non-empty
    categories: Mapped[list | None] = mapped_column(JSON, nullable=True)
