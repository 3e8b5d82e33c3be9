from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Union

from sqlalchemy import String, DateTime, ForeignKey, Integer, Numeric, Boolean, Text, JSON, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from core.db import Base
from models.store import new_id


@dataclass(frozen=True)
class Active:
    pass


@dataclass(frozen=True)
class Trashed:
    at: datetime


ProductLifecycle = Union[Active, Trashed]


class Product(Base):
    __tablename__ = "products"
    __table_args__ = (UniqueConstraint("store_id", "slug", name="uq_products_store_slug"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    store_id: Mapped[str] = mapped_column(ForeignKey("stores.id", ondelete="CASCADE"), index=True)
    # Legacy single category, kept alongside the assignment table
    category_id: Mapped[str | None] = mapped_column(ForeignKey("categories.id", ondelete="SET NULL"), nullable=True, index=True)
    name: Mapped[str] = mapped_column(String(200), index=True)
    slug: Mapped[str] = mapped_column(String(220), index=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    price: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=0)
    buy_price: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    compare_price: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    images: Mapped[list] = mapped_column(JSON, default=list)
    unit: Mapped[str | None] = mapped_column(String(20), nullable=True)
    sku: Mapped[str | None] = mapped_column(String(100), nullable=True)
    quantity: Mapped[int] = mapped_column(Integer, default=0)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    store = relationship("Store")
    assignments = relationship("ProductCategoryAssignment", cascade="all, delete-orphan", back_populates="product")

    @property
    def lifecycle(self) -> ProductLifecycle:
        if self.deleted_at is None:
            return Active()
        return Trashed(at=self.deleted_at)

    @property
    def category_ids(self) -> list[str]:
        return [a.category_id for a in self.assignments]


class ProductCategoryAssignment(Base):
    __tablename__ = "product_categories"

    product_id: Mapped[str] = mapped_column(ForeignKey("products.id", ondelete="CASCADE"), primary_key=True)
    category_id: Mapped[str] = mapped_column(ForeignKey("categories.id", ondelete="CASCADE"), primary_key=True)

    product = relationship("Product", back_populates="assignments")
