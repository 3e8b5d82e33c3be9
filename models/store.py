import enum
import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import String, Boolean, DateTime, Text, JSON, Numeric, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column

from core.db import Base


class Channel(str, enum.Enum):
    RETAIL = "retail"
    WHOLESALE = "wholesale"
    SHOWCASE = "showcase"


class StoreStatus(str, enum.Enum):
    PENDING = "pending"
    ACTIVE = "active"
    SUSPENDED = "suspended"


def new_id() -> str:
    return str(uuid.uuid4())


class Store(Base):
    __tablename__ = "stores"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(150), index=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    subdomain: Mapped[str] = mapped_column(String(100), unique=True, index=True)
    custom_domain: Mapped[str | None] = mapped_column(String(255), unique=True, nullable=True, index=True)
    wholesale_custom_domain: Mapped[str | None] = mapped_column(String(255), unique=True, nullable=True, index=True)
    logo_url: Mapped[str | None] = mapped_column(String(500), nullable=True)

    # Tenant owner/admin
    owner_id: Mapped[str | None] = mapped_column(String(36), nullable=True, index=True)

    status: Mapped[str] = mapped_column(String(20), default=StoreStatus.PENDING.value, index=True)

    # Channels
    retail_enabled: Mapped[bool] = mapped_column(Boolean, default=False)
    wholesale_enabled: Mapped[bool] = mapped_column(Boolean, default=False)
    showcase_enabled: Mapped[bool] = mapped_column(Boolean, default=False)

    # Per-channel presentation overrides
    retail_name: Mapped[str | None] = mapped_column(String(150), nullable=True)
    wholesale_name: Mapped[str | None] = mapped_column(String(150), nullable=True)
    showcase_name: Mapped[str | None] = mapped_column(String(150), nullable=True)
    retail_logo_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    wholesale_logo_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    showcase_logo_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    retail_theme: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    wholesale_theme: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    showcase_theme: Mapped[dict | None] = mapped_column(JSON, nullable=True)

    # Catalog published on each channel; null means the channel shows no products
    retail_catalog_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    wholesale_catalog_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    showcase_catalog_id: Mapped[str | None] = mapped_column(String(36), nullable=True)

    wholesale_min_order_amount: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)

    # Contact & business info
    contact_email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    contact_phone: Mapped[str | None] = mapped_column(String(50), nullable=True)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @property
    def is_active(self) -> bool:
        return self.status == StoreStatus.ACTIVE.value

    def channel_enabled(self, channel: Channel) -> bool:
        return bool(getattr(self, f"{channel.value}_enabled"))

    def channel_catalog_id(self, channel: Channel) -> str | None:
        return getattr(self, f"{channel.value}_catalog_id")

    def channel_name(self, channel: Channel) -> str:
        return getattr(self, f"{channel.value}_name") or self.name

    def channel_logo_url(self, channel: Channel) -> str | None:
        return getattr(self, f"{channel.value}_logo_url") or self.logo_url

    def channel_theme(self, channel: Channel) -> dict:
        return getattr(self, f"{channel.value}_theme") or {}


class StoreNotificationSettings(Base):
    __tablename__ = "store_notification_settings"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    store_id: Mapped[str] = mapped_column(ForeignKey("stores.id", ondelete="CASCADE"), unique=True, index=True)
    email_enabled: Mapped[bool] = mapped_column(Boolean, default=False)
    notification_email: Mapped[str | None] = mapped_column(String(255), nullable=True)
