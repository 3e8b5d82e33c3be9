from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class StoreCreate(BaseModel):
    name: str
    subdomain: str
    description: Optional[str] = None
    logo_url: Optional[str] = None
    custom_domain: Optional[str] = None
    wholesale_custom_domain: Optional[str] = None
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None


class StoreUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    logo_url: Optional[str] = None
    status: Optional[str] = None
    custom_domain: Optional[str] = None
    wholesale_custom_domain: Optional[str] = None
    retail_enabled: Optional[bool] = None
    wholesale_enabled: Optional[bool] = None
    showcase_enabled: Optional[bool] = None
    retail_name: Optional[str] = None
    wholesale_name: Optional[str] = None
    showcase_name: Optional[str] = None
    retail_logo_url: Optional[str] = None
    wholesale_logo_url: Optional[str] = None
    showcase_logo_url: Optional[str] = None
    retail_theme: Optional[dict] = None
    wholesale_theme: Optional[dict] = None
    showcase_theme: Optional[dict] = None
    retail_catalog_id: Optional[str] = None
    wholesale_catalog_id: Optional[str] = None
    showcase_catalog_id: Optional[str] = None
    wholesale_min_order_amount: Optional[float] = None
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None


class StoreOut(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    subdomain: str
    custom_domain: Optional[str] = None
    wholesale_custom_domain: Optional[str] = None
    logo_url: Optional[str] = None
    status: str
    retail_enabled: bool
    wholesale_enabled: bool
    showcase_enabled: bool
    retail_catalog_id: Optional[str] = None
    wholesale_catalog_id: Optional[str] = None
    showcase_catalog_id: Optional[str] = None
    wholesale_min_order_amount: Optional[float] = None
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class NotificationSettingsIn(BaseModel):
    email_enabled: bool = False
    notification_email: Optional[str] = None


class NotificationSettingsOut(BaseModel):
    store_id: str
    email_enabled: bool
    notification_email: Optional[str] = None

    class Config:
        from_attributes = True


class DomainResolutionOut(BaseModel):
    kind: str
    hostname: str
    is_custom_domain: bool
    store_id: Optional[str] = None
    subdomain: Optional[str] = None
    channel: Optional[str] = None
