from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel

from models.catalog import CatalogProductStatus


class CatalogCreate(BaseModel):
    name: str
    access_code: Optional[str] = None


class CatalogOut(BaseModel):
    id: str
    name: str
    access_code: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class VisibilityIn(BaseModel):
    product_ids: List[str]


class ProductSettingsIn(BaseModel):
    markup_type: Optional[Literal["percent", "fixed"]] = None
    markup_value: Optional[float] = None
    status: Optional[CatalogProductStatus] = None
    categories: Optional[List[str]] = None


class ProductSettingsOut(BaseModel):
    catalog_id: str
    product_id: str
    markup_type: Optional[str] = None
    markup_value: Optional[float] = None
    status: Optional[str] = None
    categories: Optional[List[str]] = None

    class Config:
        from_attributes = True


class CategorySettingsIn(BaseModel):
    custom_name: Optional[str] = None
    sort_order: Optional[int] = None
    parent_category_id: Optional[str] = None


class CategorySettingsOut(BaseModel):
    catalog_id: str
    category_id: str
    custom_name: Optional[str] = None
    sort_order: Optional[int] = None
    parent_category_id: Optional[str] = None

    class Config:
        from_attributes = True
