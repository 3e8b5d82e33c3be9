from typing import List, Optional

from pydantic import BaseModel

from schemas.category import CategoryNodeOut


class StorefrontStoreOut(BaseModel):
    id: str
    subdomain: str
    name: str
    description: Optional[str] = None
    logo_url: Optional[str] = None
    theme: dict = {}
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None
    wholesale_min_order_amount: Optional[float] = None


class StorefrontProductOut(BaseModel):
    id: str
    name: str
    slug: str
    price: float
    description: Optional[str] = None
    compare_price: Optional[float] = None
    images: List[str] = []
    unit: str
    sku: Optional[str] = None
    quantity: int = 0
    category_id: Optional[str] = None
    category_ids: List[str] = []
    catalog_status: Optional[str] = None

    class Config:
        from_attributes = True


class StorefrontCategoryOut(BaseModel):
    id: str
    name: str
    slug: str
    parent_id: Optional[str] = None
    sort_order: Optional[int] = None
    image_url: Optional[str] = None
    product_count: int = 0


class StorefrontOut(BaseModel):
    store: StorefrontStoreOut
    channel: str
    catalog_id: Optional[str] = None
    products: List[StorefrontProductOut]
    categories: List[StorefrontCategoryOut]
    menu: List[CategoryNodeOut]


class StorefrontProductDetailOut(StorefrontProductOut):
    category_path: List[str] = []
