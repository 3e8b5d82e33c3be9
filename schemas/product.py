from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel


class ProductCreate(BaseModel):
    name: str
    slug: str
    price: float = 0
    buy_price: Optional[float] = None
    compare_price: Optional[float] = None
    description: Optional[str] = None
    images: List[str] = []
    unit: Optional[str] = None
    sku: Optional[str] = None
    quantity: int = 0
    category_id: Optional[str] = None
    category_ids: List[str] = []


class ProductUpdate(BaseModel):
    name: Optional[str] = None
    price: Optional[float] = None
    buy_price: Optional[float] = None
    compare_price: Optional[float] = None
    description: Optional[str] = None
    images: Optional[List[str]] = None
    unit: Optional[str] = None
    sku: Optional[str] = None
    quantity: Optional[int] = None
    is_active: Optional[bool] = None
    category_id: Optional[str] = None
    category_ids: Optional[List[str]] = None


class ProductOut(BaseModel):
    id: str
    name: str
    slug: str
    price: float
    buy_price: Optional[float] = None
    compare_price: Optional[float] = None
    description: Optional[str] = None
    images: List[str] = []
    unit: Optional[str] = None
    sku: Optional[str] = None
    quantity: int
    is_active: bool
    category_id: Optional[str] = None
    category_ids: List[str] = []
    deleted_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class DescriptionRequest(BaseModel):
    product_ids: List[str]
    max_chars: int = 200
