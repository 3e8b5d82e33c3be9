from typing import List, Optional

from pydantic import BaseModel


class CategoryCreate(BaseModel):
    name: str
    slug: str
    parent_id: Optional[str] = None
    sort_order: Optional[int] = None
    image_url: Optional[str] = None


class CategoryUpdate(BaseModel):
    name: Optional[str] = None
    slug: Optional[str] = None
    parent_id: Optional[str] = None
    sort_order: Optional[int] = None
    image_url: Optional[str] = None


class CategoryOut(BaseModel):
    id: str
    name: str
    slug: str
    parent_id: Optional[str] = None
    sort_order: Optional[int] = None
    image_url: Optional[str] = None

    class Config:
        from_attributes = True


class CategoryNodeOut(BaseModel):
    id: str
    name: str
    slug: str
    image_url: Optional[str] = None
    parent_id: Optional[str] = None
    sort_order: Optional[int] = None
    product_count: int = 0
    total_product_count: int = 0
    children: List["CategoryNodeOut"] = []
