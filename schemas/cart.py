from typing import List, Optional

from pydantic import BaseModel, Field


class CartItemIn(BaseModel):
    product_id: str = Field(alias="productId")
    name: str
    price: float = Field(ge=0)
    quantity: int = 1
    image: Optional[str] = None
    unit: str = "pcs"

    class Config:
        populate_by_name = True


class CartQuantityIn(BaseModel):
    quantity: int


class CartLineOut(BaseModel):
    productId: str
    name: str
    price: float
    quantity: int
    image: Optional[str] = None
    unit: str

    class Config:
        from_attributes = True


class CartOut(BaseModel):
    items: List[CartLineOut]
    total: float
    item_count: int


class FavoritesOut(BaseModel):
    product_ids: List[str]
    count: int


class FavoriteToggled(FavoritesOut):
    is_favorite: bool
