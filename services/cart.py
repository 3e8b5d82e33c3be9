"""
Client-scoped cart and favorites state.

Each cart lives under ``{kind}_{scope_id}`` where the scope is the store id or
subdomain, so carts of different stores and channels never mix. Every change
is mirrored to storage right away; totals are derived on read and never
stored.
"""
from dataclasses import dataclass, asdict
from decimal import Decimal
from typing import List, Optional

from core.storage import ClientStorage

RETAIL_CART = "retail_cart"
WHOLESALE_CART = "wholesale_cart"
SHOWCASE_CART = "showcase_cart"
RETAIL_FAVORITES = "retail_favorites"

# Channel value -> cart kind
CART_KINDS = {"retail": RETAIL_CART, "wholesale": WHOLESALE_CART, "showcase": SHOWCASE_CART}


@dataclass
class CartItem:
    productId: str
    name: str
    price: float
    quantity: int = 1
    image: Optional[str] = None
    unit: str = "pcs"

    def __post_init__(self):
        # JSON-safe price
        if isinstance(self.price, Decimal):
            self.price = float(self.price)


def storage_key(kind: str, scope_id: str) -> str:
    return f"{kind}_{scope_id}"


def _parse_items(raw) -> List[CartItem]:
    items = []
    if not isinstance(raw, list):
        return items
    for entry in raw:
        try:
            item = CartItem(**entry)
        except TypeError:
            continue
        if isinstance(item.quantity, int) and item.quantity > 0:
            items.append(item)
    return items


class Cart:
    def __init__(self, storage: ClientStorage, kind: str, scope_id: str):
        self.storage = storage
        self.key = storage_key(kind, scope_id)
        self.items: List[CartItem] = _parse_items(storage.load(self.key, []))

    def _save(self) -> None:
        self.storage.save(self.key, [asdict(item) for item in self.items])

    def _find(self, product_id: str) -> Optional[CartItem]:
        for item in self.items:
            if item.productId == product_id:
                return item
        return None

    def add_item(self, item: CartItem, quantity: int = 1) -> None:
        """Add to the line for this product; a result of zero or less drops the line."""
        existing = self._find(item.productId)
        new_quantity = (existing.quantity if existing else 0) + quantity
        if new_quantity <= 0:
            self.remove(item.productId)
            return
        if existing:
            existing.quantity = new_quantity
        else:
            self.items.append(CartItem(**{**asdict(item), "quantity": quantity}))
        self._save()

    def update_quantity(self, product_id: str, quantity: int) -> None:
        if quantity <= 0:
            self.remove(product_id)
            return
        existing = self._find(product_id)
        if existing:
            existing.quantity = quantity
            self._save()

    def remove(self, product_id: str) -> None:
        self.items = [item for item in self.items if item.productId != product_id]
        self._save()

    def clear(self) -> None:
        self.items = []
        self._save()

    @property
    def total(self) -> Decimal:
        return sum((Decimal(str(item.price)) * item.quantity for item in self.items), Decimal("0"))

    @property
    def item_count(self) -> int:
        return sum(item.quantity for item in self.items)

    def order_lines(self) -> List[dict]:
        """Cart lines in the shape the order intake endpoints accept."""
        return [
            {
                "product_id": item.productId,
                "product_name": item.name,
                "quantity": item.quantity,
                "price": item.price,
                "unit": item.unit,
            }
            for item in self.items
        ]


class Favorites:
    def __init__(self, storage: ClientStorage, scope_id: str, kind: str = RETAIL_FAVORITES):
        self.storage = storage
        self.key = storage_key(kind, scope_id)
        raw = storage.load(self.key, [])
        self.product_ids: List[str] = [p for p in raw if isinstance(p, str)] if isinstance(raw, list) else []

    def _save(self) -> None:
        self.storage.save(self.key, self.product_ids)

    def toggle(self, product_id: str) -> bool:
        """Flip the product's favorite flag; returns the new state."""
        if product_id in self.product_ids:
            self.product_ids = [p for p in self.product_ids if p != product_id]
            self._save()
            return False
        self.product_ids.append(product_id)
        self._save()
        return True

    def is_favorite(self, product_id: str) -> bool:
        return product_id in self.product_ids

    def clear(self) -> None:
        self.product_ids = []
        self._save()

    @property
    def count(self) -> int:
        return len(self.product_ids)
