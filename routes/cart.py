"""
Storefront shopper state: one cart per channel and store, plus retail favorites.

``scope_id`` is whatever the storefront scopes its state by (store id or
subdomain); nothing here touches the database.
"""
from fastapi import APIRouter, Depends

from core.storage import ClientStorage, get_client_storage
from models.store import Channel
from schemas.cart import CartItemIn, CartOut, CartQuantityIn, FavoritesOut, FavoriteToggled
from services.cart import CART_KINDS, Cart, CartItem, Favorites

router = APIRouter(prefix="/storefront", tags=["cart"])


def _cart(channel: Channel, scope_id: str, storage: ClientStorage) -> Cart:
    return Cart(storage, CART_KINDS[channel.value], scope_id)


def _cart_out(cart: Cart) -> dict:
    return {"items": cart.items, "total": cart.total, "item_count": cart.item_count}


def _favorites_out(favorites: Favorites) -> dict:
    return {"product_ids": favorites.product_ids, "count": favorites.count}


@router.get("/{channel}/{scope_id}/cart", response_model=CartOut)
def get_cart(channel: Channel, scope_id: str, storage: ClientStorage = Depends(get_client_storage)):
    return _cart_out(_cart(channel, scope_id, storage))


@router.post("/{channel}/{scope_id}/cart/items", response_model=CartOut)
def add_cart_item(channel: Channel, scope_id: str, data: CartItemIn, storage: ClientStorage = Depends(get_client_storage)):
    cart = _cart(channel, scope_id, storage)
    item = CartItem(productId=data.product_id, name=data.name, price=data.price, image=data.image, unit=data.unit)
    cart.add_item(item, data.quantity)
    return _cart_out(cart)


@router.put("/{channel}/{scope_id}/cart/items/{product_id}", response_model=CartOut)
def update_cart_item(
    channel: Channel,
    scope_id: str,
    product_id: str,
    data: CartQuantityIn,
    storage: ClientStorage = Depends(get_client_storage),
):
    cart = _cart(channel, scope_id, storage)
    cart.update_quantity(product_id, data.quantity)
    return _cart_out(cart)


@router.delete("/{channel}/{scope_id}/cart/items/{product_id}", response_model=CartOut)
def remove_cart_item(channel: Channel, scope_id: str, product_id: str, storage: ClientStorage = Depends(get_client_storage)):
    cart = _cart(channel, scope_id, storage)
    cart.remove(product_id)
    return _cart_out(cart)


@router.delete("/{channel}/{scope_id}/cart", response_model=CartOut)
def clear_cart(channel: Channel, scope_id: str, storage: ClientStorage = Depends(get_client_storage)):
    cart = _cart(channel, scope_id, storage)
    cart.clear()
    return _cart_out(cart)


@router.get("/retail/{scope_id}/favorites", response_model=FavoritesOut)
def get_favorites(scope_id: str, storage: ClientStorage = Depends(get_client_storage)):
    return _favorites_out(Favorites(storage, scope_id))


@router.post("/retail/{scope_id}/favorites/{product_id}", response_model=FavoriteToggled)
def toggle_favorite(scope_id: str, product_id: str, storage: ClientStorage = Depends(get_client_storage)):
    favorites = Favorites(storage, scope_id)
    state = favorites.toggle(product_id)
    return {**_favorites_out(favorites), "is_favorite": state}


@router.delete("/retail/{scope_id}/favorites", response_model=FavoritesOut)
def clear_favorites(scope_id: str, storage: ClientStorage = Depends(get_client_storage)):
    favorites = Favorites(storage, scope_id)
    favorites.clear()
    return _favorites_out(favorites)
