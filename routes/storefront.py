from dataclasses import asdict
from typing import List, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from core.db import get_db
from core.errors import NotActivated, NotFound, UpstreamFailure
from models.store import Channel
from schemas.storefront import StorefrontOut, StorefrontProductDetailOut, StorefrontProductOut
from services.storefront import (
    FailureReason,
    StorefrontData,
    StorefrontResult,
    category_path,
    find_product,
    load_storefront,
    load_storefront_by_store_id,
    products_in_category,
)

router = APIRouter(prefix="/storefront", tags=["storefront"])


def unwrap(result: StorefrontResult) -> StorefrontData:
    """Turn a failed storefront result into the matching HTTP error."""
    if result.ok:
        return result.data
    if result.reason == FailureReason.STORE_NOT_FOUND:
        raise NotFound(result.message)
    if result.reason == FailureReason.CHANNEL_NOT_ACTIVATED:
        raise NotActivated(result.message)
    raise UpstreamFailure(result.message, status_code=status.HTTP_503_SERVICE_UNAVAILABLE)


def serialize(data: StorefrontData) -> dict:
    store, channel = data.store, data.channel
    return {
        "store": {
            "id": store.id,
            "subdomain": store.subdomain,
            "name": store.channel_name(channel),
            "description": store.description,
            "logo_url": store.channel_logo_url(channel),
            "theme": store.channel_theme(channel),
            "contact_email": store.contact_email,
            "contact_phone": store.contact_phone,
            "wholesale_min_order_amount": store.wholesale_min_order_amount if channel == Channel.WHOLESALE else None,
        },
        "channel": channel.value,
        "catalog_id": data.catalog_id,
        "products": data.products,
        "categories": [
            {
                "id": node.id,
                "name": node.display_name,
                "slug": node.slug,
                "parent_id": node.effective_parent_id,
                "sort_order": node.effective_sort_order,
                "image_url": node.image_url,
                "product_count": node.product_count,
            }
            for node in data.categories
        ],
        "menu": [node.to_dict() for node in data.menu],
    }


@router.get("/stores/{store_id}/{channel}", response_model=StorefrontOut)
def get_storefront_by_store_id(store_id: str, channel: Channel, db: Session = Depends(get_db)):
    """Storefront for a store already resolved from its custom domain."""
    return serialize(unwrap(load_storefront_by_store_id(db, store_id, channel)))


@router.get("/{channel}/{subdomain}", response_model=StorefrontOut)
def get_storefront(channel: Channel, subdomain: str, db: Session = Depends(get_db)):
    return serialize(unwrap(load_storefront(db, subdomain, channel)))


@router.get("/{channel}/{subdomain}/products", response_model=List[StorefrontProductOut])
def list_storefront_products(channel: Channel, subdomain: str, category_id: Optional[str] = None, db: Session = Depends(get_db)):
    data = unwrap(load_storefront(db, subdomain, channel))
    if category_id:
        return products_in_category(data, category_id)
    return data.products


@router.get("/{channel}/{subdomain}/products/{slug}", response_model=StorefrontProductDetailOut)
def get_storefront_product(channel: Channel, subdomain: str, slug: str, db: Session = Depends(get_db)):
    data = unwrap(load_storefront(db, subdomain, channel))
    product = find_product(data, slug)
    if product is None:
        raise NotFound("Product not found")
    return {**asdict(product), "category_path": category_path(data, product.category_id)}
