from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from core.db import get_db
from core.tenancy import get_current_store
from models.product import Product
from models.store import Store
from schemas.product import DescriptionRequest
from services import ai_gateway

router = APIRouter(prefix="/ai", tags=["ai"])


@router.post("/product-description")
def generate_product_description(data: DescriptionRequest, store: Store = Depends(get_current_store), db: Session = Depends(get_db)):
    """Suggest descriptions for the store's products; nothing is saved."""
    if not data.product_ids:
        raise HTTPException(status_code=400, detail="product_ids is required")
    products = (
        db.query(Product)
        .filter(Product.store_id == store.id, Product.id.in_(data.product_ids))
        .all()
    )
    if not products:
        raise HTTPException(status_code=404, detail="Product not found")
    descriptions = ai_gateway.generate_descriptions(
        [{"id": p.id, "name": p.name} for p in products],
        max_chars=data.max_chars,
    )
    return {"descriptions": descriptions}
