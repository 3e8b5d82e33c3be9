import asyncio
from typing import List

from fastapi import APIRouter, Depends, HTTPException, WebSocket, status
from fastapi.concurrency import run_in_threadpool
from fastapi.encoders import jsonable_encoder
from sqlalchemy.orm import Session

from core.db import get_db
from core.errors import AppError
from core.tenancy import find_store_for_domain, get_current_store, normalize_hostname
from models.category import Category
from models.product import Product, ProductCategoryAssignment
from models.store import Store
from schemas.product import ProductCreate, ProductUpdate, ProductOut
from services import trash

router = APIRouter(prefix="/products", tags=["products"])


def _check_categories(db: Session, store: Store, category_ids: List[str]) -> None:
    if not category_ids:
        return
    found = {
        c.id for c in db.query(Category).filter(Category.store_id == store.id, Category.id.in_(category_ids))
    }
    if found != set(category_ids):
        raise HTTPException(status_code=404, detail="Category not found for this store")


def _load(db: Session, store: Store, product_id: str) -> Product:
    try:
        return trash.get_product(db, store.id, product_id)
    except AppError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.message)


@router.get("/", response_model=List[ProductOut])
def list_products(store: Store = Depends(get_current_store), db: Session = Depends(get_db)):
    return trash.list_active(db, store.id)


@router.get("/trash", response_model=List[ProductOut])
def list_trash(store: Store = Depends(get_current_store), db: Session = Depends(get_db)):
    return trash.list_trash(db, store.id)


@router.websocket("/trash/live")
async def trash_live(websocket: WebSocket, db: Session = Depends(get_db)):
    """
    Push the store's trash on connect and again whenever it changes.
    The store is resolved from the handshake headers like the HTTP routes.
    """
    domain = normalize_hostname(websocket.headers.get("x-store-domain") or websocket.headers.get("host"))
    store = await run_in_threadpool(find_store_for_domain, db, domain) if domain else None
    if store is None:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()
    loop = asyncio.get_running_loop()
    updates: asyncio.Queue = asyncio.Queue()

    # Change events arrive on whichever thread committed the write
    def _queue(items):
        loop.call_soon_threadsafe(updates.put_nowait, items)

    live_trash = await run_in_threadpool(trash.TrashBin, db, store.id, on_change=_queue)
    closed = asyncio.ensure_future(_wait_for_disconnect(websocket))
    try:
        await websocket.send_json(jsonable_encoder(live_trash.items))
        while True:
            update = asyncio.ensure_future(updates.get())
            done, _ = await asyncio.wait({closed, update}, return_when=asyncio.FIRST_COMPLETED)
            if closed in done:
                update.cancel()
                break
            await websocket.send_json(jsonable_encoder(update.result()))
    finally:
        closed.cancel()
        live_trash.close()


async def _wait_for_disconnect(websocket: WebSocket) -> None:
    while True:
        message = await websocket.receive()
        if message["type"] == "websocket.disconnect":
            return


@router.post("/", response_model=ProductOut, status_code=201)
def create_product(data: ProductCreate, store: Store = Depends(get_current_store), db: Session = Depends(get_db)):
    # Ensure slug not already used in this store
    existing = db.query(Product).filter(Product.store_id == store.id, Product.slug == data.slug).one_or_none()
    if existing:
        raise HTTPException(status_code=400, detail="Slug already exists in this store")

    category_ids = list(dict.fromkeys(data.category_ids))
    _check_categories(db, store, category_ids + ([data.category_id] if data.category_id else []))

    product = Product(
        store_id=store.id,
        category_id=data.category_id,
        name=data.name,
        slug=data.slug,
        description=data.description,
        price=data.price,
        buy_price=data.buy_price,
        compare_price=data.compare_price,
        images=data.images,
        unit=data.unit,
        sku=data.sku,
        quantity=data.quantity,
        is_active=True,
    )
    product.assignments = [ProductCategoryAssignment(category_id=cid) for cid in category_ids]
    db.add(product)
    db.commit()
    db.refresh(product)
    return product


@router.get("/{product_id}", response_model=ProductOut)
def get_product(product_id: str, store: Store = Depends(get_current_store), db: Session = Depends(get_db)):
    return _load(db, store, product_id)


@router.patch("/{product_id}", response_model=ProductOut)
def update_product(product_id: str, data: ProductUpdate, store: Store = Depends(get_current_store), db: Session = Depends(get_db)):
    product = _load(db, store, product_id)

    changes = data.model_dump(exclude_unset=True)
    category_ids = changes.pop("category_ids", None)
    if changes.get("category_id"):
        _check_categories(db, store, [changes["category_id"]])
    for field, value in changes.items():
        setattr(product, field, value)

    if category_ids is not None:
        category_ids = list(dict.fromkeys(category_ids))
        _check_categories(db, store, category_ids)
        product.assignments = [ProductCategoryAssignment(category_id=cid) for cid in category_ids]

    db.commit()
    db.refresh(product)
    return product


@router.delete("/{product_id}", response_model=ProductOut)
def delete_product(product_id: str, store: Store = Depends(get_current_store), db: Session = Depends(get_db)):
    """Move the product to trash; it stays restorable."""
    return trash.move_to_trash(db, _load(db, store, product_id))


@router.post("/{product_id}/restore", response_model=ProductOut)
def restore_product(product_id: str, store: Store = Depends(get_current_store), db: Session = Depends(get_db)):
    product = _load(db, store, product_id)
    try:
        return trash.restore(db, product)
    except AppError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.message)


@router.delete("/{product_id}/permanent", status_code=204)
def purge_product(product_id: str, store: Store = Depends(get_current_store), db: Session = Depends(get_db)):
    product = _load(db, store, product_id)
    try:
        trash.purge(db, product)
    except AppError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.message)
    return None
