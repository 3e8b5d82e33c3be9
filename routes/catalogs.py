from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from core.db import get_db
from core.errors import AppError
from core.tenancy import get_current_store
from models.catalog import Catalog
from models.store import Store
from schemas.catalog import (
    CatalogCreate,
    CatalogOut,
    CategorySettingsIn,
    CategorySettingsOut,
    ProductSettingsIn,
    ProductSettingsOut,
    VisibilityIn,
)
from services import catalogs as catalog_service

router = APIRouter(prefix="/catalogs", tags=["catalogs"])


def _catalog(db: Session, store: Store, catalog_id: str) -> Catalog:
    try:
        return catalog_service.get_catalog(db, store.id, catalog_id)
    except AppError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.message)


@router.get("/", response_model=List[CatalogOut])
def list_catalogs(store: Store = Depends(get_current_store), db: Session = Depends(get_db)):
    return db.query(Catalog).filter(Catalog.store_id == store.id).order_by(Catalog.name).all()


@router.post("/", response_model=CatalogOut, status_code=201)
def create_catalog(data: CatalogCreate, store: Store = Depends(get_current_store), db: Session = Depends(get_db)):
    access_code = (data.access_code or "").strip() or None
    if access_code and db.query(Catalog).filter(Catalog.access_code == access_code).one_or_none():
        raise HTTPException(status_code=400, detail="Access code already in use")
    catalog = Catalog(store_id=store.id, name=data.name.strip(), access_code=access_code)
    db.add(catalog)
    db.commit()
    db.refresh(catalog)
    return catalog


@router.post("/{catalog_id}/products")
def add_catalog_products(catalog_id: str, data: VisibilityIn, store: Store = Depends(get_current_store), db: Session = Depends(get_db)):
    catalog = _catalog(db, store, catalog_id)
    try:
        added = catalog_service.add_products(db, catalog, data.product_ids)
    except AppError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.message)
    return {"added": added}


@router.delete("/{catalog_id}/products")
def remove_catalog_products(catalog_id: str, data: VisibilityIn, store: Store = Depends(get_current_store), db: Session = Depends(get_db)):
    catalog = _catalog(db, store, catalog_id)
    return {"removed": catalog_service.remove_products(db, catalog, data.product_ids)}


@router.put("/{catalog_id}/products/{product_id}/settings", response_model=ProductSettingsOut)
def put_product_settings(catalog_id: str, product_id: str, data: ProductSettingsIn, store: Store = Depends(get_current_store), db: Session = Depends(get_db)):
    catalog = _catalog(db, store, catalog_id)
    try:
        return catalog_service.upsert_product_settings(db, catalog, product_id, data.model_dump(mode="json"))
    except AppError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.message)


@router.put("/{catalog_id}/categories/{category_id}/settings", response_model=CategorySettingsOut)
def put_category_settings(catalog_id: str, category_id: str, data: CategorySettingsIn, store: Store = Depends(get_current_store), db: Session = Depends(get_db)):
    catalog = _catalog(db, store, catalog_id)
    try:
        return catalog_service.upsert_category_settings(db, catalog, category_id, data.model_dump())
    except AppError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.message)
