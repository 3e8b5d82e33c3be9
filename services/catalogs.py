"""
Catalog administration: product visibility and the per-catalog product and
category settings, written with insert-or-update on their unique keys.
"""
import logging
from typing import Any, Dict, Iterable, List

from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session

from core.errors import NotFound
from models.catalog import Catalog, CatalogProductSettings, ProductCatalogVisibility
from models.category import Category, CatalogCategorySettings
from models.product import Product

logger = logging.getLogger(__name__)


def _insert(db: Session, model):
    dialect = db.get_bind().dialect.name
    return pg_insert(model) if dialect == "postgresql" else sqlite_insert(model)


def upsert(db: Session, model, values: Dict[str, Any], conflict_keys: List[str]) -> None:
    stmt = _insert(db, model).values(**values)
    stmt = stmt.on_conflict_do_update(
        index_elements=conflict_keys,
        set_={key: stmt.excluded[key] for key in values if key not in conflict_keys},
    )
    db.execute(stmt)
    db.commit()


def get_catalog(db: Session, store_id: str, catalog_id: str) -> Catalog:
    catalog = db.query(Catalog).filter(Catalog.store_id == store_id, Catalog.id == catalog_id).one_or_none()
    if not catalog:
        raise NotFound("Catalog not found")
    return catalog


def _store_product_ids(db: Session, store_id: str, product_ids: Iterable[str]) -> List[str]:
    wanted = list(dict.fromkeys(product_ids))
    found = {
        p.id for p in db.query(Product).filter(Product.store_id == store_id, Product.id.in_(wanted))
    }
    missing = [pid for pid in wanted if pid not in found]
    if missing:
        raise NotFound(f"Products not found for this store: {', '.join(missing)}")
    return wanted


def add_products(db: Session, catalog: Catalog, product_ids: Iterable[str]) -> int:
    ids = _store_product_ids(db, catalog.store_id, product_ids)
    for product_id in ids:
        stmt = _insert(db, ProductCatalogVisibility).values(catalog_id=catalog.id, product_id=product_id)
        db.execute(stmt.on_conflict_do_nothing(index_elements=["catalog_id", "product_id"]))
    db.commit()
    logger.info("Added %d products to catalog %s", len(ids), catalog.id)
    return len(ids)


def remove_products(db: Session, catalog: Catalog, product_ids: Iterable[str]) -> int:
    removed = (
        db.query(ProductCatalogVisibility)
        .filter(ProductCatalogVisibility.catalog_id == catalog.id, ProductCatalogVisibility.product_id.in_(list(product_ids)))
        .delete(synchronize_session=False)
    )
    db.commit()
    return removed


def upsert_product_settings(db: Session, catalog: Catalog, product_id: str, values: Dict[str, Any]) -> CatalogProductSettings:
    _store_product_ids(db, catalog.store_id, [product_id])
    upsert(
        db,
        CatalogProductSettings,
        {"catalog_id": catalog.id, "product_id": product_id, **values},
        ["catalog_id", "product_id"],
    )
    return (
        db.query(CatalogProductSettings)
        .filter(CatalogProductSettings.catalog_id == catalog.id, CatalogProductSettings.product_id == product_id)
        .populate_existing()
        .one()
    )


def upsert_category_settings(db: Session, catalog: Catalog, category_id: str, values: Dict[str, Any]) -> CatalogCategorySettings:
    ids = [category_id] + ([values["parent_category_id"]] if values.get("parent_category_id") else [])
    found = db.query(Category).filter(Category.store_id == catalog.store_id, Category.id.in_(ids)).count()
    if found != len(set(ids)):
        raise NotFound("Category not found")
    upsert(
        db,
        CatalogCategorySettings,
        {"catalog_id": catalog.id, "category_id": category_id, **values},
        ["catalog_id", "category_id"],
    )
    return (
        db.query(CatalogCategorySettings)
        .filter(CatalogCategorySettings.catalog_id == catalog.id, CatalogCategorySettings.category_id == category_id)
        .populate_existing()
        .one()
    )
