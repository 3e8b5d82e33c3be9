from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from core.db import get_db
from core.tenancy import get_current_store
from models.category import Category
from models.store import Store
from schemas.category import CategoryCreate, CategoryNodeOut, CategoryOut, CategoryUpdate
from services.category_tree import CategoryNode, build_tree

router = APIRouter(prefix="/categories", tags=["categories"])


def _store_categories(db: Session, store: Store) -> List[Category]:
    return db.query(Category).filter(Category.store_id == store.id).order_by(Category.sort_order, Category.name).all()


def check_parent(db: Session, store: Store, category_id: Optional[str], parent_id: Optional[str]) -> None:
    """Reject a parent that is unknown or would put the category on a cycle."""
    if parent_id is None:
        return
    parents = {c.id: c.parent_id for c in _store_categories(db, store)}
    if parent_id not in parents:
        raise HTTPException(status_code=404, detail="Parent category not found")
    seen = set()
    current = parent_id
    while current is not None and current not in seen:
        if current == category_id:
            raise HTTPException(status_code=400, detail="Category cannot be nested under itself or its descendants")
        seen.add(current)
        current = parents.get(current)


@router.get("/", response_model=List[CategoryOut])
def list_categories(store: Store = Depends(get_current_store), db: Session = Depends(get_db)):
    return _store_categories(db, store)


@router.get("/tree", response_model=List[CategoryNodeOut])
def category_tree(store: Store = Depends(get_current_store), db: Session = Depends(get_db)):
    nodes = [
        CategoryNode(id=c.id, name=c.name, slug=c.slug, parent_id=c.parent_id, sort_order=c.sort_order, image_url=c.image_url)
        for c in _store_categories(db, store)
    ]
    return [node.to_dict() for node in build_tree(nodes)]


@router.post("/", response_model=CategoryOut, status_code=201)
def create_category(data: CategoryCreate, store: Store = Depends(get_current_store), db: Session = Depends(get_db)):
    existing = db.query(Category).filter(Category.store_id == store.id, Category.slug == data.slug).one_or_none()
    if existing:
        raise HTTPException(status_code=400, detail="Slug already exists in this store")
    check_parent(db, store, None, data.parent_id)

    category = Category(store_id=store.id, **data.model_dump())
    db.add(category)
    db.commit()
    db.refresh(category)
    return category


@router.patch("/{category_id}", response_model=CategoryOut)
def update_category(category_id: str, data: CategoryUpdate, store: Store = Depends(get_current_store), db: Session = Depends(get_db)):
    category = db.query(Category).filter(Category.store_id == store.id, Category.id == category_id).one_or_none()
    if not category:
        raise HTTPException(status_code=404, detail="Category not found")

    changes = data.model_dump(exclude_unset=True)
    if "parent_id" in changes:
        check_parent(db, store, category.id, changes["parent_id"])
    if changes.get("slug") and changes["slug"] != category.slug:
        clash = db.query(Category).filter(Category.store_id == store.id, Category.slug == changes["slug"]).one_or_none()
        if clash:
            raise HTTPException(status_code=400, detail="Slug already exists in this store")
    for field, value in changes.items():
        setattr(category, field, value)

    db.commit()
    db.refresh(category)
    return category


@router.delete("/{category_id}", status_code=204)
def delete_category(category_id: str, store: Store = Depends(get_current_store), db: Session = Depends(get_db)):
    category = db.query(Category).filter(Category.store_id == store.id, Category.id == category_id).one_or_none()
    if not category:
        raise HTTPException(status_code=404, detail="Category not found")
    # Children move up to the top level
    db.query(Category).filter(Category.parent_id == category.id).update({Category.parent_id: None})
    db.delete(category)
    db.commit()
    return None
