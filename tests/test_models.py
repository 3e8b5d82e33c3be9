from datetime import datetime

import pytest
from sqlalchemy.exc import IntegrityError

from models.catalog import CatalogProductSettings
from models.category import Category
from models.product import Active, Product, Trashed
from models.store import Channel, Store, StoreStatus


class TestStore:
    """Test cases for Store model"""

    def test_store_default_values(self, db):
        """New stores start pending with every channel off"""
        store = Store(name="Acme", subdomain="acme")
        db.add(store)
        db.commit()
        db.refresh(store)

        assert store.id is not None
        assert store.status == StoreStatus.PENDING.value
        assert store.is_active is False
        assert not any(store.channel_enabled(ch) for ch in Channel)
        assert isinstance(store.created_at, datetime)

    def test_subdomain_uniqueness(self, db):
        db.add(Store(name="One", subdomain="acme"))
        db.commit()
        db.add(Store(name="Two", subdomain="acme"))
        with pytest.raises(IntegrityError):
            db.commit()
        db.rollback()

    def test_channel_presentation_falls_back_to_store(self):
        store = Store(name="Acme", logo_url="https://cdn.example.com/acme.png", wholesale_name="Acme Bulk")
        assert store.channel_name(Channel.WHOLESALE) == "Acme Bulk"
        assert store.channel_name(Channel.RETAIL) == "Acme"
        assert store.channel_logo_url(Channel.SHOWCASE) == "https://cdn.example.com/acme.png"
        assert store.channel_theme(Channel.RETAIL) == {}

    def test_channel_catalog_id(self):
        store = Store(name="Acme", wholesale_catalog_id="cat-1")
        assert store.channel_catalog_id(Channel.WHOLESALE) == "cat-1"
        assert store.channel_catalog_id(Channel.RETAIL) is None


class TestProduct:
    """Test cases for Product model"""

    def test_lifecycle(self, store):
        product = Product(store_id=store.id, name="Saw", slug="saw")
        assert product.lifecycle == Active()
        at = datetime(2024, 1, 1, 12, 0)
        product.deleted_at = at
        assert product.lifecycle == Trashed(at=at)

    def test_slug_unique_per_store(self, db, store, make_store, make_product):
        make_product(store, "saw")
        make_product(make_store("other"), "saw")
        db.add(Product(store_id=store.id, name="Saw 2", slug="saw"))
        with pytest.raises(IntegrityError):
            db.commit()
        db.rollback()

    def test_category_ids_from_assignments(self, store, make_category, make_product):
        tools = make_category(store, "tools")
        product = make_product(store, "saw", categories=[tools])
        assert product.category_ids == [tools.id]


class TestCatalogSettings:
    """Test cases for catalog-scoped settings"""

    def test_one_settings_row_per_catalog_product(self, db, store, make_catalog, make_product):
        catalog = make_catalog(store)
        product = make_product(store, "saw")
        db.add(CatalogProductSettings(catalog_id=catalog.id, product_id=product.id))
        db.commit()
        db.add(CatalogProductSettings(catalog_id=catalog.id, product_id=product.id))
        with pytest.raises(IntegrityError):
            db.commit()
        db.rollback()

    def test_category_parent_set_null_on_delete(self, db, store, make_category):
        parent = make_category(store, "parent")
        child = make_category(store, "child", parent=parent)
        db.delete(parent)
        db.commit()
        db.refresh(child)
        assert child.parent_id is None
        assert db.query(Category).count() == 1
