from decimal import Decimal
from unittest.mock import Mock

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from main import app
from core.db import Base, get_db
from core.realtime import change_feed
from core.storage import ClientStorage
from models.catalog import Catalog, CatalogProductSettings, ProductCatalogVisibility
from models.category import Category
from models.product import Product, ProductCategoryAssignment
from models.store import Store, StoreStatus
from services import email as email_service
from services import orders as order_service

engine = create_engine(
    "sqlite+pysqlite:///:memory:",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


@event.listens_for(engine, "connect")
def _sqlite_pragma(dbapi_conn, connection_record):
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


TestingSessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)
change_feed.attach(TestingSessionLocal)


@pytest.fixture()
def db():
    """Fresh schema and session for each test."""
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    yield session
    session.close()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def client(db):
    def _get_db():
        yield db

    app.dependency_overrides[get_db] = _get_db
    try:
        with TestClient(app) as c:
            yield c
    finally:
        app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def notification_task(monkeypatch):
    task = Mock()
    monkeypatch.setattr(order_service, "send_order_notification_task", task)
    return task


@pytest.fixture(autouse=True)
def mock_email_send(monkeypatch):
    sent = []

    def _fake_send(to_email: str, subject: str, body: str) -> None:
        sent.append({"to": to_email, "subject": subject, "body": body})

    monkeypatch.setattr(email_service, "send_email", _fake_send)
    return sent


class DictRedis:
    """In-memory stand-in for the few redis client calls ClientStorage makes."""

    def __init__(self):
        self.data = {}

    def get(self, key):
        return self.data.get(key)

    def set(self, key, value):
        self.data[key] = value

    def delete(self, key):
        self.data.pop(key, None)


@pytest.fixture()
def redis_double():
    return DictRedis()


@pytest.fixture()
def storage(redis_double):
    return ClientStorage(redis_double)


@pytest.fixture()
def make_store(db):
    def _make(subdomain="acme", **fields):
        values = {
            "name": subdomain.capitalize(),
            "subdomain": subdomain,
            "status": StoreStatus.ACTIVE.value,
            "retail_enabled": True,
            "wholesale_enabled": True,
        }
        values.update(fields)
        store = Store(**values)
        db.add(store)
        db.commit()
        return store

    return _make


@pytest.fixture()
def store(make_store):
    return make_store()


@pytest.fixture()
def make_category(db):
    def _make(store, slug, parent=None, **fields):
        category = Category(
            store_id=store.id,
            name=fields.pop("name", slug.capitalize()),
            slug=slug,
            parent_id=parent.id if parent else None,
            **fields,
        )
        db.add(category)
        db.commit()
        return category

    return _make


@pytest.fixture()
def make_catalog(db):
    def _make(store, name="Main", access_code=None):
        catalog = Catalog(store_id=store.id, name=name, access_code=access_code)
        db.add(catalog)
        db.commit()
        return catalog

    return _make


@pytest.fixture()
def make_product(db):
    def _make(store, slug, price="100.00", catalog=None, categories=(), settings=None, **fields):
        product = Product(
            store_id=store.id,
            name=fields.pop("name", slug.capitalize()),
            slug=slug,
            price=Decimal(price),
            **fields,
        )
        product.assignments = [ProductCategoryAssignment(category_id=c.id) for c in categories]
        db.add(product)
        db.commit()
        if catalog is not None:
            db.add(ProductCatalogVisibility(catalog_id=catalog.id, product_id=product.id))
            if settings:
                db.add(CatalogProductSettings(catalog_id=catalog.id, product_id=product.id, **settings))
            db.commit()
        return product

    return _make


@pytest.fixture()
def store_headers(store):
    return {"X-Store-Domain": f"{store.subdomain}.storefront.app"}
