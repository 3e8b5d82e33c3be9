"""
Tests for the seller admin routes and application-wide behaviour.
"""
from fastapi import status
from fastapi.testclient import TestClient

from core.db import get_db
from main import app
from models.catalog import CatalogProductSettings, ProductCatalogVisibility
from models.category import CatalogCategorySettings


class TestApp:
    """Health, CORS and error bodies."""

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["status"] == "healthy"

    def test_cors_preflight(self, client):
        response = client.options(
            "/orders/retail",
            headers={"Origin": "https://shop.example.com", "Access-Control-Request-Method": "POST"},
        )
        assert response.status_code == status.HTTP_200_OK
        assert response.headers["access-control-allow-origin"] == "*"

    def test_unexpected_error_is_json_500(self, db, monkeypatch):
        from services import storefront

        def _explode(*args, **kwargs):
            raise RuntimeError("boom")

        monkeypatch.setattr(storefront, "assemble", _explode)

        def _get_db():
            yield db

        app.dependency_overrides[get_db] = _get_db
        try:
            with TestClient(app, raise_server_exceptions=False) as c:
                response = c.get("/storefront/retail/acme")
        finally:
            app.dependency_overrides.clear()
        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert response.json() == {"error": "Internal server error"}


class TestStores:
    """Store creation and settings."""

    def test_create_store(self, client):
        response = client.post("/stores/", json={"name": " Acme ", "subdomain": "ACME", "custom_domain": "Shop.Example.com"})
        assert response.status_code == status.HTTP_201_CREATED
        body = response.json()
        assert body["subdomain"] == "acme"
        assert body["custom_domain"] == "shop.example.com"
        assert body["status"] == "pending"

    def test_duplicate_subdomain(self, client, store):
        response = client.post("/stores/", json={"name": "Copy", "subdomain": store.subdomain})
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_domain_taken_by_other_channel(self, client, make_store):
        make_store("first", wholesale_custom_domain="opt.example.com")
        response = client.post("/stores/", json={"name": "Second", "subdomain": "second", "custom_domain": "opt.example.com"})
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert "already in use" in response.json()["detail"]

    def test_update_channels_and_catalog(self, client, store, store_headers, make_catalog):
        catalog = make_catalog(store)
        response = client.patch(
            "/stores/current",
            json={"showcase_enabled": True, "wholesale_catalog_id": catalog.id, "wholesale_min_order_amount": 1000},
            headers=store_headers,
        )
        assert response.status_code == status.HTTP_200_OK
        body = response.json()
        assert body["showcase_enabled"] is True
        assert body["wholesale_catalog_id"] == catalog.id
        assert body["wholesale_min_order_amount"] == 1000

    def test_update_rejects_foreign_catalog(self, client, store, store_headers, make_store, make_catalog):
        foreign = make_catalog(make_store("other"))
        response = client.patch("/stores/current", json={"retail_catalog_id": foreign.id}, headers=store_headers)
        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_same_domain_for_both_channels_rejected(self, client, store_headers):
        response = client.patch(
            "/stores/current",
            json={"custom_domain": "shop.example.com", "wholesale_custom_domain": "shop.example.com"},
            headers=store_headers,
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_notification_settings(self, client, store_headers):
        assert client.get("/stores/current/notifications", headers=store_headers).json()["email_enabled"] is False
        response = client.put(
            "/stores/current/notifications",
            json={"email_enabled": True, "notification_email": "owner@example.com"},
            headers=store_headers,
        )
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["notification_email"] == "owner@example.com"


class TestCategories:
    """Category admin and write-time cycle checks."""

    def test_create_and_tree(self, client, store_headers):
        tools = client.post("/categories/", json={"name": "Tools", "slug": "tools"}, headers=store_headers).json()
        client.post("/categories/", json={"name": "Saws", "slug": "saws", "parent_id": tools["id"]}, headers=store_headers)
        tree = client.get("/categories/tree", headers=store_headers).json()
        assert [n["slug"] for n in tree] == ["tools"]
        assert [n["slug"] for n in tree[0]["children"]] == ["saws"]

    def test_cycle_rejected(self, client, store, store_headers, make_category):
        a = make_category(store, "a")
        b = make_category(store, "b", parent=a)
        c = make_category(store, "c", parent=b)
        response = client.patch(f"/categories/{a.id}", json={"parent_id": c.id}, headers=store_headers)
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_self_parent_rejected(self, client, store, store_headers, make_category):
        a = make_category(store, "a")
        response = client.patch(f"/categories/{a.id}", json={"parent_id": a.id}, headers=store_headers)
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_move_to_sibling_allowed(self, client, store, store_headers, make_category):
        a = make_category(store, "a")
        b = make_category(store, "b")
        response = client.patch(f"/categories/{b.id}", json={"parent_id": a.id}, headers=store_headers)
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["parent_id"] == a.id

    def test_delete_lifts_children(self, client, db, store, store_headers, make_category):
        a = make_category(store, "a")
        b = make_category(store, "b", parent=a)
        response = client.delete(f"/categories/{a.id}", headers=store_headers)
        assert response.status_code == status.HTTP_204_NO_CONTENT
        db.refresh(b)
        assert b.parent_id is None


class TestProducts:
    """Product admin with category assignments."""

    def test_create_with_categories(self, client, store, store_headers, make_category):
        tools = make_category(store, "tools")
        saws = make_category(store, "saws")
        response = client.post(
            "/products/",
            json={"name": "Saw", "slug": "saw", "price": 25, "category_ids": [tools.id, saws.id, tools.id]},
            headers=store_headers,
        )
        assert response.status_code == status.HTTP_201_CREATED
        assert sorted(response.json()["category_ids"]) == sorted([tools.id, saws.id])

    def test_unknown_category_rejected(self, client, store_headers):
        response = client.post(
            "/products/", json={"name": "Saw", "slug": "saw", "category_ids": ["nope"]}, headers=store_headers
        )
        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_update_replaces_categories(self, client, store, store_headers, make_category, make_product):
        tools = make_category(store, "tools")
        garden = make_category(store, "garden")
        product = make_product(store, "rake", categories=[tools])
        response = client.patch(
            f"/products/{product.id}", json={"price": 9.5, "category_ids": [garden.id]}, headers=store_headers
        )
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["category_ids"] == [garden.id]
        assert response.json()["price"] == 9.5


class TestCatalogs:
    """Catalog visibility and upserted settings."""

    def test_create_catalog(self, client, store_headers):
        response = client.post("/catalogs/", json={"name": "Wholesale", "access_code": "opt-2024"}, headers=store_headers)
        assert response.status_code == status.HTTP_201_CREATED
        assert response.json()["access_code"] == "opt-2024"
        assert len(client.get("/catalogs/", headers=store_headers).json()) == 1

    def test_visibility_add_is_idempotent(self, client, db, store, store_headers, make_catalog, make_product):
        catalog = make_catalog(store)
        product = make_product(store, "saw")
        url = f"/catalogs/{catalog.id}/products"
        assert client.post(url, json={"product_ids": [product.id]}, headers=store_headers).json() == {"added": 1}
        client.post(url, json={"product_ids": [product.id]}, headers=store_headers)
        assert db.query(ProductCatalogVisibility).count() == 1

        response = client.request("DELETE", url, json={"product_ids": [product.id]}, headers=store_headers)
        assert response.json() == {"removed": 1}

    def test_visibility_rejects_foreign_product(self, client, store, store_headers, make_store, make_catalog, make_product):
        catalog = make_catalog(store)
        foreign = make_product(make_store("other"), "foreign")
        response = client.post(f"/catalogs/{catalog.id}/products", json={"product_ids": [foreign.id]}, headers=store_headers)
        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_product_settings_upsert(self, client, db, store, store_headers, make_catalog, make_product):
        catalog = make_catalog(store)
        product = make_product(store, "saw")
        url = f"/catalogs/{catalog.id}/products/{product.id}/settings"
        first = client.put(url, json={"markup_type": "percent", "markup_value": 10}, headers=store_headers)
        assert first.status_code == status.HTTP_200_OK
        second = client.put(url, json={"markup_type": "fixed", "markup_value": 5, "status": "hidden"}, headers=store_headers)
        assert second.json()["markup_type"] == "fixed"
        assert second.json()["status"] == "hidden"
        assert db.query(CatalogProductSettings).count() == 1

    def test_product_settings_rejects_unknown_status(self, client, store, store_headers, make_catalog, make_product):
        catalog = make_catalog(store)
        product = make_product(store, "saw")
        response = client.put(
            f"/catalogs/{catalog.id}/products/{product.id}/settings", json={"status": "archived"}, headers=store_headers
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_category_settings_upsert(self, client, db, store, store_headers, make_catalog, make_category):
        catalog = make_catalog(store)
        tools = make_category(store, "tools")
        garden = make_category(store, "garden")
        url = f"/catalogs/{catalog.id}/categories/{tools.id}/settings"
        client.put(url, json={"custom_name": "Instruments"}, headers=store_headers)
        response = client.put(url, json={"custom_name": "Hand tools", "parent_category_id": garden.id, "sort_order": 2}, headers=store_headers)
        assert response.status_code == status.HTTP_200_OK
        body = response.json()
        assert body["custom_name"] == "Hand tools"
        assert body["parent_category_id"] == garden.id
        assert db.query(CatalogCategorySettings).count() == 1
