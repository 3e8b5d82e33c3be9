"""
Tests for custom-domain resolution and store lookup from request hosts.
"""
from unittest.mock import Mock

import pytest
from fastapi import status
from sqlalchemy.exc import OperationalError

from core.tenancy import ResolutionKind, is_platform_domain, normalize_hostname, resolve_custom_domain
from models.store import Channel, StoreStatus

PLATFORM = [".storefront.app", ".storefront.dev", "localhost", "127.0.0.1"]


class TestPlatformDomains:
    """Platform hosts never reach the database."""

    @pytest.mark.parametrize(
        "hostname",
        ["acme.storefront.app", "storefront.app", "preview.storefront.dev", "localhost", "localhost:5173", "127.0.0.1:8000", "API.Storefront.App"],
    )
    def test_platform_host_skips_lookup(self, hostname):
        db = Mock()
        result = resolve_custom_domain(db, hostname, PLATFORM)
        assert result.kind == ResolutionKind.PLATFORM
        assert result.is_custom_domain is False
        db.query.assert_not_called()

    def test_suffix_must_match_label_boundary(self):
        assert is_platform_domain("evilstorefront.app", PLATFORM) is False
        assert is_platform_domain("shop.example.com", PLATFORM) is False

    def test_normalize_hostname(self):
        assert normalize_hostname(" Shop.Example.COM:443 ") == "shop.example.com"
        assert normalize_hostname("shop.example.com.") == "shop.example.com"
        assert normalize_hostname(None) == ""


class TestCustomDomainResolution:
    """Custom hostnames map to a store and the channel bound to them."""

    def test_wholesale_domain_resolves_to_wholesale(self, db, make_store):
        store = make_store("bulk", wholesale_custom_domain="opt.example.com", retail_enabled=False)
        result = resolve_custom_domain(db, "opt.example.com", PLATFORM)
        assert result.kind == ResolutionKind.RESOLVED
        assert result.store.id == store.id
        assert result.channel == Channel.WHOLESALE

    def test_wholesale_disabled_is_not_found(self, db, make_store):
        make_store("bulk", wholesale_custom_domain="opt.example.com", wholesale_enabled=False)
        result = resolve_custom_domain(db, "opt.example.com", PLATFORM)
        assert result.kind == ResolutionKind.NOT_FOUND
        assert result.store is None
        assert "opt.example.com" in result.reason

    def test_retail_domain_resolves_to_retail(self, db, make_store):
        store = make_store("shop", custom_domain="shop.example.com")
        result = resolve_custom_domain(db, "SHOP.example.com:443", PLATFORM)
        assert result.kind == ResolutionKind.RESOLVED
        assert result.store.id == store.id
        assert result.channel == Channel.RETAIL

    def test_inactive_store_is_not_found(self, db, make_store):
        make_store("shop", custom_domain="shop.example.com", status=StoreStatus.PENDING.value)
        assert resolve_custom_domain(db, "shop.example.com", PLATFORM).kind == ResolutionKind.NOT_FOUND

    def test_unknown_domain_is_not_found(self, db):
        assert resolve_custom_domain(db, "nobody.example.com", PLATFORM).kind == ResolutionKind.NOT_FOUND

    def test_database_error_is_lookup_failed(self):
        db = Mock()
        db.query.side_effect = OperationalError("SELECT", {}, Exception("connection refused"))
        result = resolve_custom_domain(db, "shop.example.com", PLATFORM)
        assert result.kind == ResolutionKind.LOOKUP_FAILED
        assert result.store is None


class TestResolveEndpoint:
    """HTTP surface of the resolver."""

    def test_resolves_custom_domain(self, client, make_store):
        store = make_store("bulk", wholesale_custom_domain="opt.example.com")
        response = client.get("/domains/resolve", params={"hostname": "opt.example.com"})
        assert response.status_code == status.HTTP_200_OK
        body = response.json()
        assert body["kind"] == "resolved"
        assert body["store_id"] == store.id
        assert body["subdomain"] == "bulk"
        assert body["channel"] == "wholesale"

    def test_platform_host(self, client):
        response = client.get("/domains/resolve", params={"hostname": "acme.storefront.app"})
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["is_custom_domain"] is False

    def test_not_found(self, client):
        response = client.get("/domains/resolve", params={"hostname": "nobody.example.com"})
        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert "nobody.example.com" in response.json()["error"]


class TestCurrentStore:
    """Seller admin routes find their store from the request host."""

    def test_store_by_subdomain(self, client, store, store_headers):
        response = client.get("/stores/current", headers=store_headers)
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["id"] == store.id

    def test_store_by_custom_domain(self, client, make_store):
        store = make_store("shop", custom_domain="shop.example.com")
        response = client.get("/stores/current", headers={"X-Store-Domain": "shop.example.com"})
        assert response.json()["id"] == store.id

    def test_store_not_found(self, client):
        response = client.get("/stores/current", headers={"X-Store-Domain": "ghost.storefront.app"})
        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert "Store not found" in response.json()["detail"]

    def test_suspended_store_forbidden(self, client, db, store, store_headers):
        store.status = StoreStatus.SUSPENDED.value
        db.commit()
        response = client.get("/stores/current", headers=store_headers)
        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert "suspended" in response.json()["detail"]
