import enum
import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from fastapi import HTTPException, status, Request, Depends
from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from core.config import settings
from core.db import get_db
from models.store import Store, Channel, StoreStatus

logger = logging.getLogger(__name__)


class ResolutionKind(str, enum.Enum):
    PLATFORM = "platform"
    RESOLVED = "resolved"
    NOT_FOUND = "not_found"
    LOOKUP_FAILED = "lookup_failed"


@dataclass
class DomainResolution:
    kind: ResolutionKind
    hostname: str
    store: Optional[Store] = None
    channel: Optional[Channel] = None
    reason: Optional[str] = None

    @property
    def is_custom_domain(self) -> bool:
        return self.kind != ResolutionKind.PLATFORM


def normalize_hostname(hostname: Optional[str]) -> str:
    host = (hostname or "").strip().lower()
    return host.split(":")[0].rstrip(".")


def is_platform_domain(hostname: str, platform_domains: Optional[Iterable[str]] = None) -> bool:
    """True for the platform's own hosts: exact entries, or any host under a listed suffix."""
    host = normalize_hostname(hostname)
    for domain in platform_domains if platform_domains is not None else settings.PLATFORM_DOMAINS:
        domain = domain.lower()
        if host == domain.lstrip("."):
            return True
        suffix = domain if domain.startswith(".") else f".{domain}"
        if host.endswith(suffix):
            return True
    return False


def resolve_custom_domain(db: Session, hostname: str, platform_domains: Optional[Iterable[str]] = None) -> DomainResolution:
    """
    Map a request hostname to the store and channel that own it.

    Platform hosts short-circuit without touching the database. Otherwise the
    wholesale custom domain is checked before the retail one; only active
    stores with the matching channel enabled qualify. A database error is
    reported as LOOKUP_FAILED, never as NOT_FOUND.
    """
    host = normalize_hostname(hostname)
    if is_platform_domain(host, platform_domains):
        return DomainResolution(ResolutionKind.PLATFORM, host)
    if not host:
        return DomainResolution(ResolutionKind.NOT_FOUND, host, reason="Missing store domain")

    try:
        store = (
            db.query(Store)
            .filter(
                Store.wholesale_custom_domain == host,
                Store.status == StoreStatus.ACTIVE.value,
                Store.wholesale_enabled.is_(True),
            )
            .one_or_none()
        )
        if store:
            return DomainResolution(ResolutionKind.RESOLVED, host, store=store, channel=Channel.WHOLESALE)

        store = (
            db.query(Store)
            .filter(
                Store.custom_domain == host,
                Store.status == StoreStatus.ACTIVE.value,
                Store.retail_enabled.is_(True),
            )
            .one_or_none()
        )
        if store:
            return DomainResolution(ResolutionKind.RESOLVED, host, store=store, channel=Channel.RETAIL)
    except SQLAlchemyError:
        logger.exception("Error resolving custom domain %s", host)
        return DomainResolution(ResolutionKind.LOOKUP_FAILED, host, reason="Failed to look up the store for this domain")

    return DomainResolution(ResolutionKind.NOT_FOUND, host, reason=f"No active store is bound to {host}")


def request_hostname(request: Request) -> str:
    """Store domain from the X-Store-Domain header, falling back to Host."""
    domain = request.headers.get("x-store-domain") or request.headers.get("host")
    if not domain:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing store domain")
    return normalize_hostname(domain)


def find_store_for_domain(db: Session, domain: str) -> Optional[Store]:
    """Store administered on ``domain``: a custom domain match, else the leading subdomain label."""
    # Try custom domain match first
    store = (
        db.query(Store)
        .filter(or_(Store.custom_domain == domain, Store.wholesale_custom_domain == domain))
        .first()
    )

    # If not found, try subdomain match (e.g., mystore.platform.com)
    if not store and "." in domain:
        subdomain = domain.split(".")[0]
        store = db.query(Store).filter(Store.subdomain == subdomain).one_or_none()

    return store


def get_current_store(request: Request, db: Session = Depends(get_db)) -> Store:
    """FastAPI dependency returning the store a seller is administering on this domain."""
    store = find_store_for_domain(db, request_hostname(request))
    if not store:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Store not found")

    if store.status == StoreStatus.SUSPENDED.value:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Store is suspended")

    return store
