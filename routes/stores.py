from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from core.db import get_db
from core.tenancy import get_current_store, normalize_hostname
from models.catalog import Catalog
from models.store import Store, StoreNotificationSettings, StoreStatus
from schemas.store import NotificationSettingsIn, NotificationSettingsOut, StoreCreate, StoreOut, StoreUpdate

router = APIRouter(prefix="/stores", tags=["stores"])

DOMAIN_FIELDS = ("custom_domain", "wholesale_custom_domain")
CATALOG_FIELDS = ("retail_catalog_id", "wholesale_catalog_id", "showcase_catalog_id")


def _clean_domain(value: Optional[str]) -> Optional[str]:
    return normalize_hostname(value) or None


def _ensure_domain_free(db: Session, domain: Optional[str], store_id: Optional[str] = None) -> None:
    """A hostname may be bound to one store and one channel only."""
    if not domain:
        return
    for field in DOMAIN_FIELDS:
        owner = db.query(Store).filter(getattr(Store, field) == domain).first()
        if owner and owner.id != store_id:
            raise HTTPException(status_code=400, detail=f"Domain {domain} is already in use")


@router.get("/current", response_model=StoreOut)
def get_store(store: Store = Depends(get_current_store)):
    return store


@router.post("/", response_model=StoreOut, status_code=201)
def create_store(data: StoreCreate, db: Session = Depends(get_db)):
    subdomain = data.subdomain.strip().lower()
    if not subdomain:
        raise HTTPException(status_code=400, detail="Subdomain is required")
    existing = db.query(Store).filter(Store.subdomain == subdomain).one_or_none()
    if existing:
        raise HTTPException(status_code=400, detail="Subdomain already exists")

    domains = {field: _clean_domain(getattr(data, field)) for field in DOMAIN_FIELDS}
    if domains["custom_domain"] and domains["custom_domain"] == domains["wholesale_custom_domain"]:
        raise HTTPException(status_code=400, detail="Retail and wholesale domains must differ")
    for domain in domains.values():
        _ensure_domain_free(db, domain)

    store = Store(
        name=data.name.strip(),
        subdomain=subdomain,
        description=data.description,
        logo_url=data.logo_url,
        contact_email=data.contact_email,
        contact_phone=data.contact_phone,
        **domains,
    )
    db.add(store)
    db.commit()
    db.refresh(store)
    return store


@router.patch("/current", response_model=StoreOut)
def update_store(data: StoreUpdate, store: Store = Depends(get_current_store), db: Session = Depends(get_db)):
    changes = data.model_dump(exclude_unset=True)

    if "status" in changes and changes["status"] not in {s.value for s in StoreStatus}:
        raise HTTPException(status_code=400, detail="Unknown store status")

    for field in DOMAIN_FIELDS:
        if field in changes:
            changes[field] = _clean_domain(changes[field])
            _ensure_domain_free(db, changes[field], store.id)
    retail = changes.get("custom_domain", store.custom_domain)
    wholesale = changes.get("wholesale_custom_domain", store.wholesale_custom_domain)
    if retail and retail == wholesale:
        raise HTTPException(status_code=400, detail="Retail and wholesale domains must differ")

    for field in CATALOG_FIELDS:
        catalog_id = changes.get(field)
        if catalog_id:
            catalog = db.query(Catalog).filter(Catalog.id == catalog_id, Catalog.store_id == store.id).one_or_none()
            if not catalog:
                raise HTTPException(status_code=404, detail="Catalog not found for this store")

    for field, value in changes.items():
        setattr(store, field, value)

    db.commit()
    db.refresh(store)
    return store


@router.get("/current/notifications", response_model=NotificationSettingsOut)
def get_notification_settings(store: Store = Depends(get_current_store), db: Session = Depends(get_db)):
    notification = db.query(StoreNotificationSettings).filter(StoreNotificationSettings.store_id == store.id).one_or_none()
    if not notification:
        return {"store_id": store.id, "email_enabled": False, "notification_email": None}
    return notification


@router.put("/current/notifications", response_model=NotificationSettingsOut)
def put_notification_settings(data: NotificationSettingsIn, store: Store = Depends(get_current_store), db: Session = Depends(get_db)):
    if data.email_enabled and not data.notification_email:
        raise HTTPException(status_code=400, detail="Notification email is required")
    notification = db.query(StoreNotificationSettings).filter(StoreNotificationSettings.store_id == store.id).one_or_none()
    if not notification:
        notification = StoreNotificationSettings(store_id=store.id)
        db.add(notification)
    notification.email_enabled = data.email_enabled
    notification.notification_email = data.notification_email
    db.commit()
    db.refresh(notification)
    return notification
