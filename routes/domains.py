from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from core.db import get_db
from core.errors import NotFound, UpstreamFailure
from core.tenancy import ResolutionKind, resolve_custom_domain
from schemas.store import DomainResolutionOut

router = APIRouter(prefix="/domains", tags=["domains"])


@router.get("/resolve", response_model=DomainResolutionOut)
def resolve_domain(hostname: str, db: Session = Depends(get_db)):
    resolution = resolve_custom_domain(db, hostname)
    if resolution.kind == ResolutionKind.NOT_FOUND:
        raise NotFound(resolution.reason)
    if resolution.kind == ResolutionKind.LOOKUP_FAILED:
        raise UpstreamFailure(resolution.reason, status_code=status.HTTP_503_SERVICE_UNAVAILABLE)
    return {
        "kind": resolution.kind.value,
        "hostname": resolution.hostname,
        "is_custom_domain": resolution.is_custom_domain,
        "store_id": resolution.store.id if resolution.store else None,
        "subdomain": resolution.store.subdomain if resolution.store else None,
        "channel": resolution.channel.value if resolution.channel else None,
    }
