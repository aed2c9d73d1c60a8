"""API dependencies."""
from typing import Optional
from fastapi import Depends, HTTPException, Request, status
from adtrust import schemas
from adtrust.services.active_directory import ActiveDirectoryService


def get_directory_service(request: Request) -> ActiveDirectoryService:
    """The service created at startup, if directory lookup is enabled."""
    service = request.app.state.directory_service
    if not service.enabled:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="ActiveDirectory lookup is not enabled (AD_LOOKUP_ACTIVE)."
        )
    return service


def get_request_meta(request: Request) -> schemas.RequestMeta:
    """Source IP and headers, as seen by this process."""
    return schemas.RequestMeta(
        source_ip=request.client.host if request.client else None,
        headers=dict(request.headers),
    )


def get_current_user(
    meta: schemas.RequestMeta = Depends(get_request_meta),
    service: ActiveDirectoryService = Depends(get_directory_service),
) -> Optional[str]:
    """Account name asserted by the trusted proxy. Raises TrustViolation otherwise."""
    return service.resolve_identity(meta)


__all__ = ["get_directory_service", "get_request_meta", "get_current_user"]
