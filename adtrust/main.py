"""FastAPI application entry point."""
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from adtrust.core.exceptions import InvalidArgument, TrustViolation
from adtrust.core.logging_config import logger
from adtrust.api.v1.router import api_router
from adtrust.services.active_directory import ActiveDirectoryService

# Initialize logging
logger.info("Starting Map Directory Trust Service")

# Initialize FastAPI app
app = FastAPI(
    title="Map Directory Trust Service",
    description="Trusted proxy identity and Active Directory group membership for the map server",
    version="1.0.0"
)

# One shared service (and cache) per process. Misconfiguration is fatal here.
try:
    app.state.directory_service = ActiveDirectoryService.from_config()
except Exception as e:
    logger.error(f"Failed to initialize ActiveDirectory service: {e}")
    raise

app.include_router(api_router)
logger.info("API routes registered successfully")


@app.exception_handler(TrustViolation)
async def trust_violation_handler(request: Request, exc: TrustViolation):
    """Requests from untrusted sources are rejected outright."""
    return JSONResponse(status_code=status.HTTP_403_FORBIDDEN, content={"detail": str(exc)})


@app.exception_handler(InvalidArgument)
async def invalid_argument_handler(request: Request, exc: InvalidArgument):
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": str(exc)})


@app.on_event("startup")
async def startup_event():
    """Initialize services on startup."""
    logger.info("Application startup complete")


@app.on_event("shutdown")
async def shutdown_event():
    """Cleanup on shutdown."""
    logger.info("Application shutting down")


@app.get("/", tags=["Health"])
def read_root():
    """Basic health check endpoint."""
    return {"status": "Map Directory Trust Service is Operational", "docs": "/docs"}


@app.get("/health", tags=["Health"], status_code=status.HTTP_200_OK)
def health_check(request: Request):
    """Detailed health check endpoint with directory and cache status."""
    service: ActiveDirectoryService = request.app.state.directory_service
    health_status = {
        "status": "healthy",
        "service": "Map Directory Trust Service",
        "version": "1.0.0",
        "checks": {}
    }

    health_status["checks"]["directory"] = {
        "status": "healthy" if service.enabled else "disabled",
        "message": "ActiveDirectory lookup enabled" if service.enabled else "AD_LOOKUP_ACTIVE is not 'true'",
        "trusted_proxy_ips": len(service.policy.trusted_proxy_ips),
    }
    if service.enabled and not service.policy.trusted_proxy_ips:
        health_status["checks"]["directory"]["status"] = "warning"
        health_status["checks"]["directory"]["message"] = "Identity header is accepted from any source IP"

    # Cache status check
    try:
        if service.enabled:
            stores = service.dump_stores()
            health_status["checks"]["cache"] = {
                "status": "healthy",
                "users": len(stores["users"]),
                "groups": len(stores["groups"]),
                "groups_per_user": len(stores["groups_per_user"]),
            }
    except Exception as e:
        health_status["status"] = "degraded"
        health_status["checks"]["cache"] = {
            "status": "unhealthy",
            "message": f"Cache check failed: {str(e)}"
        }
        logger.error(f"Cache health check failed: {e}")

    status_code = status.HTTP_200_OK
    if health_status["status"] == "degraded":
        status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    return JSONResponse(content=health_status, status_code=status_code)
