"""Main API router that includes all v1 routes."""
from fastapi import APIRouter
from adtrust.api.v1.routes import directory, membership

api_router = APIRouter()

api_router.include_router(directory.router, tags=["ActiveDirectory"])
api_router.include_router(membership.router, tags=["Maps and layers"])
