"""Pydantic schemas."""
from adtrust.schemas.schemas import (
    TrustPolicy, RequestMeta,
    WhoAmIResponse, StoresDump, FlushResponse
)

__all__ = [
    "TrustPolicy", "RequestMeta",
    "WhoAmIResponse", "StoresDump", "FlushResponse"
]
