"""Pydantic schemas for request/response validation."""
from pydantic import BaseModel, Field
from typing import List, Optional, Dict, Any


# --- Trust Schemas ---
class TrustPolicy(BaseModel):
    """How far a proxy-injected identity header is believed."""
    enabled: bool = False
    trusted_proxy_ips: List[str] = Field(default_factory=list)  # empty = allow any
    trusted_header: str = "X-Control-Header"
    override_user: Optional[str] = None  # development escape hatch


class RequestMeta(BaseModel):
    """The parts of an inbound request the identity extractor looks at."""
    source_ip: Optional[str] = None
    headers: Dict[str, str] = Field(default_factory=dict)


# --- Directory Schemas ---
class WhoAmIResponse(BaseModel):
    user: Optional[str] = None
    is_valid: bool = False
    groups: List[str] = Field(default_factory=list)


class StoresDump(BaseModel):
    users: Dict[str, Dict[str, Any]]
    groups: List[str]
    groups_per_user: Dict[str, List[str]]


class FlushResponse(BaseModel):
    status: str
    detail: str
