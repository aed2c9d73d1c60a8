"""Security and authentication utilities."""
from fastapi import Security, HTTPException
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from adtrust.core.config import ADMIN_API_KEY

security_scheme = HTTPBearer(auto_error=False)


def verify_admin_key(credentials: HTTPAuthorizationCredentials = Security(security_scheme)):
    """Verifies the admin token before exposing or flushing directory stores."""
    if credentials is None or credentials.credentials != ADMIN_API_KEY:
        raise HTTPException(
            status_code=403,
            detail="Invalid or missing API Key for directory administration."
        )
    return True
