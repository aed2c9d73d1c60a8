"""Caller identity resolution from a trusted proxy header.

Proposed setup::

                     /-> map server (this application)
    Request -> Proxy
                     \\-> GeoServer

The proxy is the only component reachable from the outside world. It
authenticates the user and puts the account name in a request header
(``X-Control-Header`` unless configured otherwise). This application only
believes that header when the request comes from one of the trusted proxy IPs.
"""
from typing import Mapping, Optional
from adtrust import schemas
from adtrust.core.exceptions import TrustViolation
from adtrust.core.logging_config import security_logger


def _get_header(headers: Mapping[str, str], name: str) -> Optional[str]:
    """Case-insensitive header lookup."""
    wanted = name.lower()
    for key, value in headers.items():
        if key.lower() == wanted:
            return value
    return None


class IdentityExtractor:
    """Derives the caller's account name from request metadata."""

    def __init__(self, policy: schemas.TrustPolicy):
        self.policy = policy

    @property
    def allows_any_source(self) -> bool:
        return not self.policy.trusted_proxy_ips

    def resolve_identity(self, meta: schemas.RequestMeta) -> Optional[str]:
        """Return the account name asserted by a trusted proxy, or None.

        Raises TrustViolation when the trust policy is active and the request
        does not come from an allowed proxy. Callers must reject such requests.
        """
        if not self.policy.enabled:
            # Lookup is off, so nobody is identified
            return None

        override = self.policy.override_user
        if override is not None and override.strip():
            security_logger.warning(
                f'AD_OVERRIDE_USER_WITH_VALUE is set! Will use "{override}" as user name '
                "for all AD functions. DON'T USE THIS IN PRODUCTION!"
            )
            return override

        trusted = self.allows_any_source or meta.source_ip in self.policy.trusted_proxy_ips
        if not trusted:
            message = f"AD authentication does not allow requests from {meta.source_ip}. Aborting."
            security_logger.error(f"[resolve_identity] {message}")
            raise TrustViolation(message)

        if self.allows_any_source:
            security_logger.warning(
                "[resolve_identity] AD authentication is active but no trusted proxy IPs are set. "
                f"The value of {self.policy.trusted_header} is accepted from any request, "
                "which is potentially a huge security risk!"
            )

        security_logger.debug(f"[resolve_identity] Request from {meta.source_ip} accepted")

        user = _get_header(meta.headers, self.policy.trusted_header) or None
        security_logger.debug(f"[resolve_identity] Header {self.policy.trusted_header} has value: {user!r}")
        return user
