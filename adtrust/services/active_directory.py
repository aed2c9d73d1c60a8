"""Active Directory service: trust policy, cache and membership in one object.

One instance is created at application startup and shared by every request
(see ``adtrust.main``). It is handed to the routes through the
``get_directory_service`` dependency, so tests can swap it out.
"""
from typing import Any, Dict, List, Optional, Sequence
from adtrust import schemas
from adtrust.core import config
from adtrust.core.exceptions import ConfigurationError, InvalidArgument
from adtrust.core.logging_config import logger
from adtrust.services.cache import DirectoryCache
from adtrust.services.directory_client import DirectoryClient, LdapDirectoryClient
from adtrust.services.identity import IdentityExtractor
from adtrust.services.membership import MembershipEvaluator


class ActiveDirectoryService:
    """Facade the HTTP layer talks to."""

    def __init__(self, policy: schemas.TrustPolicy, client: Optional[DirectoryClient] = None):
        self.policy = policy
        self.identity = IdentityExtractor(policy)
        self.cache: Optional[DirectoryCache] = None
        self.membership: Optional[MembershipEvaluator] = None
        if policy.enabled:
            if client is None:
                raise ConfigurationError("A directory client is required when AD lookup is active")
            self.cache = DirectoryCache(client)
            self.membership = MembershipEvaluator(self.cache)

    @classmethod
    def from_config(cls, client: Optional[DirectoryClient] = None) -> "ActiveDirectoryService":
        """Build the service from environment settings."""
        policy = schemas.TrustPolicy(
            enabled=config.AD_LOOKUP_ACTIVE,
            trusted_proxy_ips=config.AD_TRUSTED_PROXY_IPS,
            trusted_header=config.AD_TRUSTED_HEADER,
            override_user=config.AD_OVERRIDE_USER_WITH_VALUE,
        )

        if not policy.enabled:
            logger.info("AD_LOOKUP_ACTIVE is not 'true'. Not enabling ActiveDirectory authentication.")
            return cls(policy)

        if client is None:
            missing = [
                name for name in ("AD_URL", "AD_BASE_DN", "AD_USERNAME", "AD_PASSWORD")
                if not getattr(config, name)
            ]
            if missing:
                raise ConfigurationError(f"Configuration missing: {', '.join(missing)}")
            client = LdapDirectoryClient(config.AD_URL, config.AD_BASE_DN, config.AD_USERNAME, config.AD_PASSWORD)

        if not policy.trusted_proxy_ips:
            logger.warning(
                "AD_TRUSTED_PROXY_IPS is empty: the identity header will be accepted from ANY source IP."
            )
        logger.info("ActiveDirectory authentication enabled")
        return cls(policy, client)

    @property
    def enabled(self) -> bool:
        return self.policy.enabled

    def resolve_identity(self, meta: schemas.RequestMeta) -> Optional[str]:
        return self.identity.resolve_identity(meta)

    async def is_user_valid(self, account_name: Any) -> bool:
        if not self.enabled:
            # Nobody can be looked up, so nobody is valid
            return False
        return await self.membership.is_user_valid(account_name)

    async def get_group_membership_for_user(self, account_name: Any) -> List[str]:
        if not self.enabled:
            return []
        return await self.membership.get_group_membership_for_user(account_name)

    async def is_user_member_of(self, account_name: Any, group_name: Any) -> bool:
        if not self.enabled:
            return False
        return await self.membership.is_user_member_of(account_name, group_name)

    async def get_available_groups(self) -> List[str]:
        if not self.enabled:
            return []
        return await self.cache.get_available_groups()

    async def find_common_groups_for_users(self, users: Sequence[str]) -> List[str]:
        if not users:
            raise InvalidArgument("Can't find common groups if no users are supplied")
        if not self.enabled:
            return []
        return await self.membership.find_common_groups_for_users(users)

    def flush(self) -> None:
        if not self.enabled:
            logger.debug("AD lookup is disabled, nothing to flush")
            return
        self.cache.flush()

    def dump_stores(self) -> Dict[str, Any]:
        if not self.enabled:
            return {"users": {}, "groups": [], "groups_per_user": {}}
        return {
            "users": self.cache.users,
            "groups": self.cache.groups,
            "groups_per_user": self.cache.groups_per_user,
        }
