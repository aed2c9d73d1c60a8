"""Group membership business logic."""
import asyncio
from typing import Any, List, Sequence
from adtrust.core.exceptions import InvalidArgument, NotFound
from adtrust.core.logging_config import logger
from adtrust.services.cache import DirectoryCache, normalize_account_name

# Long form user name, required for membership queries
PRINCIPAL_NAME = "userPrincipalName"


class MembershipEvaluator:
    """Answers validity and membership questions from the directory cache."""

    def __init__(self, cache: DirectoryCache):
        self.cache = cache

    async def is_user_valid(self, account_name: Any) -> bool:
        """A user is valid when the directory knows its principal name."""
        logger.debug(f"[is_user_valid] Checking if {account_name!r} is a valid user in AD")
        try:
            user = await self.cache.find_user(account_name)
        except InvalidArgument as e:
            logger.error(f"[is_user_valid] {e}")
            return False

        is_valid = bool(user.get(PRINCIPAL_NAME))
        logger.debug(f"[is_user_valid] {account_name!r} is {'' if is_valid else 'NOT '}a valid user in AD")
        return is_valid

    async def get_group_membership_for_user(self, account_name: Any) -> List[str]:
        """Return the CNs of all groups the user belongs to, [] if unknown."""
        try:
            account_name = normalize_account_name(account_name)
        except InvalidArgument as e:
            logger.error(f"[get_group_membership_for_user] {e}")
            return []

        groups = self.cache.cached_groups_for_user(account_name)
        if groups is not None:
            logger.debug(f"[get_group_membership_for_user] {account_name!r} found in groups-per-user store")
            return groups

        logger.debug(f"[get_group_membership_for_user] No entry for {account_name!r} yet. Populating...")
        return await self.cache.single_flight(
            "groups_per_user", account_name, lambda: self._fill_groups_for_user(account_name)
        )

    async def _fill_groups_for_user(self, account_name: str) -> List[str]:
        generation = self.cache.generation
        try:
            # Membership lookups need the userPrincipalName, not the sAMAccountName
            user = await self.cache.find_user(account_name)
            principal_name = user.get(PRINCIPAL_NAME)
            if not principal_name:
                raise NotFound(f"User {account_name} not found.")

            records = await self.cache.client.get_group_membership_for_user(principal_name)
            # We only care about the short name (CN)
            groups = list(dict.fromkeys(g["cn"] for g in records if g.get("cn")))
        except Exception as e:
            # Cache the empty result to avoid asking again
            logger.error(f"[get_group_membership_for_user] {e}")
            groups = []

        logger.debug(f"[get_group_membership_for_user] Setting {account_name!r} to {groups}")
        self.cache.store_groups_for_user(account_name, groups, generation)
        return list(groups)

    async def is_user_member_of(self, account_name: Any, group_name: Any) -> bool:
        """Check if the user is a member of the group with the given CN."""
        if account_name is None or (isinstance(account_name, str) and not account_name.strip()):
            raise InvalidArgument("Cannot lookup group membership for undefined user")
        if group_name is None or (isinstance(group_name, str) and not group_name.strip()):
            raise InvalidArgument("Cannot lookup membership if group isn't specified")

        try:
            groups = await self.get_group_membership_for_user(account_name)
        except Exception as e:
            logger.error(f"[is_user_member_of] {e}")
            return False
        return group_name in groups

    async def find_common_groups_for_users(self, users: Sequence[str]) -> List[str]:
        """Groups shared by every one of the given users."""
        if not users:
            raise InvalidArgument("Can't find common groups if no users are supplied")

        results = await asyncio.gather(
            *(self.get_group_membership_for_user(u) for u in users),
            return_exceptions=True,
        )

        user_groups = []
        for user, result in zip(users, results):
            if isinstance(result, BaseException):
                logger.error(f"[find_common_groups_for_users] Lookup for {user!r} failed: {result}")
                result = []
            user_groups.append(result)

        # Multi-list intersection, keeping the order of the first user's groups
        common = list(dict.fromkeys(user_groups[0]))
        for groups in user_groups[1:]:
            common = [g for g in common if g in groups]
        return common
