"""In-memory cache for Active Directory lookups."""
import asyncio
from typing import Any, Awaitable, Callable, Dict, List, Optional

from adtrust.core.exceptions import InvalidArgument
from adtrust.core.logging_config import logger
from adtrust.services.directory_client import DirectoryClient

# Purpose:
# Cache avoids repeated (and slow) queries to the directory
#
# How It Works:
# - Cache hit: the stored value is returned, no directory query.
# - Cache miss: one directory query is made and its result is stored.
#   Concurrent misses for the same key wait for that same query.
# - Failures are stored too (empty record / empty list), so a missing user
#   or an unreachable directory is not asked again and again.
# - Nothing expires. Group changes made in AD are only picked up after an
#   explicit flush (PUT /ad/flushStores).
#
# Where it is used:
# - In membership service for validity and group membership checks.
# - In the /ad admin routes for dumping and flushing the stores.

NOT_FOUND: Dict[str, Any] = {}


def normalize_account_name(account_name: Any) -> str:
    """Trim an account name, rejecting anything that can't be one."""
    if not isinstance(account_name, str):
        raise InvalidArgument(
            f"{account_name!r} is not a string, hence it can't be a valid sAMAccountName"
        )
    account_name = account_name.strip()
    if not account_name:
        raise InvalidArgument("Empty string is not a valid sAMAccountName")
    return account_name


class DirectoryCache:
    """Users, all groups and groups-per-user stores in front of a DirectoryClient."""

    def __init__(self, client: DirectoryClient):
        self.client = client
        self._users: Dict[str, Dict[str, Any]] = {}
        self._groups: List[str] = []
        self._groups_per_user: Dict[str, List[str]] = {}
        self._pending: Dict[tuple, asyncio.Task] = {}
        self._generation = 0

    # --- Diagnostics ---

    @property
    def users(self) -> Dict[str, Dict[str, Any]]:
        return {name: dict(record) for name, record in self._users.items()}

    @property
    def groups(self) -> List[str]:
        return list(self._groups)

    @property
    def groups_per_user(self) -> Dict[str, List[str]]:
        return {name: list(groups) for name, groups in self._groups_per_user.items()}

    @property
    def generation(self) -> int:
        """Bumped by every flush; fills started before a flush are not stored."""
        return self._generation

    def flush(self) -> None:
        """Forget everything, the next lookups go to the directory again."""
        logger.info("Flushing local AD cache")
        self._generation += 1
        self._users.clear()
        self._groups.clear()
        self._groups_per_user.clear()
        self._pending.clear()

    # --- In-flight de-duplication ---

    async def single_flight(self, store: str, key: str, fill: Callable[[], Awaitable[Any]]) -> Any:
        """Run fill() once per (store, key) however many callers miss at the same time."""
        pending_key = (store, key)
        task = self._pending.get(pending_key)
        if task is None:
            task = asyncio.ensure_future(fill())
            self._pending[pending_key] = task

            def _forget(done: asyncio.Task) -> None:
                if self._pending.get(pending_key) is done:
                    del self._pending[pending_key]

            task.add_done_callback(_forget)
        else:
            logger.debug(f"[single_flight] Joining pending {store} lookup for {key!r}")
        # shield: a cancelled caller must not cancel the lookup for the others
        return await asyncio.shield(task)

    # --- Users ---

    async def find_user(self, account_name: Any) -> Dict[str, Any]:
        """Return the user record, or the empty record if the user can't be found."""
        account_name = normalize_account_name(account_name)

        if account_name in self._users:
            return dict(self._users[account_name])

        return await self.single_flight("users", account_name, lambda: self._fill_user(account_name))

    async def _fill_user(self, account_name: str) -> Dict[str, Any]:
        generation = self._generation
        logger.debug(f"[find_user] Looking up {account_name!r} in real AD")
        try:
            user = await self.client.find_user(account_name)
            if not user:
                user = NOT_FOUND
        except Exception as e:
            # Also covers "not found": we already know the answer for next time
            logger.error(f"[find_user] {e}")
            user = NOT_FOUND

        if generation == self._generation:
            logger.debug(f"[find_user] Saving {account_name!r} in user store with value: {user}")
            self._users[account_name] = dict(user)
        return dict(user)

    # --- Groups per user ---

    def cached_groups_for_user(self, account_name: str) -> Optional[List[str]]:
        groups = self._groups_per_user.get(account_name)
        return None if groups is None else list(groups)

    def store_groups_for_user(self, account_name: str, groups: List[str], generation: int) -> None:
        if generation != self._generation:
            logger.debug(f"Cache flushed while resolving groups for {account_name!r}, not storing")
            return
        self._groups_per_user[account_name] = list(groups)

    # --- All groups ---

    async def get_available_groups(self) -> List[str]:
        """Return all group CNs in the directory, fetched once until flushed."""
        if self._groups:
            return list(self._groups)
        return await self.single_flight("groups", "*", self._fill_groups)

    async def _fill_groups(self) -> List[str]:
        generation = self._generation
        try:
            groups = await self.client.find_groups("CN=*")
        except Exception as e:
            # Leave the store empty so the next call asks again
            logger.error(f"[get_available_groups] {e}")
            return []

        names = list(dict.fromkeys(g["cn"] for g in groups if g.get("cn")))
        if generation == self._generation:
            self._groups = names
        return list(names)
