"""Async access to the Active Directory server.

Every call either resolves with data, or rejects with DirectoryUnavailable
(transport or server error) or NotFound (the search succeeded but came back
empty). The LDAP protocol itself is handled by ldap3; its blocking calls are
pushed to worker threads so a slow directory only stalls the awaiting task.
"""
import asyncio
from typing import Any, Dict, List, Protocol

from ldap3 import Connection, Server, NONE, SUBTREE
from ldap3.core.exceptions import LDAPException
from ldap3.utils.conv import escape_filter_chars

from adtrust.core.exceptions import DirectoryUnavailable, NotFound

# Transitive group membership (LDAP_MATCHING_RULE_IN_CHAIN)
IN_CHAIN_RULE = "1.2.840.113556.1.4.1941"

USER_ATTRIBUTES = [
    "sAMAccountName",
    "userPrincipalName",
    "cn",
    "mail",
    "displayName",
    "distinguishedName",
]
GROUP_ATTRIBUTES = ["cn", "description", "distinguishedName"]

PAGE_SIZE = 500


class DirectoryClient(Protocol):
    """What the cache needs from a directory."""

    async def find_user(self, account_name: str) -> Dict[str, Any]:
        ...

    async def get_group_membership_for_user(self, principal_name: str) -> List[Dict[str, Any]]:
        ...

    async def find_groups(self, query: str = "CN=*") -> List[Dict[str, Any]]:
        ...


def _flatten(attributes: Dict[str, Any]) -> Dict[str, Any]:
    """Single valued attributes become scalars, empty ones are dropped."""
    record = {}
    for name, values in attributes.items():
        if not isinstance(values, (list, tuple)):
            values = [values]
        if not values:
            continue
        record[name] = values[0] if len(values) == 1 else list(values)
    return record


def _to_records(response: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Entries of a search response as flat records, referrals skipped."""
    records = []
    for item in response:
        if item.get("type") != "searchResEntry":
            continue
        record = _flatten(item.get("attributes", {}))
        record["dn"] = item.get("dn")
        records.append(record)
    return records


class LdapDirectoryClient:
    """DirectoryClient backed by an ldap3 connection per call."""

    def __init__(self, url: str, base_dn: str, username: str, password: str):
        self.url = url
        self.base_dn = base_dn
        self._username = username
        self._password = password
        self._server = Server(url, get_info=NONE)

    def _connect(self) -> Connection:
        return Connection(
            self._server,
            user=self._username,
            password=self._password,
            auto_bind=True,
            read_only=True,
            raise_exceptions=True,
        )

    def _search(self, search_filter: str, attributes: List[str]) -> List[Dict[str, Any]]:
        try:
            conn = self._connect()
        except LDAPException as e:
            raise DirectoryUnavailable(f"Could not bind to {self.url}: {e}") from e

        try:
            # AD caps a single page (MaxPageSize, 1000 by default), so always page
            response = conn.extend.standard.paged_search(
                self.base_dn,
                search_filter,
                search_scope=SUBTREE,
                attributes=attributes,
                paged_size=PAGE_SIZE,
                generator=False,
            )
            return _to_records(response)
        except LDAPException as e:
            raise DirectoryUnavailable(f"Search {search_filter} failed: {e}") from e
        finally:
            conn.unbind()

    async def find_user(self, account_name: str) -> Dict[str, Any]:
        search_filter = f"(&(objectCategory=User)(sAMAccountName={escape_filter_chars(account_name)}))"
        records = await asyncio.to_thread(self._search, search_filter, USER_ATTRIBUTES)
        if not records:
            raise NotFound(f"User {account_name} not found.")
        return records[0]

    async def get_group_membership_for_user(self, principal_name: str) -> List[Dict[str, Any]]:
        user_filter = f"(&(objectCategory=User)(userPrincipalName={escape_filter_chars(principal_name)}))"
        users = await asyncio.to_thread(self._search, user_filter, ["distinguishedName"])
        if not users:
            raise NotFound(f"User {principal_name} not found.")

        group_filter = (
            f"(&(objectCategory=Group)"
            f"(member:{IN_CHAIN_RULE}:={escape_filter_chars(users[0]['dn'])}))"
        )
        return await asyncio.to_thread(self._search, group_filter, GROUP_ATTRIBUTES)

    async def find_groups(self, query: str = "CN=*") -> List[Dict[str, Any]]:
        search_filter = f"(&(objectCategory=Group)({query}))"
        groups = await asyncio.to_thread(self._search, search_filter, GROUP_ATTRIBUTES)
        if not groups:
            raise NotFound("Couldn't retrieve groups.")
        return groups
