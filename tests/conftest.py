"""Pytest configuration and fixtures."""
import asyncio
import os

# Settings are read at import time, so set them before importing app modules
os.environ["ADMIN_API_KEY"] = "SUPER_SECRET_ADMIN_KEY_2404"
os.environ["AD_LOOKUP_ACTIVE"] = "true"
os.environ["AD_URL"] = "ldap://ad.example.com"
os.environ["AD_BASE_DN"] = "DC=example,DC=com"
os.environ["AD_USERNAME"] = "svc-mapserver@example.com"
os.environ["AD_PASSWORD"] = "not-a-real-password"
os.environ["AD_TRUSTED_PROXY_IPS"] = "testclient"

from fastapi.testclient import TestClient
import pytest
from adtrust import schemas
from adtrust.api.deps import get_directory_service
from adtrust.core.exceptions import DirectoryUnavailable, NotFound
from adtrust.main import app
from adtrust.services.active_directory import ActiveDirectoryService
from adtrust.services.cache import DirectoryCache
from adtrust.services.membership import MembershipEvaluator


def make_user(account_name: str) -> dict:
    """A directory user record as the LDAP client returns it."""
    return {
        "sAMAccountName": account_name,
        "userPrincipalName": f"{account_name}@example.com",
        "cn": account_name.title(),
        "dn": f"CN={account_name.title()},OU=Users,DC=example,DC=com",
    }


class FakeDirectoryClient:
    """In-memory directory that counts how often it is asked."""

    def __init__(self, users=None, memberships=None, groups=None, delay=0.0):
        self.users = {name: make_user(name) for name in (users or [])}
        self.memberships = memberships or {}  # principal name -> [cn, ...]
        self.groups = groups or []
        self.delay = delay
        self.unavailable = False
        self.calls = {"find_user": 0, "get_group_membership_for_user": 0, "find_groups": 0}

    async def _answer(self, operation):
        self.calls[operation] += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.unavailable:
            raise DirectoryUnavailable("Could not bind to ldap://ad.example.com")

    async def find_user(self, account_name):
        await self._answer("find_user")
        if account_name not in self.users:
            raise NotFound(f"User {account_name} not found.")
        return dict(self.users[account_name])

    async def get_group_membership_for_user(self, principal_name):
        await self._answer("get_group_membership_for_user")
        if principal_name not in self.memberships:
            raise NotFound(f"User {principal_name} not found.")
        return [{"cn": cn, "dn": f"CN={cn},OU=Groups,DC=example,DC=com"} for cn in self.memberships[principal_name]]

    async def find_groups(self, query="CN=*"):
        await self._answer("find_groups")
        if not self.groups:
            raise NotFound("Couldn't retrieve groups.")
        return [{"cn": cn} for cn in self.groups]


@pytest.fixture
def directory():
    """Two known users, alice and bob, with overlapping groups."""
    return FakeDirectoryClient(
        users=["alice", "bob", "carol"],
        memberships={
            "alice@example.com": ["A", "B"],
            "bob@example.com": ["B", "C"],
        },
        groups=["Admins", "Users"],
    )


@pytest.fixture
def cache(directory):
    return DirectoryCache(directory)


@pytest.fixture
def evaluator(cache):
    return MembershipEvaluator(cache)


@pytest.fixture
def service(directory):
    policy = schemas.TrustPolicy(enabled=True, trusted_proxy_ips=["testclient"])
    return ActiveDirectoryService(policy, directory)


@pytest.fixture
def client(service):
    """TestClient whose routes use the fake directory."""
    app.dependency_overrides[get_directory_service] = lambda: service
    yield TestClient(app=app)
    app.dependency_overrides.clear()


