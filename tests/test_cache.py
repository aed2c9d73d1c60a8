"""Directory cache tests."""
import asyncio
import pytest
from adtrust.core.exceptions import InvalidArgument


class TestFindUser:
    """Test the users store."""

    def test_miss_then_hit(self, cache, directory):
        """Repeated lookups query the directory once."""
        async def scenario():
            first = await cache.find_user("alice")
            second = await cache.find_user("alice")
            third = await cache.find_user("  alice ")
            return first, second, third

        first, second, third = asyncio.run(scenario())
        assert first["userPrincipalName"] == "alice@example.com"
        assert first == second == third
        assert directory.calls["find_user"] == 1

    def test_not_found_is_cached_as_empty_record(self, cache, directory):
        async def scenario():
            return await cache.find_user("nobody"), await cache.find_user("nobody")

        assert asyncio.run(scenario()) == ({}, {})
        assert directory.calls["find_user"] == 1
        assert cache.users == {"nobody": {}}

    def test_unreachable_directory_is_cached_as_empty_record(self, cache, directory):
        directory.unavailable = True
        assert asyncio.run(cache.find_user("alice")) == {}

        # Not retried even once the directory is back
        directory.unavailable = False
        assert asyncio.run(cache.find_user("alice")) == {}
        assert directory.calls["find_user"] == 1

    def test_flush_forces_one_fresh_query(self, cache, directory):
        asyncio.run(cache.find_user("alice"))
        cache.flush()
        assert cache.users == {}

        asyncio.run(cache.find_user("alice"))
        asyncio.run(cache.find_user("alice"))
        assert directory.calls["find_user"] == 2

    @pytest.mark.parametrize("bad_name", ["", "   ", None, 42])
    def test_invalid_account_name(self, cache, directory, bad_name):
        with pytest.raises(InvalidArgument):
            asyncio.run(cache.find_user(bad_name))
        assert directory.calls["find_user"] == 0

    def test_concurrent_misses_share_one_query(self, cache, directory):
        directory.delay = 0.01

        async def scenario():
            return await asyncio.gather(*(cache.find_user("bob") for _ in range(5)))

        results = asyncio.run(scenario())
        assert all(r["sAMAccountName"] == "bob" for r in results)
        assert directory.calls["find_user"] == 1

    def test_fill_finishing_after_flush_is_not_stored(self, cache, directory):
        directory.delay = 0.05

        async def scenario():
            lookup = asyncio.ensure_future(cache.find_user("alice"))
            await asyncio.sleep(0.01)
            cache.flush()
            return await lookup

        user = asyncio.run(scenario())
        assert user["sAMAccountName"] == "alice"
        assert cache.users == {}


class TestAvailableGroups:
    """Test the all-groups store."""

    def test_groups_are_fetched_once(self, cache, directory):
        assert asyncio.run(cache.get_available_groups()) == ["Admins", "Users"]
        assert cache.groups == ["Admins", "Users"]
        assert asyncio.run(cache.get_available_groups()) == ["Admins", "Users"]
        assert directory.calls["find_groups"] == 1

    def test_failure_leaves_store_empty_and_retries(self, cache, directory):
        directory.unavailable = True
        assert asyncio.run(cache.get_available_groups()) == []
        assert cache.groups == []

        directory.unavailable = False
        assert asyncio.run(cache.get_available_groups()) == ["Admins", "Users"]
        assert directory.calls["find_groups"] == 2

    def test_duplicate_group_names_are_collapsed(self, cache, directory):
        directory.groups = ["Users", "Admins", "Users"]
        assert asyncio.run(cache.get_available_groups()) == ["Users", "Admins"]

    def test_flush_clears_all_stores(self, cache, evaluator):
        async def scenario():
            await cache.get_available_groups()
            await evaluator.get_group_membership_for_user("alice")

        asyncio.run(scenario())
        assert cache.users and cache.groups and cache.groups_per_user

        cache.flush()
        assert (cache.users, cache.groups, cache.groups_per_user) == ({}, [], {})


class TestStoredRecordsAreIsolated:
    """Callers get copies, the stores can only change through the cache."""

    def test_changing_a_negative_hit_does_not_validate_user(self, cache, evaluator, directory):
        async def scenario():
            await cache.find_user("nobody")
            hit = await cache.find_user("nobody")
            hit["userPrincipalName"] = "nobody@example.com"
            return await evaluator.is_user_valid("nobody")

        assert asyncio.run(scenario()) is False
        assert cache.users == {"nobody": {}}
        assert directory.calls["find_user"] == 1

    def test_changing_a_hit_does_not_change_the_store(self, cache):
        async def scenario():
            await cache.find_user("alice")
            hit = await cache.find_user("alice")
            hit["userPrincipalName"] = ""
            return await cache.find_user("alice")

        assert asyncio.run(scenario())["userPrincipalName"] == "alice@example.com"
