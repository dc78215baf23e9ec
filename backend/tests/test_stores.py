"""
PlantDex Backend — Record Store Contract Tests
===============================================

What:  One contract, two backends. Every test runs against the
       MemoryRecordStore and a DatabaseRecordStore on a temporary SQLite
       file (aiosqlite), so the two stay interchangeable.

What we test:
    ✅ Users: create, lookup by id and username, duplicate username → ConflictError
    ✅ Plants: create/get/list/delete, per-user listing in insertion order
    ✅ created_at is non-decreasing in insertion order
    ✅ Concurrent creates get distinct, increasing ids and all show up
    ✅ Database driver errors surface as StorageError
"""

import asyncio

import pytest
import pytest_asyncio
from sqlalchemy.exc import OperationalError

from plantdex.exceptions import ConflictError, StorageError
from plantdex.schemas.plant import PlantFields
from plantdex.stores import DatabaseRecordStore, MemoryRecordStore, build_store


def fields(name: str = "Fern") -> PlantFields:
    return PlantFields(
        name=name,
        scientific_name="Polypodiopsida",
        image_url="https://example.com/fern.jpg",
        habitat="Shady woodland",
        care_tips="Keep moist.",
    )


@pytest_asyncio.fixture(params=["memory", "sqlite"])
async def record_store(request, tmp_path):
    if request.param == "memory":
        store = MemoryRecordStore()
    else:
        store = DatabaseRecordStore.from_url(f"sqlite+aiosqlite:///{tmp_path / 'plantdex.db'}")
        await store.create_schema()
    yield store
    await store.close()


@pytest_asyncio.fixture
async def owner(record_store):
    return await record_store.create_user("alice", "hash-a")


class TestUsers:

    @pytest.mark.asyncio
    async def test_create_and_lookup(self, record_store):
        user = await record_store.create_user("alice", "hash-a")

        assert user.id > 0
        assert (await record_store.get_user(user.id)).username == "alice"
        assert (await record_store.get_user_by_username("alice")).password_hash == "hash-a"
        assert await record_store.get_user(user.id + 100) is None
        assert await record_store.get_user_by_username("nobody") is None

    @pytest.mark.asyncio
    async def test_duplicate_username(self, record_store):
        await record_store.create_user("alice", "hash-a")
        with pytest.raises(ConflictError):
            await record_store.create_user("alice", "hash-b")


class TestPlants:

    @pytest.mark.asyncio
    async def test_create_assigns_id_owner_and_timestamp(self, record_store, owner):
        record = await record_store.create_plant(owner.id, fields())

        assert record.id > 0
        assert record.user_id == owner.id
        assert record.created_at is not None
        assert record.name == "Fern"
        assert await record_store.get_plant(record.id) == record

    @pytest.mark.asyncio
    async def test_ids_strictly_increase(self, record_store, owner):
        first = await record_store.create_plant(owner.id, fields("A"))
        second = await record_store.create_plant(owner.id, fields("B"))

        assert second.id > first.id
        assert second.created_at >= first.created_at

    @pytest.mark.asyncio
    async def test_list_only_returns_owner_records_in_order(self, record_store, owner):
        other = await record_store.create_user("bob", "hash-b")
        await record_store.create_plant(owner.id, fields("A"))
        await record_store.create_plant(other.id, fields("X"))
        await record_store.create_plant(owner.id, fields("B"))

        assert [p.name for p in await record_store.list_plants(owner.id)] == ["A", "B"]
        assert [p.name for p in await record_store.list_plants(other.id)] == ["X"]

    @pytest.mark.asyncio
    async def test_created_at_never_decreases(self, record_store, owner):
        created = [await record_store.create_plant(owner.id, fields(f"P{i}")) for i in range(5)]
        listed = await record_store.list_plants(owner.id)

        for records in (created, listed):
            stamps = [r.created_at for r in records]
            assert all(earlier <= later for earlier, later in zip(stamps, stamps[1:]))
        assert [r.id for r in listed] == [r.id for r in created]

    @pytest.mark.asyncio
    async def test_list_empty_for_new_user(self, record_store, owner):
        assert await record_store.list_plants(owner.id) == []

    @pytest.mark.asyncio
    async def test_delete(self, record_store, owner):
        record = await record_store.create_plant(owner.id, fields())

        assert await record_store.delete_plant(record.id) is True
        assert await record_store.get_plant(record.id) is None
        assert await record_store.delete_plant(record.id) is False

    @pytest.mark.asyncio
    async def test_concurrent_creates(self, record_store, owner):
        """Simultaneous submissions for one user never share an id."""
        records = await asyncio.gather(
            *(record_store.create_plant(owner.id, fields(f"P{i}")) for i in range(10))
        )

        ids = [r.id for r in records]
        assert len(set(ids)) == 10
        listed = await record_store.list_plants(owner.id)
        assert sorted(p.id for p in listed) == sorted(ids)
        assert [p.id for p in listed] == sorted(p.id for p in listed)

    @pytest.mark.asyncio
    async def test_ping(self, record_store):
        assert await record_store.ping() is True


class TestDatabaseErrors:

    @pytest.mark.asyncio
    async def test_driver_error_becomes_storage_error(self, tmp_path):
        """A missing table (schema never created) is reported as StorageError."""
        store = DatabaseRecordStore.from_url(f"sqlite+aiosqlite:///{tmp_path / 'empty.db'}")
        try:
            with pytest.raises(StorageError) as exc_info:
                await store.list_plants(1)
            assert exc_info.value.context["operation"] == "list_plants"
            assert exc_info.value.context["error_type"] == OperationalError.__name__
            assert "SELECT" not in exc_info.value.message
        finally:
            await store.close()


def test_build_store_memory():
    assert isinstance(build_store("memory"), MemoryRecordStore)
