"""Unit tests for storage backends"""
import json

import pytest

from app.core.exceptions import ConflictError, StorageUnavailableError
from app.schemas.lead import LeadAssignment, LeadComment
from app.storage import FallbackStorage, JSONFileStorage, MemoryStorage, SQLStorage, build_storage


class FlakyStorage(MemoryStorage):
    """Memory store that can be switched off to mimic an unreachable database"""

    name = "flaky"

    def __init__(self):
        super().__init__()
        self.down = False

    def _check(self):
        if self.down:
            raise StorageUnavailableError("connection refused")

    async def ping(self):
        return not self.down

    async def list_leads(self):
        self._check()
        return await super().list_leads()

    async def get_lead(self, lead_id):
        self._check()
        return await super().get_lead(lead_id)

    async def put_lead(self, lead, expected_version=None):
        self._check()
        return await super().put_lead(lead, expected_version)

    async def replace_all_leads(self, leads):
        self._check()
        return await super().replace_all_leads(leads)

    async def list_users(self):
        self._check()
        return await super().list_users()

    async def get_user(self, user_id):
        self._check()
        return await super().get_user(user_id)

    async def put_user(self, user):
        self._check()
        return await super().put_user(user)

    async def replace_all_users(self, users):
        self._check()
        return await super().replace_all_users(users)


# Memory

@pytest.mark.asyncio
async def test_memory_put_lead_bumps_version(by_id, make_lead):
    """Test every put stores a new version"""
    store = MemoryStorage()
    lead = await store.put_lead(make_lead(by_id["clr-001"]))
    assert lead.version == 1

    lead = await store.put_lead(lead.model_copy(update={"city": "Delhi"}), expected_version=1)
    assert lead.version == 2
    assert (await store.get_lead(lead.id)).city == "Delhi"


@pytest.mark.asyncio
async def test_memory_put_lead_conflict(by_id, make_lead):
    """Test a stale expected version is rejected"""
    store = MemoryStorage()
    lead = await store.put_lead(make_lead(by_id["clr-001"]))
    await store.put_lead(lead, expected_version=1)

    with pytest.raises(ConflictError):
        await store.put_lead(lead, expected_version=1)


@pytest.mark.asyncio
async def test_memory_new_records_listed_first(by_id, make_lead):
    """Test newly created leads come first"""
    store = MemoryStorage()
    first = await store.put_lead(make_lead(by_id["clr-001"], name="first"))
    second = await store.put_lead(make_lead(by_id["clr-001"], name="second"))
    assert [lead.id for lead in await store.list_leads()] == [second.id, first.id]


@pytest.mark.asyncio
async def test_memory_missing_ids_return_none():
    """Test lookups of unknown ids return None"""
    store = MemoryStorage()
    assert await store.get_lead("nope") is None
    assert await store.get_user("nope") is None


# JSON file

@pytest.mark.asyncio
async def test_json_file_round_trip(tmp_path, users, by_id, make_lead):
    """Test records survive a reload from disk"""
    store = JSONFileStorage(tmp_path)
    await store.replace_all_users(users)
    lead = make_lead(by_id["clr-001"]).model_copy(update={
        "comments": [LeadComment(text="hello", user_id="clr-001", user_name="Neha Gupta")],
        "assignment_history": [LeadAssignment(
            from_user_id="clr-001", from_user_name="Neha Gupta",
            to_user_id="mgr-001", to_user_name="Priya Sharma",
        )],
    })
    stored = await store.put_lead(lead)

    reloaded = JSONFileStorage(tmp_path)
    again = await reloaded.get_lead(stored.id)
    assert again == stored
    assert again.created_at.tzinfo is not None
    assert len(await reloaded.list_users()) == 10


@pytest.mark.asyncio
async def test_json_file_uses_camel_case(tmp_path, by_id, make_lead):
    """Test files hold the camelCase wire format"""
    store = JSONFileStorage(tmp_path)
    await store.put_lead(make_lead(by_id["clr-001"]))

    data = json.loads((tmp_path / "leads.json").read_text())
    assert data[0]["assignedTo"] == "clr-001"
    assert data[0]["teamThread"] == ["clr-001"]
    assert "assigned_to" not in data[0]


def test_json_file_corrupt_file_reads_empty(tmp_path):
    """Test an unreadable file is treated as an empty collection"""
    (tmp_path / "leads.json").write_text("{not json")
    store = JSONFileStorage(tmp_path)
    assert store._leads == {}


# Fallback

@pytest.fixture
def flaky_fallback(tmp_path):
    primary = FlakyStorage()
    cache = JSONFileStorage(tmp_path)
    return primary, cache, FallbackStorage(primary, cache)


@pytest.mark.asyncio
async def test_fallback_reads_serve_cache_when_primary_down(flaky_fallback, users, by_id, make_lead):
    """Test reads degrade to the last snapshot instead of failing"""
    primary, cache, store = flaky_fallback
    await store.replace_all_users(users)
    lead = await store.put_lead(make_lead(by_id["clr-001"]))
    assert len(await store.list_leads()) == 1

    primary.down = True
    assert [item.id for item in await store.list_leads()] == [lead.id]
    assert (await store.get_user("tl-001")).name == "Rajesh Kumar"
    assert store.is_degraded is True


@pytest.mark.asyncio
async def test_fallback_write_while_down_is_pending(flaky_fallback, by_id, make_lead):
    """Test writes succeed locally while the primary is unreachable"""
    primary, cache, store = flaky_fallback
    primary.down = True

    lead = await store.put_lead(make_lead(by_id["clr-001"]))
    await store.put_user(by_id["clr-002"])

    assert lead.id in store.pending_leads
    assert "clr-002" in store.pending_users
    assert await cache.get_lead(lead.id) is not None
    assert primary._leads == {}


@pytest.mark.asyncio
async def test_fallback_sync_pushes_pending(flaky_fallback, by_id, make_lead):
    """Test sync writes local-only records once the primary is back"""
    primary, cache, store = flaky_fallback
    primary.down = True
    lead = await store.put_lead(make_lead(by_id["clr-001"]))
    await store.put_user(by_id["clr-002"])

    primary.down = False
    # Pending records stay visible before they are synced
    assert lead.id in {item.id for item in await store.list_leads()}

    pushed = await store.sync()
    assert pushed == {"leads": 1, "users": 1}
    assert store.pending_leads == set()
    assert store.pending_users == set()
    assert (await primary.get_lead(lead.id)).name == lead.name
    assert await primary.get_user("clr-002") is not None
    assert store.is_degraded is False


@pytest.mark.asyncio
async def test_fallback_sync_pushes_bulk_replace_of_leads(flaky_fallback, by_id, make_lead):
    """Test a lead replace made while down removes dropped leads from the primary"""
    primary, cache, store = flaky_fallback
    keep = await store.put_lead(make_lead(by_id["clr-001"], name="keep"))
    await store.put_lead(make_lead(by_id["clr-001"], name="drop"))

    primary.down = True
    await store.replace_all_leads([keep])
    assert store.has_pending is True

    primary.down = False
    # The cache stays authoritative until the replace is synced
    assert [item.name for item in await store.list_leads()] == ["keep"]

    pushed = await store.sync()
    assert pushed["leads"] == 1
    assert store.pending_bulk_leads is False
    assert store.has_pending is False
    assert [item.name for item in await primary.list_leads()] == ["keep"]
    assert [item.name for item in await store.list_leads()] == ["keep"]


@pytest.mark.asyncio
async def test_fallback_sync_pushes_bulk_replace_of_users(flaky_fallback, users, by_id):
    """Test a user replace made while down removes dropped users from the primary"""
    primary, cache, store = flaky_fallback
    await store.replace_all_users(users)

    primary.down = True
    await store.replace_all_users([by_id["admin-001"], by_id["tl-001"]])
    await store.put_user(by_id["tl-001"].model_copy(update={"phone": "123"}))

    primary.down = False
    assert await store.get_user("clr-001") is None

    pushed = await store.sync()
    assert pushed["users"] == 2
    assert {user.id for user in await primary.list_users()} == {"admin-001", "tl-001"}
    assert (await primary.get_user("tl-001")).phone == "123"
    assert store.pending_users == set()


@pytest.mark.asyncio
async def test_fallback_bulk_replace_stays_pending_while_down(flaky_fallback, by_id, make_lead):
    """Test a failed sync keeps the bulk replace pending"""
    primary, cache, store = flaky_fallback
    await store.put_lead(make_lead(by_id["clr-001"], name="drop"))

    primary.down = True
    await store.replace_all_leads([])

    assert await store.sync() == {"leads": 0, "users": 0}
    assert store.pending_bulk_leads is True
    assert len(primary._leads) == 1


@pytest.mark.asyncio
async def test_fallback_sync_while_still_down(flaky_fallback, by_id, make_lead):
    """Test records stay pending when the primary is still unreachable"""
    primary, cache, store = flaky_fallback
    primary.down = True
    lead = await store.put_lead(make_lead(by_id["clr-001"]))

    assert await store.sync() == {"leads": 0, "users": 0}
    assert store.pending_leads == {lead.id}


@pytest.mark.asyncio
async def test_fallback_conflicts_propagate(flaky_fallback, by_id, make_lead):
    """Test version conflicts from the primary are not swallowed"""
    primary, cache, store = flaky_fallback
    lead = await store.put_lead(make_lead(by_id["clr-001"]))
    await store.put_lead(lead, expected_version=lead.version)

    with pytest.raises(ConflictError):
        await store.put_lead(lead, expected_version=lead.version)


@pytest.mark.asyncio
async def test_fallback_ping_tracks_degraded(flaky_fallback):
    """Test ping reflects primary reachability"""
    primary, cache, store = flaky_fallback
    primary.down = True
    assert await store.ping() is False
    assert store.is_degraded is True
    primary.down = False
    assert await store.ping() is True
    assert store.is_degraded is False


# SQL (sqlite through aiosqlite)

@pytest.fixture
async def sql_storage(tmp_path):
    store = SQLStorage.from_url(f"sqlite+aiosqlite:///{tmp_path / 'leaddesk.db'}")
    await store.create_tables()
    yield store
    await store.close()


@pytest.mark.asyncio
async def test_sql_users_round_trip(sql_storage, users):
    """Test users are stored and read back"""
    await sql_storage.replace_all_users(users)
    assert len(await sql_storage.list_users()) == 10

    tl = await sql_storage.get_user("tl-001")
    assert tl.name == "Rajesh Kumar"
    assert tl.created_at.tzinfo is not None

    await sql_storage.put_user(tl.model_copy(update={"phone": "123"}))
    assert (await sql_storage.get_user("tl-001")).phone == "123"
    assert await sql_storage.get_user("nobody") is None


@pytest.mark.asyncio
async def test_sql_lead_round_trip_with_nested_lists(sql_storage, by_id, make_lead):
    """Test nested comments and history survive the JSON columns"""
    lead = make_lead(by_id["clr-001"]).model_copy(update={
        "comments": [LeadComment(text="hello", user_id="clr-001", user_name="Neha Gupta")],
        "assignment_history": [LeadAssignment(
            from_user_id="clr-001", from_user_name="Neha Gupta",
            to_user_id="mgr-001", to_user_name="Priya Sharma", reason="pricing",
        )],
    })
    stored = await sql_storage.put_lead(lead)
    assert stored.version == 1

    loaded = await sql_storage.get_lead(lead.id)
    assert loaded.comments[0].text == "hello"
    assert loaded.assignment_history[0].reason == "pricing"
    assert loaded.team_thread == ["clr-001"]
    assert loaded.version == 1


@pytest.mark.asyncio
async def test_sql_put_lead_version_check(sql_storage, by_id, make_lead):
    """Test updates bump the version and stale writers get ConflictError"""
    stored = await sql_storage.put_lead(make_lead(by_id["clr-001"]))
    updated = await sql_storage.put_lead(stored.model_copy(update={"city": "Delhi"}), expected_version=1)
    assert updated.version == 2
    assert (await sql_storage.get_lead(stored.id)).city == "Delhi"

    with pytest.raises(ConflictError):
        await sql_storage.put_lead(stored, expected_version=1)


@pytest.mark.asyncio
async def test_sql_replace_all_leads(sql_storage, by_id, make_lead):
    """Test bulk replacement swaps the whole collection"""
    await sql_storage.put_lead(make_lead(by_id["clr-001"]))
    replacement = [make_lead(by_id["clr-004"]), make_lead(by_id["clr-005"])]

    assert await sql_storage.replace_all_leads(replacement) == 2
    assert {item.id for item in await sql_storage.list_leads()} == {item.id for item in replacement}


@pytest.mark.asyncio
async def test_sql_unreachable_database(tmp_path):
    """Test connection failures surface as StorageUnavailableError"""
    store = SQLStorage.from_url(f"sqlite+aiosqlite:///{tmp_path / 'missing' / 'db.sqlite'}")
    try:
        assert await store.ping() is False
        with pytest.raises(StorageUnavailableError):
            await store.list_leads()
    finally:
        await store.close()


def test_build_storage_backends(tmp_path, monkeypatch):
    """Test backend names map to storage classes"""
    from app.core.config import settings

    monkeypatch.setattr(settings, "DATA_DIR", str(tmp_path))
    assert isinstance(build_storage("memory"), MemoryStorage)
    assert isinstance(build_storage("file"), JSONFileStorage)
    assert isinstance(build_storage("sql+file"), FallbackStorage)
    with pytest.raises(ValueError):
        build_storage("redis")
