"""Pytest configuration and fixtures"""
from typing import AsyncGenerator, Callable, Dict, List

import pytest
from httpx import ASGITransport, AsyncClient

from app.core.seed import demo_users
from app.main import app
from app.schemas.lead import LeadRecord
from app.schemas.user import UserRecord
from app.services.lead_service import LeadService
from app.services.user_service import UserService
from app.storage import MemoryStorage, RecordLocks


@pytest.fixture
def users() -> List[UserRecord]:
    """Demo hierarchy: admin, TL, manager1 + 3 callers, manager2 + 3 callers"""
    return demo_users()


@pytest.fixture
def by_id(users: List[UserRecord]) -> Dict[str, UserRecord]:
    return {user.id: user for user in users}


@pytest.fixture
def make_lead() -> Callable[..., LeadRecord]:
    """Build a lead created and owned by `owner` unless told otherwise"""
    def _make(owner: UserRecord = None, **fields) -> LeadRecord:
        data = {
            "name": "Test Lead",
            "number": "+91 90000 00000",
            "city": "Mumbai",
        }
        if owner is not None:
            data.update(
                created_by=owner.id,
                created_by_name=owner.name,
                assigned_to=owner.id,
                assigned_to_name=owner.name,
                team_thread=[owner.id],
            )
        data.update(fields)
        return LeadRecord(**data)

    return _make


@pytest.fixture
async def storage(users: List[UserRecord]) -> MemoryStorage:
    """In-memory storage holding the demo hierarchy"""
    store = MemoryStorage()
    await store.replace_all_users(users)
    return store


@pytest.fixture
def lead_service(storage: MemoryStorage) -> LeadService:
    return LeadService(storage, RecordLocks())


@pytest.fixture
def user_service(storage: MemoryStorage) -> UserService:
    return UserService(storage, RecordLocks())


@pytest.fixture
async def client(storage: MemoryStorage) -> AsyncGenerator[AsyncClient, None]:
    """Create test client bound to the in-memory storage"""
    previous = app.state.storage
    app.state.storage = storage
    app.state.lead_locks = RecordLocks()
    app.state.user_locks = RecordLocks()

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.state.storage = previous
