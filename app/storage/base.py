"""Storage collaborator interface"""
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

from app.schemas.lead import LeadRecord
from app.schemas.user import UserRecord


class StorageBackend(ABC):
    """
    CRUD surface the core needs from persistence.

    Lookups return None for missing ids; the services decide whether that
    is an error. `put_lead` is an upsert that bumps the record version and,
    when `expected_version` is given, raises ConflictError if the stored
    version moved on since the caller read it.
    """

    name = "abstract"

    async def ping(self) -> bool:
        return True

    async def close(self) -> None:
        return None

    # Leads

    @abstractmethod
    async def list_leads(self) -> List[LeadRecord]:
        ...

    @abstractmethod
    async def get_lead(self, lead_id: str) -> Optional[LeadRecord]:
        ...

    @abstractmethod
    async def put_lead(self, lead: LeadRecord, expected_version: Optional[int] = None) -> LeadRecord:
        ...

    @abstractmethod
    async def replace_all_leads(self, leads: Sequence[LeadRecord]) -> int:
        ...

    # Users

    @abstractmethod
    async def list_users(self) -> List[UserRecord]:
        ...

    @abstractmethod
    async def get_user(self, user_id: str) -> Optional[UserRecord]:
        ...

    @abstractmethod
    async def put_user(self, user: UserRecord) -> UserRecord:
        ...

    @abstractmethod
    async def replace_all_users(self, users: Sequence[UserRecord]) -> int:
        ...
