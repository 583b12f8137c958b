"""In-memory storage, also the base of the local file cache"""
from typing import Dict, List, Optional, Sequence

from app.core.exceptions import ConflictError
from app.schemas.lead import LeadRecord
from app.schemas.user import UserRecord
from app.storage.base import StorageBackend


class MemoryStorage(StorageBackend):
    """Dict-backed store; collections keep insertion order, newest first on create"""

    name = "memory"

    def __init__(self):
        self._leads: Dict[str, LeadRecord] = {}
        self._users: Dict[str, UserRecord] = {}

    # Leads

    async def list_leads(self) -> List[LeadRecord]:
        return list(self._leads.values())

    async def get_lead(self, lead_id: str) -> Optional[LeadRecord]:
        return self._leads.get(lead_id)

    async def put_lead(self, lead: LeadRecord, expected_version: Optional[int] = None) -> LeadRecord:
        current = self._leads.get(lead.id)
        if current is not None and expected_version is not None and current.version != expected_version:
            raise ConflictError(
                f"Lead {lead.id} changed (version {current.version}, expected {expected_version})"
            )
        base_version = current.version if current is not None else lead.version
        stored = lead.model_copy(update={"version": base_version + 1})
        self.remember_lead(stored)
        return stored

    async def replace_all_leads(self, leads: Sequence[LeadRecord]) -> int:
        self._leads = {lead.id: lead for lead in leads}
        self._persist()
        return len(self._leads)

    def remember_lead(self, lead: LeadRecord) -> None:
        """Store `lead` verbatim (no version bump)"""
        if lead.id in self._leads:
            self._leads[lead.id] = lead
        else:
            # New leads go first, matching list order on screen
            self._leads = {lead.id: lead, **self._leads}
        self._persist()

    # Users

    async def list_users(self) -> List[UserRecord]:
        return list(self._users.values())

    async def get_user(self, user_id: str) -> Optional[UserRecord]:
        return self._users.get(user_id)

    async def put_user(self, user: UserRecord) -> UserRecord:
        self.remember_user(user)
        return user

    async def replace_all_users(self, users: Sequence[UserRecord]) -> int:
        self._users = {user.id: user for user in users}
        self._persist()
        return len(self._users)

    def remember_user(self, user: UserRecord) -> None:
        if user.id in self._users:
            self._users[user.id] = user
        else:
            self._users = {user.id: user, **self._users}
        self._persist()

    def _persist(self) -> None:
        """Hook for subclasses that keep a durable copy"""
        return None
