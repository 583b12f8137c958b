"""Primary storage with a local cache to fall back on"""
from typing import Dict, List, Optional, Sequence, Set

from app.core.exceptions import StorageUnavailableError
from app.schemas.lead import LeadRecord
from app.schemas.user import UserRecord
from app.storage.base import StorageBackend
from app.storage.memory import MemoryStorage
from app.utils.logger import logger


class FallbackStorage(StorageBackend):
    """
    Route every call to `primary`, degrading to `cache` when it is unreachable.

    Reads refresh the cache from the primary and serve the last snapshot when
    the primary is down. Writes always land in the cache; when the primary
    is down the record is remembered as pending and the write still
    succeeds locally. A bulk replace made while the primary is down marks
    the whole collection pending, and the cache stays authoritative for it
    until `sync()` replaces the primary collection with the cache snapshot. Conflicts and other errors from the primary propagate unchanged.
    """

    name = "fallback"

    def __init__(self, primary: StorageBackend, cache: MemoryStorage):
        self.primary = primary
        self.cache = cache
        self.is_degraded = False
        self.pending_leads: Set[str] = set()
        self.pending_users: Set[str] = set()
        self.pending_bulk_leads = False
        self.pending_bulk_users = False

    @property
    def has_pending(self) -> bool:
        return bool(
            self.pending_bulk_leads or self.pending_bulk_users or self.pending_leads or self.pending_users
        )

    def _primary_failed(self, operation: str, error: StorageUnavailableError) -> None:
        if not self.is_degraded:
            logger.warning(f"Primary storage unavailable during {operation}, using local cache: {error}")
        self.is_degraded = True

    def _primary_ok(self) -> None:
        if self.is_degraded:
            logger.info("Primary storage reachable again")
        self.is_degraded = False

    async def ping(self) -> bool:
        ok = await self.primary.ping()
        if ok:
            self._primary_ok()
        else:
            self.is_degraded = True
        return ok

    async def close(self) -> None:
        await self.primary.close()
        await self.cache.close()

    # Leads

    async def list_leads(self) -> List[LeadRecord]:
        if self.pending_bulk_leads:
            return await self.cache.list_leads()
        try:
            leads = await self.primary.list_leads()
        except StorageUnavailableError as e:
            self._primary_failed("list_leads", e)
            return await self.cache.list_leads()
        self._primary_ok()
        # Keep local-only writes visible until they are synced
        pending = [lead for lead in await self.cache.list_leads() if lead.id in self.pending_leads]
        pending_ids = {lead.id for lead in pending}
        merged = pending + [lead for lead in leads if lead.id not in pending_ids]
        await self.cache.replace_all_leads(merged)
        return merged

    async def get_lead(self, lead_id: str) -> Optional[LeadRecord]:
        if self.pending_bulk_leads or lead_id in self.pending_leads:
            return await self.cache.get_lead(lead_id)
        try:
            lead = await self.primary.get_lead(lead_id)
        except StorageUnavailableError as e:
            self._primary_failed("get_lead", e)
            return await self.cache.get_lead(lead_id)
        self._primary_ok()
        if lead is not None:
            self.cache.remember_lead(lead)
        return lead

    async def put_lead(self, lead: LeadRecord, expected_version: Optional[int] = None) -> LeadRecord:
        if not self.pending_bulk_leads and lead.id not in self.pending_leads:
            try:
                stored = await self.primary.put_lead(lead, expected_version)
            except StorageUnavailableError as e:
                self._primary_failed("put_lead", e)
            else:
                self._primary_ok()
                self.cache.remember_lead(stored)
                return stored
        stored = await self.cache.put_lead(lead, expected_version)
        self.pending_leads.add(lead.id)
        logger.warning(f"Lead {lead.id} saved locally only; pending sync")
        return stored

    async def replace_all_leads(self, leads: Sequence[LeadRecord]) -> int:
        count = await self.cache.replace_all_leads(leads)
        try:
            await self.primary.replace_all_leads(leads)
        except StorageUnavailableError as e:
            self._primary_failed("replace_all_leads", e)
            self.pending_bulk_leads = True
            self.pending_leads = {lead.id for lead in leads}
        else:
            self._primary_ok()
            self.pending_bulk_leads = False
            self.pending_leads.clear()
        return count

    # Users

    async def list_users(self) -> List[UserRecord]:
        if self.pending_bulk_users:
            return await self.cache.list_users()
        try:
            users = await self.primary.list_users()
        except StorageUnavailableError as e:
            self._primary_failed("list_users", e)
            return await self.cache.list_users()
        self._primary_ok()
        pending = [user for user in await self.cache.list_users() if user.id in self.pending_users]
        pending_ids = {user.id for user in pending}
        merged = pending + [user for user in users if user.id not in pending_ids]
        await self.cache.replace_all_users(merged)
        return merged

    async def get_user(self, user_id: str) -> Optional[UserRecord]:
        if self.pending_bulk_users or user_id in self.pending_users:
            return await self.cache.get_user(user_id)
        try:
            user = await self.primary.get_user(user_id)
        except StorageUnavailableError as e:
            self._primary_failed("get_user", e)
            return await self.cache.get_user(user_id)
        self._primary_ok()
        if user is not None:
            self.cache.remember_user(user)
        return user

    async def put_user(self, user: UserRecord) -> UserRecord:
        self.cache.remember_user(user)
        if self.pending_bulk_users:
            self.pending_users.add(user.id)
            return user
        try:
            await self.primary.put_user(user)
        except StorageUnavailableError as e:
            self._primary_failed("put_user", e)
            self.pending_users.add(user.id)
            logger.warning(f"User {user.id} saved locally only; pending sync")
        else:
            self._primary_ok()
            self.pending_users.discard(user.id)
        return user

    async def replace_all_users(self, users: Sequence[UserRecord]) -> int:
        count = await self.cache.replace_all_users(users)
        try:
            await self.primary.replace_all_users(users)
        except StorageUnavailableError as e:
            self._primary_failed("replace_all_users", e)
            self.pending_bulk_users = True
            self.pending_users = {user.id for user in users}
        else:
            self._primary_ok()
            self.pending_bulk_users = False
            self.pending_users.clear()
        return count

    async def sync(self) -> Dict[str, int]:
        """
        Push locally-saved records to the primary.

        Returns how many leads and users were pushed. Records that still fail
        stay pending. A collection replaced while the primary was down is
        pushed whole, so records the replace dropped are removed there too.
        """
        pushed = {"leads": 0, "users": 0}
        if self.pending_bulk_leads:
            snapshot = await self.cache.list_leads()
            try:
                await self.primary.replace_all_leads(snapshot)
            except StorageUnavailableError as e:
                self._primary_failed("sync", e)
                return pushed
            self.pending_bulk_leads = False
            self.pending_leads.clear()
            pushed["leads"] = len(snapshot)

        if self.pending_bulk_users:
            snapshot = await self.cache.list_users()
            try:
                await self.primary.replace_all_users(snapshot)
            except StorageUnavailableError as e:
                self._primary_failed("sync", e)
                return pushed
            self.pending_bulk_users = False
            self.pending_users.clear()
            pushed["users"] = len(snapshot)

        for lead_id in sorted(self.pending_leads):
            lead = await self.cache.get_lead(lead_id)
            if lead is None:
                self.pending_leads.discard(lead_id)
                continue
            try:
                stored = await self.primary.put_lead(lead)
            except StorageUnavailableError as e:
                self._primary_failed("sync", e)
                return pushed
            self.cache.remember_lead(stored)
            self.pending_leads.discard(lead_id)
            pushed["leads"] += 1

        for user_id in sorted(self.pending_users):
            user = await self.cache.get_user(user_id)
            if user is None:
                self.pending_users.discard(user_id)
                continue
            try:
                await self.primary.put_user(user)
            except StorageUnavailableError as e:
                self._primary_failed("sync", e)
                return pushed
            self.pending_users.discard(user_id)
            pushed["users"] += 1

        self._primary_ok()
        if pushed["leads"] or pushed["users"]:
            logger.info(f"Synced {pushed['leads']} leads and {pushed['users']} users to primary storage")
        return pushed
