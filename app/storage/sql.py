"""SQLAlchemy-backed storage (the central, durable store)"""
import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, List, Optional, Sequence

from sqlalchemy import delete, select, text, update
from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from app.core.database import Base
from app.core.exceptions import ConflictError, StorageUnavailableError
from app.models.lead import Lead
from app.models.user import User
from app.schemas.lead import LeadRecord
from app.schemas.user import UserRecord
from app.storage.base import StorageBackend
from app.utils.logger import logger

# Errors that mean "database unreachable" rather than "bad query"
UNAVAILABLE_ERRORS = (OperationalError, InterfaceError, OSError, asyncio.TimeoutError)

NESTED_LEAD_FIELDS = ("assignment_history", "comments", "reminders")


def lead_to_row_values(lead: LeadRecord) -> dict:
    """Flatten a lead record into column values; nested lists stay wire-shaped JSON"""
    values = lead.model_dump(exclude={*NESTED_LEAD_FIELDS, "version"})
    for field in NESTED_LEAD_FIELDS:
        values[field] = [item.model_dump(mode="json", by_alias=True) for item in getattr(lead, field)]
    values["team_thread"] = list(lead.team_thread)
    return values


def user_to_row_values(user: UserRecord) -> dict:
    return user.model_dump()


class SQLStorage(StorageBackend):
    """Leads and users in two tables, nested lead data in JSON columns"""

    name = "sql"

    def __init__(
        self,
        engine: Optional[AsyncEngine] = None,
        session_factory: Optional[async_sessionmaker] = None,
    ):
        if engine is None:
            from app.core.database import engine as default_engine, AsyncSessionLocal
            engine = default_engine
            session_factory = session_factory or AsyncSessionLocal
        self._engine = engine
        self._session_factory = session_factory or async_sessionmaker(
            engine, class_=AsyncSession, expire_on_commit=False
        )

    @classmethod
    def from_url(cls, database_url: str) -> "SQLStorage":
        return cls(engine=create_async_engine(database_url))

    async def create_tables(self) -> None:
        """Create missing tables (local/sqlite use; production runs alembic)"""
        try:
            async with self._engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        except UNAVAILABLE_ERRORS as e:
            raise StorageUnavailableError(f"Database unavailable: {e}") from e

    async def close(self) -> None:
        await self._engine.dispose()

    async def ping(self) -> bool:
        try:
            async with self._session() as session:
                await session.execute(text("SELECT 1"))
            return True
        except StorageUnavailableError:
            return False

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[AsyncSession]:
        try:
            async with self._session_factory() as session:
                yield session
        except UNAVAILABLE_ERRORS as e:
            logger.error(f"SQL storage unavailable: {e}")
            raise StorageUnavailableError(f"Database unavailable: {e}") from e

    # Leads

    async def list_leads(self) -> List[LeadRecord]:
        async with self._session() as session:
            result = await session.execute(select(Lead).order_by(Lead.created_at.desc()))
            return [LeadRecord.model_validate(row) for row in result.scalars().all()]

    async def get_lead(self, lead_id: str) -> Optional[LeadRecord]:
        async with self._session() as session:
            row = await session.get(Lead, lead_id)
            return LeadRecord.model_validate(row) if row else None

    async def put_lead(self, lead: LeadRecord, expected_version: Optional[int] = None) -> LeadRecord:
        values = lead_to_row_values(lead)
        async with self._session() as session:
            async with session.begin():
                row = await session.get(Lead, lead.id)
                if row is None:
                    new_version = lead.version + 1
                    session.add(Lead(**values, version=new_version))
                else:
                    current_version = row.version
                    if expected_version is not None and current_version != expected_version:
                        raise ConflictError(
                            f"Lead {lead.id} changed (version {current_version}, expected {expected_version})"
                        )
                    new_version = current_version + 1
                    values.pop("id")
                    result = await session.execute(
                        update(Lead)
                        .where(Lead.id == lead.id, Lead.version == current_version)
                        .values(**values, version=new_version)
                    )
                    if result.rowcount == 0:
                        raise ConflictError(f"Lead {lead.id} was modified concurrently")
        return lead.model_copy(update={"version": new_version})

    async def replace_all_leads(self, leads: Sequence[LeadRecord]) -> int:
        async with self._session() as session:
            async with session.begin():
                await session.execute(delete(Lead))
                for lead in leads:
                    session.add(Lead(**lead_to_row_values(lead), version=lead.version))
        logger.info(f"Replaced lead collection with {len(leads)} leads")
        return len(leads)

    # Users

    async def list_users(self) -> List[UserRecord]:
        async with self._session() as session:
            result = await session.execute(select(User).order_by(User.created_at.desc()))
            return [UserRecord.model_validate(row) for row in result.scalars().all()]

    async def get_user(self, user_id: str) -> Optional[UserRecord]:
        async with self._session() as session:
            row = await session.get(User, user_id)
            return UserRecord.model_validate(row) if row else None

    async def put_user(self, user: UserRecord) -> UserRecord:
        async with self._session() as session:
            async with session.begin():
                await session.merge(User(**user_to_row_values(user)))
        return user

    async def replace_all_users(self, users: Sequence[UserRecord]) -> int:
        async with self._session() as session:
            async with session.begin():
                await session.execute(delete(User))
                for user in users:
                    session.add(User(**user_to_row_values(user)))
        logger.info(f"Replaced user collection with {len(users)} users")
        return len(users)
