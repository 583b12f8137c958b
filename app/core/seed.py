"""Demo data: one admin, one team leader, two managers with three callers each"""
from datetime import datetime, timezone
from typing import List

from app.models.user import UserRole
from app.schemas.user import UserRecord
from app.storage.base import StorageBackend
from app.utils.logger import logger


def _day(year: int, month: int, day: int) -> datetime:
    return datetime(year, month, day, tzinfo=timezone.utc)


def demo_users() -> List[UserRecord]:
    """Fresh copies of the demo hierarchy"""
    users = [
        UserRecord(id="admin-001", name="Sanjay Kapoor", email="admin@crm.com", phone="+91 98765 00000",
                   password="admin123", role=UserRole.ADMIN, created_at=_day(2024, 1, 1)),
        UserRecord(id="tl-001", name="Rajesh Kumar", email="tl@crm.com", phone="+91 98765 43210",
                   password="tl123", role=UserRole.TEAM_LEADER, created_at=_day(2024, 1, 1)),
        UserRecord(id="mgr-001", name="Priya Sharma", email="manager1@crm.com", phone="+91 98765 43211",
                   password="manager123", role=UserRole.MANAGER, reporting_to="tl-001",
                   created_at=_day(2024, 1, 15)),
        UserRecord(id="mgr-002", name="Amit Patel", email="manager2@crm.com", phone="+91 98765 43212",
                   password="manager123", role=UserRole.MANAGER, reporting_to="tl-001",
                   created_at=_day(2024, 2, 1)),
    ]
    callers = [
        ("clr-001", "Neha Gupta", "mgr-001", _day(2024, 2, 15)),
        ("clr-002", "Vikram Singh", "mgr-001", _day(2024, 2, 20)),
        ("clr-003", "Anita Desai", "mgr-001", _day(2024, 3, 1)),
        ("clr-004", "Rahul Verma", "mgr-002", _day(2024, 3, 10)),
        ("clr-005", "Sneha Reddy", "mgr-002", _day(2024, 3, 15)),
        ("clr-006", "Karan Mehta", "mgr-002", _day(2024, 3, 20)),
    ]
    for index, (user_id, name, manager_id, created_at) in enumerate(callers, start=1):
        users.append(UserRecord(
            id=user_id,
            name=name,
            email=f"caller{index}@crm.com",
            phone=f"+91 98765 4321{index + 2}",
            password="caller123",
            role=UserRole.CALLER,
            reporting_to=manager_id,
            created_at=created_at,
        ))
    return users


async def check_if_seeded(storage: StorageBackend) -> bool:
    """
    Check if storage already holds users

    Returns:
        True if any user exists, False otherwise
    """
    users = await storage.list_users()
    return len(users) > 0


async def run_seed(storage: StorageBackend) -> int:
    """
    Add demo users that are not present yet.

    Demo credentials predate the password length rule, so records are
    written directly rather than through UserService.

    Returns:
        Number of users added
    """
    existing_ids = {user.id for user in await storage.list_users()}
    added = 0
    for user in demo_users():
        if user.id in existing_ids:
            continue
        await storage.put_user(user)
        added += 1
    logger.info(f"✅ Seeded {added} demo users")
    return added
