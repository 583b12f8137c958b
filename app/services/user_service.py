"""User management: creation, edits, bulk replacement"""
import re
import uuid
from typing import Dict, List, Optional, Sequence

from app.core.config import settings
from app.core.exceptions import NotFoundError, PermissionDeniedError, ValidationFailure
from app.models.user import UserRole, PARENT_ROLE
from app.schemas.user import UserRecord, UserCreate, UserUpdate
from app.services.auth_service import is_admin_user, require_admin
from app.services.hierarchy import OrgChart
from app.storage.base import StorageBackend
from app.storage.locks import RecordLocks
from app.utils.logger import logger
from app.utils.timeutils import utcnow

EMAIL_PATTERN = re.compile(r"\S+@\S+\.\S+")

# Roles that cannot exist without a supervisor
REPORTING_REQUIRED = {
    UserRole.CALLER: "Caller must report to a manager",
    UserRole.MANAGER: "Manager must report to a Team Leader",
}

# Fields a non-admin may change on their own account
SELF_EDITABLE_FIELDS = {"name", "email", "phone", "password"}


def email_lock_key(email: str) -> str:
    """Lock key shared by every write claiming `email`"""
    return f"email:{email.strip().lower()}"


def validate_user(
    user: UserRecord,
    users: Sequence[UserRecord],
    check_password: bool = True,
    check_reporting: bool = True,
) -> Dict[str, str]:
    """
    Collect field errors for `user` against the existing population.

    Returns an empty dict when the record is acceptable.
    """
    errors: Dict[str, str] = {}

    if not user.name.strip():
        errors["name"] = "Name is required"

    email = user.email.strip()
    if not email:
        errors["email"] = "Email is required"
    elif not EMAIL_PATTERN.search(email):
        errors["email"] = "Invalid email format"
    elif any(other.id != user.id and other.email.strip().lower() == email.lower() for other in users):
        errors["email"] = "Email is already in use"

    if not user.phone.strip():
        errors["phone"] = "Phone is required"

    if check_password:
        if not user.password.strip():
            errors["password"] = "Password is required"
        elif len(user.password) < settings.MIN_PASSWORD_LENGTH:
            errors["password"] = f"Password must be at least {settings.MIN_PASSWORD_LENGTH} characters"

    if check_reporting:
        error = _reporting_error(user, users)
        if error:
            errors["reportingTo"] = error

    return errors


def _reporting_error(user: UserRecord, users: Sequence[UserRecord]) -> Optional[str]:
    if not user.reporting_to:
        return REPORTING_REQUIRED.get(user.role)

    expected_role = PARENT_ROLE.get(user.role)
    if expected_role is None:
        return f"{user.role.label} does not report to anyone"
    if user.reporting_to == user.id:
        return "A user cannot report to themselves"
    parent = next((other for other in users if other.id == user.reporting_to), None)
    if parent is None:
        return "Supervisor not found"
    if parent.role != expected_role:
        return f"{user.role.label} must report to a {expected_role.label}"
    return None


class UserService:
    """User CRUD over the storage collaborator"""

    def __init__(self, storage: StorageBackend, locks: Optional[RecordLocks] = None):
        self.storage = storage
        self.locks = locks or RecordLocks()

    async def list_users(self) -> List[UserRecord]:
        return await self.storage.list_users()

    async def org_chart(self) -> OrgChart:
        return OrgChart(await self.storage.list_users())

    async def get_user(self, user_id: str) -> UserRecord:
        user = await self.storage.get_user(user_id)
        if user is None:
            raise NotFoundError(f"User {user_id} not found")
        return user

    async def create_user(self, data: UserCreate, actor: Optional[UserRecord] = None) -> UserRecord:
        """
        Create a user after field-by-field validation.

        `actor` is None only for bootstrap paths (seed); API callers must be
        admins.

        Raises:
            PermissionDeniedError: actor is not an admin
            ValidationFailure: one or more fields are invalid
        """
        if actor is not None:
            require_admin(actor)

        user = UserRecord(
            id=data.id or f"user-{uuid.uuid4().hex[:12]}",
            name=data.name.strip(),
            email=data.email.strip(),
            phone=data.phone.strip(),
            password=data.password,
            role=data.role,
            reporting_to=data.reporting_to or None,
            is_active=True,
            created_at=utcnow(),
        )

        async with self.locks.record(user.id, email_lock_key(user.email)):
            users = await self.storage.list_users()
            errors = validate_user(user, users)
            if any(other.id == user.id for other in users):
                errors["id"] = "User id already exists"
            if errors:
                raise ValidationFailure(errors)
            await self.storage.put_user(user)

        logger.info(f"Created user: {user.id} ({user.role.value}) reporting to {user.reporting_to}")
        return user

    async def update_user(self, actor: UserRecord, user_id: str, changes: UserUpdate) -> UserRecord:
        """
        Apply the fields set in `changes`.

        Admins may change anything; other users may only edit their own
        contact details and password. Reporting rules are re-checked only
        when role or supervisor change, so unrelated edits never fail on
        legacy hierarchy data.
        """
        updates = changes.model_dump(exclude_unset=True)
        is_admin = is_admin_user(actor)
        if not is_admin:
            if actor.id != user_id or not set(updates) <= SELF_EDITABLE_FIELDS:
                raise PermissionDeniedError("Access denied. Admin privileges required.")

        email_keys = [email_lock_key(updates["email"])] if updates.get("email") else []
        async with self.locks.record(user_id, *email_keys):
            current = await self.get_user(user_id)
            if "name" in updates and updates["name"] is not None:
                updates["name"] = updates["name"].strip()
            if "email" in updates and updates["email"] is not None:
                updates["email"] = updates["email"].strip()
            if updates.get("reporting_to") == "":
                updates["reporting_to"] = None
            # None means "not provided" except for reporting_to, which can be cleared
            updates = {
                field: value for field, value in updates.items()
                if value is not None or field == "reporting_to"
            }
            updated = current.model_copy(update=updates)

            users = await self.storage.list_users()
            errors = validate_user(
                updated,
                users,
                check_password="password" in updates,
                check_reporting="role" in updates or "reporting_to" in updates,
            )
            if errors:
                raise ValidationFailure(errors)
            await self.storage.put_user(updated)

        logger.info(f"Updated user {user_id}: {sorted(updates)}")
        return updated

    async def set_active(self, actor: UserRecord, user_id: str, is_active: bool) -> UserRecord:
        return await self.update_user(actor, user_id, UserUpdate(is_active=is_active))

    async def replace_all_users(self, actor: UserRecord, users: Sequence[UserRecord]) -> int:
        """Admin bulk replacement of the whole user collection"""
        require_admin(actor)
        async with self.locks.bulk():
            count = await self.storage.replace_all_users(users)
        logger.info(f"User collection replaced by {actor.id}: {count} users")
        return count

    async def descendants(self, user_id: str) -> List[UserRecord]:
        chart = await self.org_chart()
        user = chart.get(user_id)
        if user is None:
            raise NotFoundError(f"User {user_id} not found")
        return chart.descendants_of(user)
