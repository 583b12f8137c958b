"""Authentication and authorization helpers"""
from typing import Iterable, Optional
from app.core.exceptions import AuthenticationError, PermissionDeniedError
from app.models.user import UserRole
from app.schemas.user import UserRecord
from app.storage.base import StorageBackend
from app.utils.logger import logger


def is_admin_user(user: Optional[UserRecord]) -> bool:
    """
    Check if a user is an active admin

    Args:
        user: User record to check

    Returns:
        True if user is admin, False otherwise
    """
    if not user:
        return False
    return user.role == UserRole.ADMIN and user.is_active


def require_admin(user: Optional[UserRecord]) -> None:
    """
    Raise exception if user is not admin

    Raises:
        PermissionDeniedError: If user is not admin
    """
    if not is_admin_user(user):
        user_name = user.name if user and user.name else "Unknown"
        raise PermissionDeniedError(f"Access denied. Admin privileges required. User: {user_name}")


def find_user_by_email(users: Iterable[UserRecord], email: str) -> Optional[UserRecord]:
    """Case-insensitive email lookup"""
    wanted = (email or "").strip().lower()
    if not wanted:
        return None
    for user in users:
        if user.email.strip().lower() == wanted:
            return user
    return None


async def authenticate(storage: StorageBackend, email: str, password: str) -> UserRecord:
    """
    Match plain credentials against stored users.

    Passwords are compared verbatim.

    Raises:
        AuthenticationError: unknown email, inactive account or wrong password
    """
    if not (email or "").strip():
        raise AuthenticationError("Please enter your email")
    if not password:
        raise AuthenticationError("Please enter your password")

    user = find_user_by_email(await storage.list_users(), email)
    if user is None:
        raise AuthenticationError("User not found with this email")
    if not user.is_active:
        raise AuthenticationError("This user account is inactive")
    if user.password != password:
        logger.warning(f"Failed login for user {user.id}")
        raise AuthenticationError("Invalid password")

    logger.info(f"User {user.id} ({user.role.value}) logged in")
    return user
