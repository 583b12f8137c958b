"""API dependencies"""
from typing import Optional
from fastapi import Depends, Header, Request
from app.core.config import settings
from app.core.exceptions import AuthenticationError
from app.schemas.user import UserRecord
from app.services.lead_service import LeadService
from app.services.user_service import UserService
from app.storage.base import StorageBackend


def get_storage(request: Request) -> StorageBackend:
    """
    Dependency to get the storage backend built at startup.

    Lives on app.state so tests can swap it with dependency_overrides.
    """
    return request.app.state.storage


def get_lead_service(request: Request, storage: StorageBackend = Depends(get_storage)) -> LeadService:
    return LeadService(storage, request.app.state.lead_locks)


def get_user_service(request: Request, storage: StorageBackend = Depends(get_storage)) -> UserService:
    return UserService(storage, request.app.state.user_locks)


async def get_current_user(
    acting_user_id: Optional[str] = Header(None, alias=settings.ACTING_USER_HEADER),
    storage: StorageBackend = Depends(get_storage),
) -> UserRecord:
    """
    Resolve the acting user from the request header.

    Credentials are checked once at login; afterwards the client sends the
    user id with every request.
    """
    if not acting_user_id:
        raise AuthenticationError(f"Missing {settings.ACTING_USER_HEADER} header")
    user = await storage.get_user(acting_user_id)
    if user is None:
        raise AuthenticationError("Unknown user")
    if not user.is_active:
        raise AuthenticationError("This user account is inactive")
    return user
