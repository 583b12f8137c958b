"""User API endpoints"""
from typing import List
from fastapi import APIRouter, Depends

from app.api.deps import get_current_user, get_storage, get_user_service
from app.schemas.user import UserCreate, UserRecord, UserResponse, UserUpdate, LoginRequest
from app.services.auth_service import authenticate
from app.services.user_service import UserService
from app.storage.base import StorageBackend
from app.utils.logger import logger

router = APIRouter()


@router.post("/auth/login", response_model=UserResponse)
async def login(
    credentials: LoginRequest,
    storage: StorageBackend = Depends(get_storage),
):
    """Check email and password; the returned id goes in the acting-user header"""
    return await authenticate(storage, credentials.email, credentials.password)


@router.get("/users", response_model=List[UserResponse])
async def list_users(
    actor: UserRecord = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    return await service.list_users()


@router.post("/users", response_model=UserResponse, status_code=201)
async def create_user(
    user_data: UserCreate,
    actor: UserRecord = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    """
    Create a new user (admin only)

    - **name**, **email**, **phone**: required; email must be unique
    - **password**: at least 6 characters
    - **role**: caller, manager, team_leader or admin
    - **reportingTo**: required for callers (a manager) and managers (a team leader)
    """
    return await service.create_user(user_data, actor=actor)


@router.put("/users/bulk")
async def replace_all_users(
    users: List[UserRecord],
    actor: UserRecord = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    """Replace the whole user collection (admin only)"""
    count = await service.replace_all_users(actor, users)
    return {"success": True, "count": count}


@router.get("/users/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: str,
    actor: UserRecord = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    return await service.get_user(user_id)


@router.patch("/users/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: str,
    changes: UserUpdate,
    actor: UserRecord = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    """Change role, supervisor, active flag or contact details"""
    user = await service.update_user(actor, user_id, changes)
    logger.debug(f"User {user_id} updated via API by {actor.id}")
    return user


@router.get("/users/{user_id}/descendants", response_model=List[UserResponse])
async def get_descendants(
    user_id: str,
    actor: UserRecord = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    """Everyone below the user in the org chart"""
    return await service.descendants(user_id)
