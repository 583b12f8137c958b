"""Dashboard and org chart endpoints"""
from fastapi import APIRouter, Depends, Query

from app.api.deps import get_current_user, get_storage
from app.schemas.analytics import DashboardResponse, TeamTree
from app.schemas.user import UserRecord
from app.services import analytics_service
from app.storage.base import StorageBackend

router = APIRouter()


@router.get("/stats", response_model=DashboardResponse)
async def get_stats(
    actor: UserRecord = Depends(get_current_user),
    storage: StorageBackend = Depends(get_storage),
):
    """Lead counts over the acting user's visible leads, plus user totals"""
    return await analytics_service.dashboard(storage, actor)


@router.get("/hierarchy", response_model=TeamTree)
async def get_hierarchy(
    include_inactive: bool = Query(False, alias="includeInactive"),
    actor: UserRecord = Depends(get_current_user),
    storage: StorageBackend = Depends(get_storage),
):
    """Team leaders, their managers and callers, and anyone unassigned"""
    return await analytics_service.team_tree(storage, include_inactive=include_inactive)
