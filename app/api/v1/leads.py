"""Lead API endpoints"""
from typing import List, Optional
from fastapi import APIRouter, Depends, Query

from app.api.deps import get_current_user, get_lead_service
from app.models.lead import LeadStatus, LeadType
from app.schemas.lead import (
    LeadRecord,
    LeadCreate,
    LeadUpdate,
    CommentCreate,
    ReminderCreate,
    AssignRequest,
    ReminderView,
    TeamMember,
)
from app.schemas.user import UserRecord, UserResponse
from app.services.lead_service import LeadService

router = APIRouter()


@router.get("/leads", response_model=List[LeadRecord])
async def list_leads(
    status: Optional[LeadStatus] = Query(None, description="Pipeline stage filter"),
    lead_type: Optional[LeadType] = Query(None, alias="type", description="hot, warm or cold"),
    tab: Optional[str] = Query(None, description="working, converted or lost"),
    actor: UserRecord = Depends(get_current_user),
    service: LeadService = Depends(get_lead_service),
):
    """List the leads the acting user may see, newest first"""
    return await service.list_leads(actor, status=status, lead_type=lead_type, tab=tab)


@router.post("/leads", response_model=LeadRecord, status_code=201)
async def create_lead(
    lead_data: LeadCreate,
    actor: UserRecord = Depends(get_current_user),
    service: LeadService = Depends(get_lead_service),
):
    """
    Create a new lead owned by the acting user

    - **name**, **number**, **city**: required
    - **email**: optional, validated when present
    - **leadType**, **source**, **service**: classification
    """
    return await service.create_lead(actor, lead_data)


@router.get("/leads/assignable-targets", response_model=List[UserResponse])
async def get_assignable_targets(
    actor: UserRecord = Depends(get_current_user),
    service: LeadService = Depends(get_lead_service),
):
    """Users the acting user may hand a lead to"""
    return await service.assignable_targets(actor)


@router.put("/leads/bulk")
async def replace_all_leads(
    leads: List[LeadRecord],
    actor: UserRecord = Depends(get_current_user),
    service: LeadService = Depends(get_lead_service),
):
    """Replace the whole lead collection (admin only)"""
    count = await service.replace_all_leads(actor, leads)
    return {"success": True, "count": count}


@router.get("/leads/{lead_id}", response_model=LeadRecord)
async def get_lead(
    lead_id: str,
    actor: UserRecord = Depends(get_current_user),
    service: LeadService = Depends(get_lead_service),
):
    return await service.get_lead(actor, lead_id)


@router.patch("/leads/{lead_id}", response_model=LeadRecord)
async def update_lead(
    lead_id: str,
    changes: LeadUpdate,
    actor: UserRecord = Depends(get_current_user),
    service: LeadService = Depends(get_lead_service),
):
    """Edit contact fields, notes, status or lead type"""
    return await service.update_lead(actor, lead_id, changes)


@router.get("/leads/{lead_id}/team", response_model=List[TeamMember])
async def get_lead_team(
    lead_id: str,
    actor: UserRecord = Depends(get_current_user),
    service: LeadService = Depends(get_lead_service),
):
    return await service.team_members(actor, lead_id)


@router.post("/leads/{lead_id}/comments", response_model=LeadRecord, status_code=201)
async def add_comment(
    lead_id: str,
    comment: CommentCreate,
    actor: UserRecord = Depends(get_current_user),
    service: LeadService = Depends(get_lead_service),
):
    return await service.add_comment(actor, lead_id, comment.text)


@router.get("/leads/{lead_id}/reminders", response_model=List[ReminderView])
async def get_pending_reminders(
    lead_id: str,
    actor: UserRecord = Depends(get_current_user),
    service: LeadService = Depends(get_lead_service),
):
    """Open reminders, soonest first"""
    return await service.pending_reminders(actor, lead_id)


@router.post("/leads/{lead_id}/reminders", response_model=LeadRecord, status_code=201)
async def add_reminder(
    lead_id: str,
    reminder: ReminderCreate,
    actor: UserRecord = Depends(get_current_user),
    service: LeadService = Depends(get_lead_service),
):
    return await service.add_reminder(actor, lead_id, reminder.date_time, reminder.note)


@router.post("/leads/{lead_id}/reminders/{reminder_id}/toggle", response_model=LeadRecord)
async def toggle_reminder(
    lead_id: str,
    reminder_id: str,
    actor: UserRecord = Depends(get_current_user),
    service: LeadService = Depends(get_lead_service),
):
    return await service.toggle_reminder(actor, lead_id, reminder_id)


@router.post("/leads/{lead_id}/assign", response_model=LeadRecord)
async def assign_lead(
    lead_id: str,
    request: AssignRequest,
    actor: UserRecord = Depends(get_current_user),
    service: LeadService = Depends(get_lead_service),
):
    """
    Reassign a lead

    - **toUserId**: must be one of the acting user's assignable targets
    - **reason**: optional, recorded in history and the activity log
    """
    return await service.assign_lead(actor, lead_id, request.to_user_id, request.reason)
