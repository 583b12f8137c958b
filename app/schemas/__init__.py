"""Pydantic schemas for records and request/response validation"""
from app.schemas.user import UserRecord, UserCreate, UserUpdate, UserResponse, LoginRequest
from app.schemas.lead import (
    LeadRecord,
    LeadComment,
    CallReminder,
    LeadAssignment,
    LeadCreate,
    LeadUpdate,
    CommentCreate,
    ReminderCreate,
    AssignRequest,
    ReminderView,
    TeamMember,
)
from app.schemas.analytics import (
    LeadStats,
    UserStats,
    DashboardResponse,
    ManagerTeam,
    LeaderTeam,
    TeamTree,
)

__all__ = [
    "UserRecord",
    "UserCreate",
    "UserUpdate",
    "UserResponse",
    "LoginRequest",
    "LeadRecord",
    "LeadComment",
    "CallReminder",
    "LeadAssignment",
    "LeadCreate",
    "LeadUpdate",
    "CommentCreate",
    "ReminderCreate",
    "AssignRequest",
    "ReminderView",
    "TeamMember",
    "LeadStats",
    "UserStats",
    "DashboardResponse",
    "ManagerTeam",
    "LeaderTeam",
    "TeamTree",
]
