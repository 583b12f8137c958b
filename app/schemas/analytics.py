"""Dashboard and org chart schemas"""
from typing import Dict, List
from pydantic import Field
from app.schemas.base import CamelModel
from app.schemas.user import UserResponse


class LeadStats(CamelModel):
    """Aggregates over the leads visible to the acting user"""
    total_leads: int = 0
    leads_by_status: Dict[str, int] = Field(default_factory=dict)
    leads_by_type: Dict[str, int] = Field(default_factory=dict)
    leads_by_source: Dict[str, int] = Field(default_factory=dict)
    pending_reminders: int = 0
    overdue_reminders: int = 0
    conversion_rate: float = 0.0


class UserStats(CamelModel):
    total_users: int = 0
    active_users: int = 0
    users_by_role: Dict[str, int] = Field(default_factory=dict)


class DashboardResponse(CamelModel):
    leads: LeadStats
    users: UserStats


class ManagerTeam(CamelModel):
    manager: UserResponse
    callers: List[UserResponse] = Field(default_factory=list)


class LeaderTeam(CamelModel):
    team_leader: UserResponse
    managers: List[ManagerTeam] = Field(default_factory=list)


class TeamTree(CamelModel):
    """Org chart as drawn on the roles page"""
    teams: List[LeaderTeam] = Field(default_factory=list)
    unassigned_managers: List[UserResponse] = Field(default_factory=list)
    unassigned_callers: List[UserResponse] = Field(default_factory=list)
