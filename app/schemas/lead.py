"""Lead schemas"""
import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import Field, field_validator

from app.models.lead import LeadStatus, LeadType, LeadSource, ServiceType
from app.schemas.base import CamelModel
from app.utils.timeutils import utcnow, ensure_utc


def new_id() -> str:
    return str(uuid.uuid4())


class LeadComment(CamelModel):
    """Activity log entry"""
    id: str = Field(default_factory=new_id)
    text: str
    created_at: datetime = Field(default_factory=utcnow)
    user_id: Optional[str] = None
    user_name: Optional[str] = None

    @field_validator("created_at")
    @classmethod
    def normalize_created_at(cls, value: datetime) -> datetime:
        return ensure_utc(value)


class CallReminder(CamelModel):
    """Scheduled call; only ever appended or toggled"""
    id: str = Field(default_factory=new_id)
    date_time: datetime
    note: str = ""
    completed: bool = False

    @field_validator("date_time")
    @classmethod
    def normalize_date_time(cls, value: datetime) -> datetime:
        return ensure_utc(value)


class LeadAssignment(CamelModel):
    """One hand-off of lead ownership"""
    id: str = Field(default_factory=new_id)
    from_user_id: str
    from_user_name: str
    to_user_id: str
    to_user_name: str
    reason: str = ""
    assigned_at: datetime = Field(default_factory=utcnow)

    @field_validator("assigned_at")
    @classmethod
    def normalize_assigned_at(cls, value: datetime) -> datetime:
        return ensure_utc(value)


class LeadFields(CamelModel):
    """Contact and classification fields shared by create and record"""
    name: str = ""
    number: str = ""
    email: str = ""
    city: str = ""
    lead_type: LeadType = LeadType.WARM
    source: LeadSource = LeadSource.OTHER
    service: ServiceType = ServiceType.OTHER
    notes: str = ""


class LeadRecord(LeadFields):
    """Full lead record as held by storage"""
    id: str = Field(default_factory=new_id)
    status: LeadStatus = LeadStatus.NEW
    created_at: datetime = Field(default_factory=utcnow)

    created_by: Optional[str] = None
    created_by_name: Optional[str] = None
    assigned_to: Optional[str] = None
    assigned_to_name: Optional[str] = None

    assignment_history: List[LeadAssignment] = Field(default_factory=list)
    team_thread: List[str] = Field(default_factory=list)
    comments: List[LeadComment] = Field(default_factory=list)
    reminders: List[CallReminder] = Field(default_factory=list)

    version: int = 0

    @field_validator("created_at")
    @classmethod
    def normalize_created_at(cls, value: datetime) -> datetime:
        return ensure_utc(value)

    @field_validator("team_thread")
    @classmethod
    def dedupe_team_thread(cls, value: List[str]) -> List[str]:
        seen = []
        for user_id in value:
            if user_id not in seen:
                seen.append(user_id)
        return seen

    def __repr__(self):
        return f"<LeadRecord {self.id} - {self.status.value}>"


class LeadCreate(LeadFields):
    """Schema for creating a lead"""
    pass


class LeadUpdate(CamelModel):
    """Schema for editing a lead; ownership and logs are not editable here"""
    name: Optional[str] = None
    number: Optional[str] = None
    email: Optional[str] = None
    city: Optional[str] = None
    lead_type: Optional[LeadType] = None
    source: Optional[LeadSource] = None
    service: Optional[ServiceType] = None
    notes: Optional[str] = None
    status: Optional[LeadStatus] = None


class CommentCreate(CamelModel):
    text: str


class ReminderCreate(CamelModel):
    date_time: datetime
    note: str = ""


class AssignRequest(CamelModel):
    to_user_id: str = Field(..., description="User receiving the lead")
    reason: str = Field("", description="Optional hand-off reason")


class ReminderView(CallReminder):
    """Pending reminder with its overdue flag"""
    overdue: bool = False


class TeamMember(CamelModel):
    """Thread member as shown on the lead page"""
    id: str
    name: str
    role: Optional[str] = None
