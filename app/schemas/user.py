"""User schemas"""
from pydantic import Field, field_validator
from typing import Optional
from datetime import datetime
from app.models.user import UserRole
from app.schemas.base import CamelModel
from app.utils.timeutils import utcnow, ensure_utc


class UserBase(CamelModel):
    """Base user schema"""
    name: str = ""
    email: str = ""
    phone: str = ""
    role: UserRole = UserRole.CALLER
    reporting_to: Optional[str] = None


class UserRecord(UserBase):
    """Full user record as held by storage"""
    id: str
    password: str = ""
    is_active: bool = True
    created_at: datetime = Field(default_factory=utcnow)

    @field_validator("created_at")
    @classmethod
    def normalize_created_at(cls, value: datetime) -> datetime:
        return ensure_utc(value)

    def __repr__(self):
        return f"<UserRecord {self.id} - {self.name} ({self.role.value})>"


class UserCreate(UserBase):
    """Schema for creating a user; checked field by field by UserService"""
    id: Optional[str] = Field(None, description="Optional explicit id")
    password: str = ""


class UserUpdate(CamelModel):
    """Schema for updating a user; only fields that are sent get applied"""
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    password: Optional[str] = None
    role: Optional[UserRole] = None
    reporting_to: Optional[str] = None
    is_active: Optional[bool] = None


class UserResponse(UserBase):
    """Schema for user response (never carries the password)"""
    id: str
    is_active: bool
    created_at: datetime


class LoginRequest(CamelModel):
    email: str
    password: str
