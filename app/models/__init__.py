"""Database models"""
from app.models.user import User, UserRole, ROLE_LABELS, PARENT_ROLE
from app.models.lead import (
    Lead,
    LeadStatus,
    LeadType,
    LeadSource,
    ServiceType,
    CLOSED_STATUSES,
)

__all__ = [
    "User",
    "UserRole",
    "ROLE_LABELS",
    "PARENT_ROLE",
    "Lead",
    "LeadStatus",
    "LeadType",
    "LeadSource",
    "ServiceType",
    "CLOSED_STATUSES",
]
