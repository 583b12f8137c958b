"""User model"""
from sqlalchemy import Column, String, DateTime, Boolean, Enum as SQLEnum
import enum
from app.core.database import Base
from app.utils.timeutils import utcnow


class UserRole(str, enum.Enum):
    """Role enumeration, lowest tier first"""
    CALLER = "caller"
    MANAGER = "manager"
    TEAM_LEADER = "team_leader"
    ADMIN = "admin"

    @property
    def label(self) -> str:
        return ROLE_LABELS[self]


ROLE_LABELS = {
    UserRole.CALLER: "Caller",
    UserRole.MANAGER: "Manager",
    UserRole.TEAM_LEADER: "Team Leader",
    UserRole.ADMIN: "Administrator",
}

# Role a user's reporting_to must point at; admin is the root
PARENT_ROLE = {
    UserRole.CALLER: UserRole.MANAGER,
    UserRole.MANAGER: UserRole.TEAM_LEADER,
    UserRole.TEAM_LEADER: UserRole.ADMIN,
}


class User(Base):
    """User model representing a member of the sales organisation"""
    __tablename__ = "users"

    id = Column(String, primary_key=True)
    name = Column(String, nullable=False)
    email = Column(String, nullable=False, index=True)
    phone = Column(String, nullable=False, default="")
    password = Column(String, nullable=False)
    role = Column(SQLEnum(UserRole), nullable=False, default=UserRole.CALLER)
    # Plain id, not a foreign key: stale references are tolerated
    reporting_to = Column(String, nullable=True, index=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    def __repr__(self):
        return f"<User {self.id} - {self.name} ({self.role.value})>"
