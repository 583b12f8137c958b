"""Lead model"""
from sqlalchemy import Column, String, DateTime, Integer, Text, Index, JSON, Enum as SQLEnum
from sqlalchemy.dialects.postgresql import JSONB
import enum
from app.core.database import Base
from app.utils.timeutils import utcnow


class LeadStatus(str, enum.Enum):
    """Pipeline stage. Any stage may follow any other."""
    NEW = "new"
    CONTACTED = "contacted"
    QUALIFIED = "qualified"
    PROPOSAL = "proposal"
    NEGOTIATION = "negotiation"
    CONVERTED = "converted"
    LOST = "lost"


class LeadType(str, enum.Enum):
    """Lead temperature"""
    HOT = "hot"
    WARM = "warm"
    COLD = "cold"


class LeadSource(str, enum.Enum):
    GOOGLE_ADS = "google_ads"
    FACEBOOK = "facebook"
    LINKEDIN = "linkedin"
    EMAIL_CAMPAIGN = "email_campaign"
    OTHER = "other"


class ServiceType(str, enum.Enum):
    WEBSITE = "website"
    AUTOMATION = "automation"
    LP = "lp"
    APP = "app"
    WEB_APP = "web_app"
    OTHER = "other"


CLOSED_STATUSES = (LeadStatus.CONVERTED, LeadStatus.LOST)

JSONType = JSON().with_variant(JSONB(), "postgresql")


class Lead(Base):
    """Lead model representing a prospective customer in the pipeline"""
    __tablename__ = "leads"

    id = Column(String, primary_key=True)
    name = Column(String, nullable=False)
    number = Column(String, nullable=False, default="")
    email = Column(String, nullable=False, default="")
    city = Column(String, nullable=False, default="")
    lead_type = Column(SQLEnum(LeadType), default=LeadType.WARM, nullable=False)
    source = Column(SQLEnum(LeadSource), default=LeadSource.OTHER, nullable=False)
    service = Column(SQLEnum(ServiceType), default=ServiceType.OTHER, nullable=False)
    notes = Column(Text, nullable=False, default="")
    status = Column(SQLEnum(LeadStatus), default=LeadStatus.NEW, nullable=False)

    # Ownership snapshots, names are denormalized at write time
    created_by = Column(String, nullable=True)
    created_by_name = Column(String, nullable=True)
    assigned_to = Column(String, nullable=True)
    assigned_to_name = Column(String, nullable=True)

    assignment_history = Column(JSONType, nullable=False, default=list)
    team_thread = Column(JSONType, nullable=False, default=list)
    comments = Column(JSONType, nullable=False, default=list)
    reminders = Column(JSONType, nullable=False, default=list)

    version = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    # Indexes
    __table_args__ = (
        Index('idx_lead_status_type', 'status', 'lead_type'),
        Index('idx_lead_assigned_to', 'assigned_to'),
    )

    def __repr__(self):
        return f"<Lead {self.id} - {self.status.value}>"
