"""Dashboard aggregates, always computed over visible leads only"""
from collections import Counter
from datetime import datetime
from typing import Iterable, Optional, Sequence

from app.models.lead import LeadStatus, LeadType, LeadSource
from app.models.user import UserRole
from app.schemas.analytics import LeadStats, UserStats, DashboardResponse, TeamTree
from app.schemas.lead import LeadRecord
from app.schemas.user import UserRecord
from app.services.hierarchy import OrgChart
from app.services.visibility import visible_leads
from app.storage.base import StorageBackend
from app.utils.timeutils import utcnow


def lead_stats(
    actor: UserRecord,
    leads: Iterable[LeadRecord],
    users: Sequence[UserRecord],
    now: Optional[datetime] = None,
) -> LeadStats:
    now = now or utcnow()
    visible = visible_leads(actor, leads, users)

    by_status = Counter(lead.status.value for lead in visible)
    by_type = Counter(lead.lead_type.value for lead in visible)
    by_source = Counter(lead.source.value for lead in visible)
    pending = [r for lead in visible for r in lead.reminders if not r.completed]

    total = len(visible)
    converted = by_status.get(LeadStatus.CONVERTED.value, 0)
    return LeadStats(
        total_leads=total,
        leads_by_status={status.value: by_status.get(status.value, 0) for status in LeadStatus},
        leads_by_type={lead_type.value: by_type.get(lead_type.value, 0) for lead_type in LeadType},
        leads_by_source={source.value: by_source.get(source.value, 0) for source in LeadSource},
        pending_reminders=len(pending),
        overdue_reminders=sum(1 for r in pending if r.date_time < now),
        conversion_rate=round(converted / total, 4) if total else 0.0,
    )


def user_stats(users: Sequence[UserRecord]) -> UserStats:
    by_role = Counter(user.role.value for user in users)
    return UserStats(
        total_users=len(users),
        active_users=sum(1 for user in users if user.is_active),
        users_by_role={role.value: by_role.get(role.value, 0) for role in UserRole},
    )


async def dashboard(storage: StorageBackend, actor: UserRecord) -> DashboardResponse:
    users = await storage.list_users()
    leads = await storage.list_leads()
    return DashboardResponse(leads=lead_stats(actor, leads, users), users=user_stats(users))


async def team_tree(storage: StorageBackend, include_inactive: bool = False) -> TeamTree:
    return OrgChart(await storage.list_users()).team_tree(include_inactive=include_inactive)
