"""
Lead lifecycle service.

Every operation takes the acting user first and goes through the visibility
predicate before touching a lead; a lead the actor cannot see is reported
as not found. Mutations run as read-modify-write cycles under a per-lead
lock and are stored with an optimistic version check, retried on conflict.
"""
from datetime import datetime
from typing import Callable, List, Optional, Sequence

from app.core.config import settings
from app.core.exceptions import ConflictError, NotFoundError, ValidationFailure
from app.models.lead import LeadStatus, LeadType, CLOSED_STATUSES
from app.schemas.lead import (
    LeadRecord,
    LeadCreate,
    LeadUpdate,
    LeadComment,
    CallReminder,
    ReminderView,
    TeamMember,
)
from app.schemas.user import UserRecord
from app.services.assignment import assign, assignable_targets
from app.services.auth_service import require_admin
from app.services.hierarchy import OrgChart
from app.services.user_service import EMAIL_PATTERN
from app.services.visibility import can_view, visible_leads
from app.storage.base import StorageBackend
from app.storage.locks import RecordLocks
from app.utils.logger import logger
from app.utils.timeutils import utcnow

# List tabs on the leads page
TAB_WORKING = "working"
TAB_CONVERTED = "converted"
TAB_LOST = "lost"
LEAD_TABS = (TAB_WORKING, TAB_CONVERTED, TAB_LOST)

Mutation = Callable[[LeadRecord, OrgChart], LeadRecord]


def validate_lead_fields(lead: LeadRecord) -> dict:
    errors = {}
    if not lead.name.strip():
        errors["name"] = "Name is required"
    if not lead.number.strip():
        errors["number"] = "Phone number is required"
    if not lead.city.strip():
        errors["city"] = "City is required"
    if lead.email.strip() and not EMAIL_PATTERN.search(lead.email):
        errors["email"] = "Invalid email format"
    return errors


class LeadService:
    """Lead reads and writes on behalf of an acting user"""

    def __init__(self, storage: StorageBackend, locks: Optional[RecordLocks] = None):
        self.storage = storage
        self.locks = locks or RecordLocks()

    async def _chart(self) -> OrgChart:
        return OrgChart(await self.storage.list_users())

    async def _visible_lead(self, actor: UserRecord, lead_id: str, chart: OrgChart) -> LeadRecord:
        lead = await self.storage.get_lead(lead_id)
        if lead is None or not can_view(actor, lead, chart):
            raise NotFoundError(f"Lead {lead_id} not found")
        return lead

    async def _mutate(self, actor: UserRecord, lead_id: str, mutation: Mutation) -> LeadRecord:
        """Read, apply `mutation`, store; retry when another writer got in first"""
        async with self.locks.record(lead_id):
            for attempt in range(1, settings.WRITE_RETRIES + 1):
                chart = await self._chart()
                lead = await self._visible_lead(actor, lead_id, chart)
                updated = mutation(lead, chart)
                try:
                    return await self.storage.put_lead(updated, expected_version=lead.version)
                except ConflictError as e:
                    logger.warning(f"Write conflict on lead {lead_id} (attempt {attempt}): {e}")
        raise ConflictError(f"Lead {lead_id} is being modified, please retry")

    # Reads

    async def list_leads(
        self,
        actor: UserRecord,
        status: Optional[LeadStatus] = None,
        lead_type: Optional[LeadType] = None,
        tab: Optional[str] = None,
    ) -> List[LeadRecord]:
        """Leads visible to `actor`, optionally narrowed by status, type or tab"""
        if tab is not None and tab not in LEAD_TABS:
            raise ValidationFailure({"tab": f"Unknown tab: {tab}"})

        leads = visible_leads(actor, await self.storage.list_leads(), await self._chart())
        if status is not None:
            leads = [lead for lead in leads if lead.status == status]
        if lead_type is not None:
            leads = [lead for lead in leads if lead.lead_type == lead_type]
        if tab == TAB_WORKING:
            leads = [lead for lead in leads if lead.status not in CLOSED_STATUSES]
        elif tab == TAB_CONVERTED:
            leads = [lead for lead in leads if lead.status == LeadStatus.CONVERTED]
        elif tab == TAB_LOST:
            leads = [lead for lead in leads if lead.status == LeadStatus.LOST]
        return leads

    async def get_lead(self, actor: UserRecord, lead_id: str) -> LeadRecord:
        return await self._visible_lead(actor, lead_id, await self._chart())

    async def team_members(self, actor: UserRecord, lead_id: str) -> List[TeamMember]:
        """Thread members with current names; stale ids show as Unknown"""
        chart = await self._chart()
        lead = await self._visible_lead(actor, lead_id, chart)
        members = []
        for user_id in lead.team_thread:
            user = chart.get(user_id)
            members.append(TeamMember(
                id=user_id,
                name=chart.name_of(user_id),
                role=user.role.value if user else None,
            ))
        return members

    async def pending_reminders(
        self, actor: UserRecord, lead_id: str, now: Optional[datetime] = None
    ) -> List[ReminderView]:
        """Open reminders, soonest first, flagged when already past"""
        lead = await self.get_lead(actor, lead_id)
        now = now or utcnow()
        pending = sorted((r for r in lead.reminders if not r.completed), key=lambda r: r.date_time)
        return [
            ReminderView(**reminder.model_dump(), overdue=reminder.date_time < now)
            for reminder in pending
        ]

    async def assignable_targets(self, actor: UserRecord) -> List[UserRecord]:
        return assignable_targets(actor, await self._chart())

    # Writes

    async def create_lead(self, actor: UserRecord, data: LeadCreate) -> LeadRecord:
        """
        Create a lead owned by its creator.

        The new lead starts in status "new" with the creator as owner and
        sole team thread member.

        Raises:
            ValidationFailure: missing name/number/city or malformed email
        """
        lead = LeadRecord(
            **data.model_dump(),
            status=LeadStatus.NEW,
            created_at=utcnow(),
            created_by=actor.id,
            created_by_name=actor.name,
            assigned_to=actor.id,
            assigned_to_name=actor.name,
            team_thread=[actor.id],
        )
        errors = validate_lead_fields(lead)
        if errors:
            raise ValidationFailure(errors)

        async with self.locks.record(lead.id):
            stored = await self.storage.put_lead(lead)

        logger.info(f"Lead created: {stored.id} by {actor.id}, type={stored.lead_type.value}")
        return stored

    async def update_lead(self, actor: UserRecord, lead_id: str, changes: LeadUpdate) -> LeadRecord:
        """Edit contact fields, notes, status or type. Any status may follow any other."""
        updates = {field: value for field, value in changes.model_dump(exclude_unset=True).items() if value is not None}

        def apply(lead: LeadRecord, chart: OrgChart) -> LeadRecord:
            updated = lead.model_copy(update=updates)
            errors = validate_lead_fields(updated)
            if errors:
                raise ValidationFailure(errors)
            return updated

        stored = await self._mutate(actor, lead_id, apply)
        logger.info(f"Lead {lead_id} updated by {actor.id}: {sorted(updates)}")
        return stored

    async def change_status(self, actor: UserRecord, lead_id: str, status: LeadStatus) -> LeadRecord:
        return await self.update_lead(actor, lead_id, LeadUpdate(status=status))

    async def change_lead_type(self, actor: UserRecord, lead_id: str, lead_type: LeadType) -> LeadRecord:
        return await self.update_lead(actor, lead_id, LeadUpdate(lead_type=lead_type))

    async def add_comment(self, actor: UserRecord, lead_id: str, text: str) -> LeadRecord:
        text = (text or "").strip()
        if not text:
            raise ValidationFailure({"text": "Comment cannot be empty"})

        def apply(lead: LeadRecord, chart: OrgChart) -> LeadRecord:
            comment = LeadComment(text=text, user_id=actor.id, user_name=actor.name)
            return lead.model_copy(update={"comments": [*lead.comments, comment]})

        return await self._mutate(actor, lead_id, apply)

    async def add_reminder(self, actor: UserRecord, lead_id: str, date_time: datetime, note: str = "") -> LeadRecord:
        reminder = CallReminder(date_time=date_time, note=note.strip())

        def apply(lead: LeadRecord, chart: OrgChart) -> LeadRecord:
            return lead.model_copy(update={"reminders": [*lead.reminders, reminder]})

        stored = await self._mutate(actor, lead_id, apply)
        logger.info(f"Reminder {reminder.id} added to lead {lead_id} for {reminder.date_time.isoformat()}")
        return stored

    async def toggle_reminder(self, actor: UserRecord, lead_id: str, reminder_id: str) -> LeadRecord:
        def apply(lead: LeadRecord, chart: OrgChart) -> LeadRecord:
            if not any(r.id == reminder_id for r in lead.reminders):
                raise NotFoundError(f"Reminder {reminder_id} not found")
            reminders = [
                r.model_copy(update={"completed": not r.completed}) if r.id == reminder_id else r
                for r in lead.reminders
            ]
            return lead.model_copy(update={"reminders": reminders})

        return await self._mutate(actor, lead_id, apply)

    async def assign_lead(self, actor: UserRecord, lead_id: str, to_user_id: str, reason: str = "") -> LeadRecord:
        """
        Hand the lead to `to_user_id`.

        Raises:
            NotFoundError: lead not visible to actor, or target user missing
            InvalidAssigneeError: target outside the actor's assignable set
        """
        def apply(lead: LeadRecord, chart: OrgChart) -> LeadRecord:
            to_user = chart.get(to_user_id)
            if to_user is None:
                raise NotFoundError(f"User {to_user_id} not found")
            return assign(lead, actor, to_user, reason, chart)

        stored = await self._mutate(actor, lead_id, apply)
        logger.info(
            f"Lead {lead_id} assigned by {actor.id} to {to_user_id} "
            f"(history={len(stored.assignment_history)}, thread={len(stored.team_thread)})"
        )
        return stored

    async def replace_all_leads(self, actor: UserRecord, leads: Sequence[LeadRecord]) -> int:
        """Admin bulk replacement; waits for in-flight record writes"""
        require_admin(actor)
        async with self.locks.bulk():
            count = await self.storage.replace_all_leads(leads)
        logger.info(f"Lead collection replaced by {actor.id}: {count} leads")
        return count
