"""Lead reassignment: legal targets and the transfer itself"""
from typing import Iterable, List, Union

from app.core.exceptions import InvalidAssigneeError
from app.schemas.lead import LeadRecord, LeadAssignment, LeadComment
from app.schemas.user import UserRecord
from app.services.hierarchy import OrgChart
from app.services.role_policy import policy_for
from app.utils.logger import logger
from app.utils.timeutils import utcnow

UserPool = Union[OrgChart, Iterable[UserRecord]]


def assignable_targets(user: UserRecord, all_users: UserPool) -> List[UserRecord]:
    """
    Users `user` may hand a lead to.

    Callers escalate to their manager; managers escalate to their team
    leader or delegate to their callers; team leaders delegate to their
    managers and those managers' callers; admins may pick anyone else.
    """
    chart = OrgChart.of(all_users)
    targets: List[UserRecord] = []
    seen = set()
    for target in policy_for(user.role).assignable_targets(user, chart):
        if target.id in seen or target.id == user.id:
            continue
        seen.add(target.id)
        targets.append(target)
    return targets


def assignment_comment_text(to_user: UserRecord, reason: str) -> str:
    text = f"Lead assigned to {to_user.name} ({to_user.role.label})"
    if reason:
        text += f". Reason: {reason}"
    return text


def assign(
    lead: LeadRecord,
    from_user: UserRecord,
    to_user: UserRecord,
    reason: str,
    all_users: UserPool,
) -> LeadRecord:
    """
    Transfer ownership of `lead` from `from_user` to `to_user`.

    Returns a new record carrying the history entry, new owner, updated team
    thread and activity comment together; `lead` itself is left untouched.

    Raises:
        InvalidAssigneeError: if `to_user` is not an assignable target
    """
    allowed_ids = {target.id for target in assignable_targets(from_user, all_users)}
    if to_user.id not in allowed_ids:
        logger.warning(
            f"Rejected assignment of lead {lead.id}: {from_user.id} ({from_user.role.value}) "
            f"may not assign to {to_user.id} ({to_user.role.value})"
        )
        raise InvalidAssigneeError(
            f"{to_user.name} is not an allowed assignee for {from_user.name}"
        )

    reason = (reason or "").strip()
    now = utcnow()

    record = LeadAssignment(
        from_user_id=from_user.id,
        from_user_name=from_user.name,
        to_user_id=to_user.id,
        to_user_name=to_user.name,
        reason=reason,
        assigned_at=now,
    )
    comment = LeadComment(
        text=assignment_comment_text(to_user, reason),
        created_at=now,
        user_id=from_user.id,
        user_name=from_user.name,
    )

    team_thread = list(lead.team_thread)
    for member in (from_user.id, to_user.id):
        if member not in team_thread:
            team_thread.append(member)

    return lead.model_copy(update={
        "assigned_to": to_user.id,
        "assigned_to_name": to_user.name,
        "assignment_history": [*lead.assignment_history, record],
        "team_thread": team_thread,
        "comments": [*lead.comments, comment],
    })
