"""Lead visibility: the single predicate that gates every lead read"""
from typing import Iterable, List, Optional, Union

from app.schemas.lead import LeadRecord
from app.schemas.user import UserRecord
from app.services.hierarchy import OrgChart
from app.services.role_policy import policy_for

UserPool = Union[OrgChart, Iterable[UserRecord]]


def can_view(user: Optional[UserRecord], lead: LeadRecord, all_users: UserPool) -> bool:
    """
    Decide whether `user` may read `lead`.

    True when the user is in the lead's team thread, created it, owns it,
    supervises its creator/owner/any thread member, or is an admin.
    """
    if user is None:
        return False

    # Anyone ever involved keeps access after the lead moves on
    if user.id in lead.team_thread:
        return True
    if lead.created_by == user.id:
        return True
    if lead.assigned_to == user.id:
        return True

    policy = policy_for(user.role)
    if policy.sees_everything():
        return True

    supervised = policy.supervised_ids(user, OrgChart.of(all_users))
    if not supervised:
        return False
    if lead.created_by in supervised or lead.assigned_to in supervised:
        return True
    # Overlaps the thread rule above for direct members; kept for leads
    # recorded before thread tracking.
    return any(member in supervised for member in lead.team_thread)


def visible_leads(
    user: Optional[UserRecord],
    all_leads: Iterable[LeadRecord],
    all_users: UserPool,
) -> List[LeadRecord]:
    """Order-preserving filter of `all_leads` by `can_view`"""
    chart = OrgChart.of(all_users)
    return [lead for lead in all_leads if can_view(user, lead, chart)]
