"""
Per-role access rules.

Each role gets one policy object answering two questions: whose leads fall
under the user's supervision (visibility) and who the user may hand a lead
to (assignment). Adding a role means adding a policy here; the module
refuses to import while any role is left without one.
"""
from typing import Dict, List, Set

from app.models.user import UserRole
from app.schemas.user import UserRecord
from app.services.hierarchy import OrgChart


class RolePolicy:
    """Base policy: no supervised users, no assignable targets"""

    role: UserRole

    def sees_everything(self) -> bool:
        return False

    def supervised_ids(self, user: UserRecord, chart: OrgChart) -> Set[str]:
        """Ids whose leads the user can see through the hierarchy"""
        return set()

    def assignable_targets(self, user: UserRecord, chart: OrgChart) -> List[UserRecord]:
        return []


class CallerPolicy(RolePolicy):
    role = UserRole.CALLER

    def assignable_targets(self, user: UserRecord, chart: OrgChart) -> List[UserRecord]:
        # Escalate up to the manager only
        manager = chart.parent_of(user)
        return [manager] if manager else []


class ManagerPolicy(RolePolicy):
    role = UserRole.MANAGER

    def supervised_ids(self, user: UserRecord, chart: OrgChart) -> Set[str]:
        return chart.descendant_ids(user)

    def assignable_targets(self, user: UserRecord, chart: OrgChart) -> List[UserRecord]:
        targets = []
        team_leader = chart.parent_of(user)
        if team_leader:
            targets.append(team_leader)
        targets.extend(chart.children_of(user))
        return targets


class TeamLeaderPolicy(RolePolicy):
    role = UserRole.TEAM_LEADER

    def supervised_ids(self, user: UserRecord, chart: OrgChart) -> Set[str]:
        return chart.descendant_ids(user)

    def assignable_targets(self, user: UserRecord, chart: OrgChart) -> List[UserRecord]:
        managers = chart.children_of(user)
        callers = [caller for manager in managers for caller in chart.children_of(manager)]
        return managers + callers


class AdminPolicy(RolePolicy):
    role = UserRole.ADMIN

    def sees_everything(self) -> bool:
        return True

    def assignable_targets(self, user: UserRecord, chart: OrgChart) -> List[UserRecord]:
        return [other for other in chart.users if other.id != user.id]


ROLE_POLICIES: Dict[UserRole, RolePolicy] = {
    policy.role: policy
    for policy in (CallerPolicy(), ManagerPolicy(), TeamLeaderPolicy(), AdminPolicy())
}

_missing_roles = set(UserRole) - set(ROLE_POLICIES)
if _missing_roles:
    raise RuntimeError(f"No access policy for roles: {sorted(r.value for r in _missing_roles)}")


def policy_for(role: UserRole) -> RolePolicy:
    return ROLE_POLICIES[role]
