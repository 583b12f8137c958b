"""
Org chart queries over an in-memory set of users.

The chart is an arena of users keyed by id. A user's reporting edge is only
honoured when it points at an existing user of the structurally correct
parent role (caller -> manager -> team_leader -> admin); dangling or
mis-typed edges read as "no parent". Nothing here raises or mutates.
"""
from typing import Dict, Iterable, List, Optional, Set, Union

from app.models.user import UserRole, PARENT_ROLE
from app.schemas.user import UserRecord, UserResponse
from app.schemas.analytics import TeamTree, LeaderTeam, ManagerTeam

UNKNOWN_USER_NAME = "Unknown"


class OrgChart:
    """Read-only view of the reporting hierarchy"""

    def __init__(self, users: Iterable[UserRecord]):
        self._users: Dict[str, UserRecord] = {}
        for user in users:
            self._users[user.id] = user
        self._children: Dict[str, List[UserRecord]] = {}
        for user in self._users.values():
            parent = self.parent_of(user)
            if parent is not None:
                self._children.setdefault(parent.id, []).append(user)

    @classmethod
    def of(cls, users: Union["OrgChart", Iterable[UserRecord]]) -> "OrgChart":
        """Accept either a prebuilt chart or a plain user collection"""
        if isinstance(users, OrgChart):
            return users
        return cls(users)

    @property
    def users(self) -> List[UserRecord]:
        return list(self._users.values())

    def get(self, user_id: Optional[str]) -> Optional[UserRecord]:
        if not user_id:
            return None
        return self._users.get(user_id)

    def name_of(self, user_id: Optional[str]) -> str:
        user = self.get(user_id)
        return user.name if user else UNKNOWN_USER_NAME

    def parent_of(self, user: UserRecord) -> Optional[UserRecord]:
        """
        Resolve `reporting_to` to a user record.

        Inactive parents are returned as-is; display layers decide what to
        do with them.
        """
        expected_role = PARENT_ROLE.get(user.role)
        if expected_role is None or not user.reporting_to:
            return None
        parent = self._users.get(user.reporting_to)
        if parent is None or parent.role != expected_role or parent.id == user.id:
            return None
        return parent

    def children_of(self, user: UserRecord) -> List[UserRecord]:
        """Direct reports, in input order"""
        return list(self._children.get(user.id, []))

    def descendants_of(self, user: UserRecord) -> List[UserRecord]:
        """
        Role-aware expansion of everyone below `user`.

        Manager: its callers. Team leader: its managers plus their callers.
        Caller and admin have no direct descendants (admin's reach is
        handled by the role policies as "everyone").
        """
        if user.role not in (UserRole.MANAGER, UserRole.TEAM_LEADER):
            return []

        result: List[UserRecord] = []
        visited: Set[str] = {user.id}
        frontier = [user]
        while frontier:
            next_frontier = []
            for node in frontier:
                for child in self._children.get(node.id, []):
                    if child.id in visited:
                        continue
                    visited.add(child.id)
                    result.append(child)
                    next_frontier.append(child)
            frontier = next_frontier
        return result

    def descendant_ids(self, user: UserRecord) -> Set[str]:
        return {descendant.id for descendant in self.descendants_of(user)}

    def team_tree(self, include_inactive: bool = False) -> TeamTree:
        """Team leaders with their managers and callers, plus unassigned staff"""
        def keep(user: UserRecord) -> bool:
            return include_inactive or user.is_active

        tree = TeamTree()
        for leader in self._by_role(UserRole.TEAM_LEADER):
            if not keep(leader):
                continue
            team = LeaderTeam(team_leader=_public(leader))
            for manager in filter(keep, self.children_of(leader)):
                team.managers.append(ManagerTeam(
                    manager=_public(manager),
                    callers=[_public(caller) for caller in self.children_of(manager) if keep(caller)],
                ))
            tree.teams.append(team)

        # A parent that is inactive or hidden still counts as assigned
        for manager in filter(keep, self._by_role(UserRole.MANAGER)):
            if self.parent_of(manager) is None:
                tree.unassigned_managers.append(_public(manager))
        for caller in filter(keep, self._by_role(UserRole.CALLER)):
            if self.parent_of(caller) is None:
                tree.unassigned_callers.append(_public(caller))
        return tree

    def _by_role(self, role: UserRole) -> List[UserRecord]:
        return [user for user in self._users.values() if user.role == role]


def _public(user: UserRecord) -> UserResponse:
    return UserResponse.model_validate(user)


def parent_of(user: UserRecord, all_users: Union[OrgChart, Iterable[UserRecord]]) -> Optional[UserRecord]:
    return OrgChart.of(all_users).parent_of(user)


def descendants_of(user: UserRecord, all_users: Union[OrgChart, Iterable[UserRecord]]) -> List[UserRecord]:
    return OrgChart.of(all_users).descendants_of(user)
