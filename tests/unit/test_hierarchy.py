"""Unit tests for the org chart"""
import pytest

from app.models.user import UserRole
from app.schemas.user import UserRecord
from app.services.assignment import assignable_targets
from app.services.hierarchy import OrgChart, descendants_of, parent_of
from app.services.visibility import can_view


def _ids(users):
    return {user.id for user in users}


def test_parent_of_caller_is_manager(users, by_id):
    """Test a caller resolves to its manager"""
    assert parent_of(by_id["clr-001"], users).id == "mgr-001"
    assert parent_of(by_id["clr-004"], users).id == "mgr-002"


def test_parent_of_manager_is_team_leader(users, by_id):
    """Test a manager resolves to its team leader"""
    assert parent_of(by_id["mgr-002"], users).id == "tl-001"


def test_parent_of_without_reporting_edge(users, by_id):
    """Test admin and team leader without reportingTo have no parent"""
    assert parent_of(by_id["admin-001"], users) is None
    assert parent_of(by_id["tl-001"], users) is None


def test_parent_of_dangling_reference(users):
    """Test a reportingTo pointing at a missing user reads as no parent"""
    orphan = UserRecord(id="clr-x", name="Orphan", role=UserRole.CALLER, reporting_to="mgr-deleted")
    assert parent_of(orphan, users + [orphan]) is None


def test_parent_of_wrong_parent_role(users):
    """Test a caller reporting straight to a team leader is not linked"""
    skipper = UserRecord(id="clr-x", name="Skipper", role=UserRole.CALLER, reporting_to="tl-001")
    assert parent_of(skipper, users + [skipper]) is None


def test_parent_of_self_reference():
    """Test a self edge never resolves"""
    loop = UserRecord(id="mgr-x", name="Loop", role=UserRole.MANAGER, reporting_to="mgr-x")
    assert parent_of(loop, [loop]) is None


def test_descendants_of_manager(users, by_id):
    """Test a manager's descendants are exactly its callers"""
    assert _ids(descendants_of(by_id["mgr-001"], users)) == {"clr-001", "clr-002", "clr-003"}


def test_descendants_of_team_leader(users, by_id):
    """Test a team leader reaches managers and their callers"""
    expected = {"mgr-001", "mgr-002", "clr-001", "clr-002", "clr-003", "clr-004", "clr-005", "clr-006"}
    assert _ids(descendants_of(by_id["tl-001"], users)) == expected


def test_descendants_of_caller_and_admin_are_empty(users, by_id):
    """Test callers and admins have no direct descendants"""
    assert descendants_of(by_id["clr-001"], users) == []
    assert descendants_of(by_id["admin-001"], users) == []


def test_descendants_ignore_mis_typed_edges(users, by_id):
    """Test a team leader reporting to a manager does not become its descendant"""
    odd = UserRecord(id="tl-x", name="Odd", role=UserRole.TEAM_LEADER, reporting_to="mgr-001")
    result = descendants_of(by_id["mgr-001"], users + [odd])
    assert "tl-x" not in _ids(result)


def test_descendants_include_inactive_users(users, by_id):
    """Test deactivated callers still count as descendants"""
    users = [u.model_copy(update={"is_active": False}) if u.id == "clr-002" else u for u in users]
    assert "clr-002" in _ids(descendants_of(by_id["mgr-001"], users))


def test_chart_accepts_prebuilt_chart(users, by_id):
    """Test module helpers accept an OrgChart as well as a user list"""
    chart = OrgChart(users)
    assert OrgChart.of(chart) is chart
    assert parent_of(by_id["clr-003"], chart).id == "mgr-001"


def test_name_of_stale_id(users):
    """Test unknown ids render as Unknown"""
    chart = OrgChart(users)
    assert chart.name_of("mgr-001") == "Priya Sharma"
    assert chart.name_of("gone") == "Unknown"
    assert chart.name_of(None) == "Unknown"


def test_children_of_team_leader(users, by_id):
    """Test direct reports keep input order"""
    chart = OrgChart(users)
    assert [user.id for user in chart.children_of(by_id["tl-001"])] == ["mgr-001", "mgr-002"]


def test_team_tree_demo_hierarchy(users):
    """Test the demo tree has one team with two managers of three callers"""
    tree = OrgChart(users).team_tree()

    assert len(tree.teams) == 1
    team = tree.teams[0]
    assert team.team_leader.id == "tl-001"
    assert [m.manager.id for m in team.managers] == ["mgr-001", "mgr-002"]
    assert all(len(m.callers) == 3 for m in team.managers)
    assert tree.unassigned_managers == []
    assert tree.unassigned_callers == []


def test_team_tree_unassigned_and_inactive(users):
    """Test unassigned staff are listed and inactive users hidden by default"""
    loose_caller = UserRecord(id="clr-loose", name="Loose", role=UserRole.CALLER)
    loose_manager = UserRecord(id="mgr-loose", name="Loose Manager", role=UserRole.MANAGER)
    users = [
        u.model_copy(update={"is_active": False}) if u.id == "clr-006" else u for u in users
    ] + [loose_caller, loose_manager]

    tree = OrgChart(users).team_tree()
    assert [u.id for u in tree.unassigned_callers] == ["clr-loose"]
    assert [u.id for u in tree.unassigned_managers] == ["mgr-loose"]
    manager2 = tree.teams[0].managers[1]
    assert "clr-006" not in {c.id for c in manager2.callers}

    full = OrgChart(users).team_tree(include_inactive=True)
    assert "clr-006" in {c.id for c in full.teams[0].managers[1].callers}


# Malformed reporting graphs

@pytest.fixture
def manager_pair():
    """Two managers reporting to each other, each with one caller"""
    return [
        UserRecord(id="mgr-a", name="Manager A", role=UserRole.MANAGER, reporting_to="mgr-b"),
        UserRecord(id="mgr-b", name="Manager B", role=UserRole.MANAGER, reporting_to="mgr-a"),
        UserRecord(id="clr-a", name="Caller A", role=UserRole.CALLER, reporting_to="mgr-a"),
        UserRecord(id="clr-b", name="Caller B", role=UserRole.CALLER, reporting_to="mgr-b"),
    ]


@pytest.fixture
def leader_loop():
    """A team leader reporting to its own manager"""
    return [
        UserRecord(id="tl-x", name="Leader X", role=UserRole.TEAM_LEADER, reporting_to="mgr-x"),
        UserRecord(id="mgr-x", name="Manager X", role=UserRole.MANAGER, reporting_to="tl-x"),
        UserRecord(id="clr-x", name="Caller X", role=UserRole.CALLER, reporting_to="mgr-x"),
    ]


def test_descendants_terminate_on_manager_cycle(manager_pair):
    """Test managers pointing at each other only reach their own callers"""
    by_id = {user.id: user for user in manager_pair}

    assert parent_of(by_id["mgr-a"], manager_pair) is None
    assert _ids(descendants_of(by_id["mgr-a"], manager_pair)) == {"clr-a"}
    assert _ids(descendants_of(by_id["mgr-b"], manager_pair)) == {"clr-b"}


def test_descendants_terminate_on_leader_loop(leader_loop):
    """Test a team leader reporting to its manager is not its own descendant"""
    by_id = {user.id: user for user in leader_loop}

    assert parent_of(by_id["tl-x"], leader_loop) is None
    assert _ids(descendants_of(by_id["tl-x"], leader_loop)) == {"mgr-x", "clr-x"}
    assert _ids(descendants_of(by_id["mgr-x"], leader_loop)) == {"clr-x"}


def test_team_tree_terminates_on_cycles(manager_pair, leader_loop):
    """Test the org tree renders each user once despite loops"""
    tree = OrgChart(manager_pair + leader_loop).team_tree()

    assert [team.team_leader.id for team in tree.teams] == ["tl-x"]
    assert [m.manager.id for m in tree.teams[0].managers] == ["mgr-x"]
    assert _ids(tree.unassigned_managers) == {"mgr-a", "mgr-b"}


def test_can_view_with_cyclic_edges(manager_pair, leader_loop, make_lead):
    """Test visibility does not follow looped edges"""
    by_id = {user.id: user for user in manager_pair + leader_loop}
    pool = manager_pair + leader_loop

    assert can_view(by_id["mgr-a"], make_lead(by_id["clr-a"]), pool) is True
    assert can_view(by_id["mgr-a"], make_lead(by_id["mgr-b"]), pool) is False
    assert can_view(by_id["mgr-a"], make_lead(by_id["clr-b"]), pool) is False

    assert can_view(by_id["tl-x"], make_lead(by_id["clr-x"]), pool) is True
    assert can_view(by_id["mgr-x"], make_lead(by_id["tl-x"]), pool) is False


def test_assignable_targets_with_cyclic_edges(manager_pair, leader_loop):
    """Test assignment options ignore looped edges"""
    by_id = {user.id: user for user in manager_pair + leader_loop}
    pool = manager_pair + leader_loop

    assert [user.id for user in assignable_targets(by_id["mgr-a"], pool)] == ["clr-a"]
    assert [user.id for user in assignable_targets(by_id["mgr-x"], pool)] == ["tl-x", "clr-x"]
    assert [user.id for user in assignable_targets(by_id["tl-x"], pool)] == ["mgr-x", "clr-x"]
