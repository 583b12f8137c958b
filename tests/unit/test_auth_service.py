"""Unit tests for auth service"""
import pytest

from app.core.exceptions import AuthenticationError, PermissionDeniedError
from app.models.user import UserRole
from app.schemas.user import UserRecord
from app.services.auth_service import authenticate, find_user_by_email, is_admin_user, require_admin


def test_is_admin_user_with_admin_role():
    """Test is_admin_user with an active admin"""
    user = UserRecord(id="a1", name="Admin User", role=UserRole.ADMIN)
    assert is_admin_user(user) is True


def test_is_admin_user_with_other_roles():
    """Test is_admin_user for every non-admin role"""
    for role in (UserRole.CALLER, UserRole.MANAGER, UserRole.TEAM_LEADER):
        assert is_admin_user(UserRecord(id="u1", name="Administrator Name", role=role)) is False


def test_is_admin_user_inactive_admin():
    """Test a deactivated admin has no admin rights"""
    user = UserRecord(id="a1", name="Admin User", role=UserRole.ADMIN, is_active=False)
    assert is_admin_user(user) is False


def test_is_admin_user_none_user():
    """Test is_admin_user with None user"""
    assert is_admin_user(None) is False


def test_require_admin_raises_permission_error():
    """Test require_admin raises PermissionDeniedError when not admin"""
    user = UserRecord(id="c1", name="Regular User", role=UserRole.CALLER)

    with pytest.raises(PermissionDeniedError) as exc_info:
        require_admin(user)

    assert "Access denied" in str(exc_info.value)
    assert "Regular User" in str(exc_info.value)


def test_require_admin_none_user():
    """Test require_admin reports unknown users"""
    with pytest.raises(PermissionDeniedError) as exc_info:
        require_admin(None)
    assert "Unknown" in exc_info.value.message


def test_require_admin_with_admin():
    """Test require_admin passes for admins"""
    require_admin(UserRecord(id="a1", name="Admin User", role=UserRole.ADMIN))


def test_find_user_by_email_case_insensitive(users):
    """Test email lookup ignores case and surrounding spaces"""
    assert find_user_by_email(users, "  TL@CRM.com ").id == "tl-001"
    assert find_user_by_email(users, "nobody@crm.com") is None
    assert find_user_by_email(users, "") is None


@pytest.mark.asyncio
async def test_authenticate_success(storage):
    """Test demo credentials log in"""
    user = await authenticate(storage, "Manager1@crm.com", "manager123")
    assert user.id == "mgr-001"


@pytest.mark.asyncio
@pytest.mark.parametrize("email, password, message", [
    ("", "x", "Please enter your email"),
    ("admin@crm.com", "", "Please enter your password"),
    ("ghost@crm.com", "whatever", "User not found with this email"),
    ("admin@crm.com", "Admin123", "Invalid password"),
])
async def test_authenticate_failures(storage, email, password, message):
    """Test each login failure carries its own message"""
    with pytest.raises(AuthenticationError) as exc_info:
        await authenticate(storage, email, password)
    assert exc_info.value.message == message


@pytest.mark.asyncio
async def test_authenticate_inactive_user(storage, by_id):
    """Test inactive accounts cannot log in"""
    await storage.put_user(by_id["clr-001"].model_copy(update={"is_active": False}))

    with pytest.raises(AuthenticationError) as exc_info:
        await authenticate(storage, "caller1@crm.com", "caller123")
    assert exc_info.value.message == "This user account is inactive"
