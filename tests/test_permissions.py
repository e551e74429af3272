# tests/test_permissions.py
import pytest

from app.core.errors import ForbiddenError
from app.core.permissions import ROLE_PERMISSIONS, Permission, PermissionChecker, permission_checker


def test_super_admin_holds_everything():
    assert permission_checker.permissions_for("SUPER_ADMIN") == Permission.all()


@pytest.mark.parametrize("role, permission, allowed", [
    ("ADMIN", Permission.REGISTRATION_OVERRIDE, True),
    ("ADMIN", Permission.GRADES_PUBLISH, False),
    ("FACULTY", Permission.GRADES_PUBLISH, True),
    ("TA", Permission.GRADES_PUBLISH, False),
    ("TA", Permission.GRADES_CREATE, True),
    ("STUDENT", Permission.REGISTRATION_ENROLL, True),
    ("STUDENT", Permission.REGISTRATION_OVERRIDE, False),
    ("STUDENT", Permission.SPECIALIZATION_ASSIGN, False),
])
def test_role_table(role, permission, allowed):
    assert permission_checker.has_permission(role, permission) is allowed


def test_unknown_role_has_nothing():
    assert permission_checker.permissions_for("JANITOR") == frozenset()
    with pytest.raises(ForbiddenError):
        permission_checker.require("JANITOR", Permission.COURSES_VIEW_ALL)


def test_table_is_read_only():
    with pytest.raises(TypeError):
        ROLE_PERMISSIONS["STUDENT"] = Permission.all()


def test_checker_copies_its_table():
    source = {"CLERK": {Permission.REPORTS_VIEW}}
    checker = PermissionChecker(source)
    source["CLERK"].add(Permission.SYSTEM_CONFIGURE)

    assert checker.permissions_for("CLERK") == frozenset({Permission.REPORTS_VIEW})
