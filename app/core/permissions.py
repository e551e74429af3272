# app/core/permissions.py - Role to permission table and the checker built from it
from types import MappingProxyType
from typing import Iterable, Mapping, FrozenSet
import logging

from app.core.errors import ForbiddenError

logger = logging.getLogger(__name__)


class Permission:
    """Permission identifiers, grouped by area"""

    SYSTEM_CONFIGURE = "system.configure"

    STUDENTS_VIEW_ALL = "students.view_all"
    STUDENTS_VIEW_OWN = "students.view_own"
    STUDENTS_VIEW_MY_COURSES = "students.view_my_courses"

    COURSES_VIEW_ALL = "courses.view_all"
    COURSES_CREATE = "courses.create"
    COURSES_UPDATE = "courses.update"

    GRADES_VIEW_ALL = "grades.view_all"
    GRADES_VIEW_OWN = "grades.view_own"
    GRADES_VIEW_MY_COURSES = "grades.view_my_courses"
    GRADES_CREATE = "grades.create"
    GRADES_UPDATE = "grades.update"
    GRADES_PUBLISH = "grades.publish"

    ATTENDANCE_VIEW = "attendance.view"
    ATTENDANCE_MANAGE = "attendance.manage"

    REGISTRATION_ENROLL = "registration.enroll"
    REGISTRATION_DROP = "registration.drop"
    REGISTRATION_OVERRIDE = "registration.override"

    SPECIALIZATION_SELECT = "specialization.select"
    SPECIALIZATION_ASSIGN = "specialization.assign"

    TERMS_MANAGE = "terms.manage"
    SECTIONS_MANAGE = "sections.manage"

    REPORTS_VIEW = "reports.view"

    @classmethod
    def all(cls) -> FrozenSet[str]:
        return frozenset(
            value for name, value in vars(cls).items()
            if name.isupper() and isinstance(value, str)
        )


def _build_role_permissions() -> Mapping[str, FrozenSet[str]]:
    P = Permission
    table = {
        "SUPER_ADMIN": P.all(),
        "ADMIN": frozenset({
            P.STUDENTS_VIEW_ALL,
            P.COURSES_VIEW_ALL,
            P.COURSES_CREATE,
            P.COURSES_UPDATE,
            P.GRADES_VIEW_ALL,
            P.ATTENDANCE_VIEW,
            P.REGISTRATION_ENROLL,
            P.REGISTRATION_DROP,
            P.REGISTRATION_OVERRIDE,
            P.SPECIALIZATION_ASSIGN,
            P.TERMS_MANAGE,
            P.SECTIONS_MANAGE,
            P.REPORTS_VIEW,
        }),
        "FACULTY": frozenset({
            P.STUDENTS_VIEW_MY_COURSES,
            P.GRADES_VIEW_MY_COURSES,
            P.GRADES_CREATE,
            P.GRADES_UPDATE,
            P.GRADES_PUBLISH,
            P.ATTENDANCE_VIEW,
            P.ATTENDANCE_MANAGE,
        }),
        "TA": frozenset({
            P.STUDENTS_VIEW_MY_COURSES,
            P.GRADES_VIEW_MY_COURSES,
            P.GRADES_CREATE,
            P.ATTENDANCE_VIEW,
            P.ATTENDANCE_MANAGE,
        }),
        "STUDENT": frozenset({
            P.STUDENTS_VIEW_OWN,
            P.GRADES_VIEW_OWN,
            P.ATTENDANCE_VIEW,
            P.REGISTRATION_ENROLL,
            P.REGISTRATION_DROP,
            P.SPECIALIZATION_SELECT,
        }),
    }
    return MappingProxyType(table)


ROLE_PERMISSIONS: Mapping[str, FrozenSet[str]] = _build_role_permissions()


class PermissionChecker:
    """Answers "may this role do that" from a fixed role table"""

    def __init__(self, role_permissions: Mapping[str, Iterable[str]] = ROLE_PERMISSIONS):
        self._table = MappingProxyType(
            {role: frozenset(perms) for role, perms in role_permissions.items()}
        )

    def permissions_for(self, role: str) -> FrozenSet[str]:
        return self._table.get(role, frozenset())

    def has_permission(self, role: str, permission: str) -> bool:
        return permission in self.permissions_for(role)

    def require(self, role: str, permission: str) -> None:
        if not self.has_permission(role, permission):
            logger.info(f"Permission denied: role={role} permission={permission}")
            raise ForbiddenError("Insufficient permissions")


permission_checker = PermissionChecker()

__all__ = ["Permission", "ROLE_PERMISSIONS", "PermissionChecker", "permission_checker"]
