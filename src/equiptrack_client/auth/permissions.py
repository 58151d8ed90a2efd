"""
equiptrack_client.auth.permissions

Static role-based permission matrix.

Responsibilities:
- Map each `UserRole` to the set of features it may use.
- Apply the department scoping rule: outside super admins, department-bound
  features only apply to the user's own department.
"""

from __future__ import annotations

import enum

from equiptrack_client.schemas import User, UserRole


class PermissionType(enum.StrEnum):
    manage_all_departments = "MANAGE_ALL_DEPARTMENTS"
    view_registration_approvals = "VIEW_REGISTRATION_APPROVALS"
    view_borrow_approvals = "VIEW_BORROW_APPROVALS"
    view_user_management = "VIEW_USER_MANAGEMENT"
    view_department_management = "VIEW_DEPARTMENT_MANAGEMENT"
    manage_equipment_items = "MANAGE_EQUIPMENT_ITEMS"
    view_department_history = "VIEW_DEPARTMENT_HISTORY"
    borrow_items = "BORROW_ITEMS"
    view_own_history = "VIEW_OWN_HISTORY"


ROLE_PERMISSIONS: dict[UserRole, frozenset[PermissionType]] = {
    UserRole.super_admin: frozenset(PermissionType),
    UserRole.admin: frozenset(PermissionType) - {PermissionType.manage_all_departments},
    UserRole.advanced_user: frozenset(
        {
            PermissionType.view_registration_approvals,
            PermissionType.view_borrow_approvals,
            PermissionType.manage_equipment_items,
            PermissionType.view_department_history,
            PermissionType.borrow_items,
            PermissionType.view_own_history,
        }
    ),
    UserRole.normal_user: frozenset({PermissionType.borrow_items, PermissionType.view_own_history}),
}

# Permissions that only apply inside the user's own department.
DEPARTMENT_SCOPED: frozenset[PermissionType] = frozenset(
    {
        PermissionType.view_registration_approvals,
        PermissionType.view_borrow_approvals,
        PermissionType.view_user_management,
        PermissionType.view_department_management,
        PermissionType.manage_equipment_items,
        PermissionType.view_department_history,
    }
)


def permissions_for(role: UserRole) -> frozenset[PermissionType]:
    return ROLE_PERMISSIONS.get(role, frozenset())


def has_permission(
    user: User | None,
    permission: PermissionType,
    target_department_id: str | None = None,
) -> bool:
    """
    Pure check against the matrix; no I/O and no caching.
    """

    if user is None:
        return False
    if permission not in permissions_for(user.role):
        return False
    if target_department_id is None:
        return True
    if user.role is UserRole.super_admin:
        return True
    if permission in DEPARTMENT_SCOPED:
        return user.department_id == target_department_id
    return True


# --- Module Notes -----------------------------------------------------------
# The server enforces the same rules; this matrix only decides what the client offers.
