# roles.py
# Role and permission tables for the directory.
# Menus are gated on these before any session operation is invoked.

from enum import Enum


class Role(str, Enum):
    TESTER = "Tester"
    JUNIOR_DEVELOPER = "Junior Developer"
    SENIOR_DEVELOPER = "Senior Developer"
    MANAGER = "Manager"

    @classmethod
    def parse(cls, raw: str) -> "Role":
        """Accept 'junior developer', 'JUNIOR_DEVELOPER', 'Junior Developer', …"""
        key = raw.strip().upper().replace(" ", "_")
        try:
            return cls[key]
        except KeyError:
            raise ValueError(f"Unknown role: {raw!r}") from None


class Permission(str, Enum):
    LIST_CONTACTS = "list_contacts"
    SEARCH_CONTACTS = "search_contacts"
    SORT_CONTACTS = "sort_contacts"
    UPDATE_CONTACT = "update_contact"
    ADD_CONTACT = "add_contact"
    DELETE_CONTACT = "delete_contact"
    UNDO = "undo"
    VIEW_STATISTICS = "view_statistics"
    MANAGE_USERS = "manage_users"
    CHANGE_PASSWORD = "change_password"


_TESTER = frozenset(
    {
        Permission.LIST_CONTACTS,
        Permission.SEARCH_CONTACTS,
        Permission.SORT_CONTACTS,
        Permission.CHANGE_PASSWORD,
    }
)
_JUNIOR = _TESTER | {Permission.UPDATE_CONTACT, Permission.UNDO}
_SENIOR = _JUNIOR | {Permission.ADD_CONTACT, Permission.DELETE_CONTACT}
_MANAGER = frozenset(
    {
        Permission.VIEW_STATISTICS,
        Permission.MANAGE_USERS,
        Permission.CHANGE_PASSWORD,
        Permission.UNDO,
    }
)

PERMISSIONS: dict[Role, frozenset[Permission]] = {
    Role.TESTER: _TESTER,
    Role.JUNIOR_DEVELOPER: frozenset(_JUNIOR),
    Role.SENIOR_DEVELOPER: frozenset(_SENIOR),
    Role.MANAGER: _MANAGER,
}


def allows(role: Role, permission: Permission) -> bool:
    return permission in PERMISSIONS[role]
