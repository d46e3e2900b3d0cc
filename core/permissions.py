"""Role capabilities.

MASTER ⊇ ADMIN ⊇ USER. Every ``Role`` member must appear in
``ROLE_CAPABILITIES``; a missing role fails at import time instead of
silently getting no permissions.
"""

from enum import Enum
from typing import Optional

from models import Role, User


class Capability(str, Enum):
    VIEW_ALL_BRANCHES = "VIEW_ALL_BRANCHES"
    MANAGE_BRANCHES = "MANAGE_BRANCHES"
    MANAGE_USERS = "MANAGE_USERS"
    CHOOSE_CLIENT_BRANCH = "CHOOSE_CLIENT_BRANCH"


_USER_CAPABILITIES: frozenset[Capability] = frozenset()
_ADMIN_CAPABILITIES = _USER_CAPABILITIES | {Capability.MANAGE_BRANCHES, Capability.CHOOSE_CLIENT_BRANCH}
_MASTER_CAPABILITIES = _ADMIN_CAPABILITIES | {Capability.VIEW_ALL_BRANCHES, Capability.MANAGE_USERS}

ROLE_CAPABILITIES: dict[Role, frozenset[Capability]] = {
    Role.MASTER: _MASTER_CAPABILITIES,
    Role.ADMIN: _ADMIN_CAPABILITIES,
    Role.USER: _USER_CAPABILITIES,
}

_missing = set(Role) - set(ROLE_CAPABILITIES)
if _missing:
    raise RuntimeError(f"Roles without a capability entry: {sorted(r.value for r in _missing)}")


def has_capability(role: Role, capability: Capability) -> bool:
    return capability in ROLE_CAPABILITIES[Role(role)]


def can_view_all_branches(role: Role) -> bool:
    return has_capability(role, Capability.VIEW_ALL_BRANCHES)


def can_manage_branches(role: Role) -> bool:
    return has_capability(role, Capability.MANAGE_BRANCHES)


def can_manage_users(role: Role) -> bool:
    return has_capability(role, Capability.MANAGE_USERS)


def can_choose_client_branch(role: Role) -> bool:
    return has_capability(role, Capability.CHOOSE_CLIENT_BRANCH)


def branch_scope(user: User) -> Optional[str]:
    """Branch a listing is restricted to, or None when the caller sees everything.

    A scoped caller without a branch gets ``""``, which matches no record.
    """
    if can_view_all_branches(user.role):
        return None
    return user.branch_id or ""


def can_access_branch(user: User, branch_id: Optional[str]) -> bool:
    scope = branch_scope(user)
    if scope is None:
        return True
    return bool(scope) and scope == branch_id


def visible_tabs(role: Role) -> dict:
    admin_sections = []
    if can_manage_branches(role):
        admin_sections.append("branches")
    if can_manage_users(role):
        admin_sections.append("users")

    tabs = ["dashboard", "clients", "deposits"]
    if admin_sections:
        tabs.append("admin")
    return {"tabs": tabs, "adminSections": admin_sections}
