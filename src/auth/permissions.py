from __future__ import annotations

from dataclasses import dataclass
from typing import Final

ADMIN: Final[str] = "admin"
MANAGER: Final[str] = "manager"
VOLUNTEER: Final[str] = "volunteer"
VIEWER: Final[str] = "viewer"

CANONICAL_ROLES: Final[frozenset[str]] = frozenset({ADMIN, MANAGER, VOLUNTEER, VIEWER})
ANY_ROLE: Final[frozenset[str]] = CANONICAL_ROLES
MANAGING_ROLES: Final[frozenset[str]] = frozenset({ADMIN, MANAGER})

# Claims issued without a role get the least privileged one.
DEFAULT_ROLE: Final[str] = VIEWER

ORGANIZATIONS_CREATE: Final[str] = "organizations.create"
ORGANIZATIONS_LIST: Final[str] = "organizations.list"
ORGANIZATIONS_READ: Final[str] = "organizations.read"
ORGANIZATIONS_UPDATE: Final[str] = "organizations.update"
ORGANIZATIONS_DELETE: Final[str] = "organizations.delete"
VOLUNTEERS_READ: Final[str] = "volunteers.read"
VOLUNTEERS_CREATE: Final[str] = "volunteers.create"
VOLUNTEERS_UPDATE: Final[str] = "volunteers.update"
VOLUNTEERS_DELETE: Final[str] = "volunteers.delete"


@dataclass(frozen=True)
class PolicyRule:
    roles: frozenset[str]
    requires_ownership: bool


POLICY_RULES: Final[dict[str, PolicyRule]] = {
    ORGANIZATIONS_CREATE: PolicyRule(roles=frozenset({ADMIN}), requires_ownership=False),
    ORGANIZATIONS_LIST: PolicyRule(roles=ANY_ROLE, requires_ownership=False),
    ORGANIZATIONS_READ: PolicyRule(roles=ANY_ROLE, requires_ownership=True),
    ORGANIZATIONS_UPDATE: PolicyRule(roles=MANAGING_ROLES, requires_ownership=True),
    ORGANIZATIONS_DELETE: PolicyRule(roles=frozenset({ADMIN}), requires_ownership=True),
    VOLUNTEERS_READ: PolicyRule(roles=ANY_ROLE, requires_ownership=True),
    VOLUNTEERS_CREATE: PolicyRule(roles=MANAGING_ROLES, requires_ownership=True),
    VOLUNTEERS_UPDATE: PolicyRule(roles=MANAGING_ROLES, requires_ownership=True),
    VOLUNTEERS_DELETE: PolicyRule(roles=MANAGING_ROLES, requires_ownership=True),
}


def normalize_role(role: str | None) -> str:
    raw = (role or "").strip().lower()
    if not raw:
        return DEFAULT_ROLE
    if raw not in CANONICAL_ROLES:
        raise ValueError(f"Unsupported role: {role}")
    return raw


def permissions_for_role(role: str) -> set[str]:
    normalized = normalize_role(role)
    return {operation for operation, rule in POLICY_RULES.items() if normalized in rule.roles}
