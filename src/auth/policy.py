from __future__ import annotations

import logging

from src.auth.context import AuthContext
from src.auth.permissions import POLICY_RULES, PolicyRule
from src.domain.errors import ForbiddenError
from src.observability import incr_metric, log_event


def _rule_for(operation: str) -> PolicyRule:
    rule = POLICY_RULES.get(operation)
    if rule is None:
        raise KeyError(f"No policy rule for operation: {operation}")
    return rule


def role_permits(operation: str, actor: AuthContext) -> bool:
    return actor.role in _rule_for(operation).roles


def owns_target(actor: AuthContext, target_org_id: str | None) -> bool:
    return actor.org_id is not None and actor.org_id == target_org_id


def denial_reason(operation: str, actor: AuthContext, target_org_id: str | None) -> str | None:
    """Return why the rule table denies the call, or None when it is allowed."""
    rule = _rule_for(operation)
    if actor.role not in rule.roles:
        return "role"
    if rule.requires_ownership and not owns_target(actor, target_org_id):
        return "ownership"
    return None


def allow(operation: str, actor: AuthContext, target_org_id: str | None = None) -> bool:
    return denial_reason(operation, actor, target_org_id) is None


def authorize(operation: str, actor: AuthContext, target_org_id: str | None = None) -> None:
    """Raise ForbiddenError unless the actor may perform the operation on the target org.

    Role and ownership failures surface identically; the reason only goes to the log.
    """
    reason = denial_reason(operation, actor, target_org_id)
    if reason is None:
        return
    _deny(operation, actor, target_org_id, reason)


def authorize_role(operation: str, actor: AuthContext) -> None:
    """Role-only check for calls whose target org is not known until a record is loaded."""
    if role_permits(operation, actor):
        return
    _deny(operation, actor, None, "role")


def _deny(operation: str, actor: AuthContext, target_org_id: str | None, reason: str) -> None:
    incr_metric("authorization.denied", operation=operation, reason=reason)
    log_event(
        "authorization_denied",
        level=logging.WARNING,
        operation=operation,
        reason=reason,
        user_id=actor.user_id,
        actor_org_id=actor.org_id,
        role=actor.role,
        target_org_id=target_org_id,
    )
    raise ForbiddenError(f"Not permitted: {operation}")
