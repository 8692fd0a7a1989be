"""
Authorization and page-scoping for organization requests.

Every decision is a pure function of a ``MemberContext``: the caller's one
resolved membership, captured when the request starts. Nothing here does
I/O; the services fetch the snapshot and persist changes.

Policy:
- Roles are ordered ``USER < ADMIN == SUPERADMIN``.
- Admins see and act on every page of the org.
- A USER with grants is limited to the granted pages.
- A USER with *no* grants sees every page.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Optional, Protocol, Sequence, TypeVar

import structlog

from orgkeeper.core.errors import ForbiddenError
from orgkeeper_shared.schemas.common import DEFAULT_TIER, Role, SubscriptionTier

log = structlog.get_logger()

# ---------------------------------------------------------------------------
# Role ordering
# ---------------------------------------------------------------------------

ROLE_PRIVILEGE: dict[Role, int] = {
    Role.USER: 0,
    Role.ADMIN: 1,
    Role.SUPERADMIN: 1,
}

ADMIN_PRIVILEGE = ROLE_PRIVILEGE[Role.ADMIN]


def privilege(role: Role) -> int:
    """Privilege level of ``role``. Raises ValueError for a value that is not a Role."""
    return ROLE_PRIVILEGE[Role(role)]


def is_admin(role: Role) -> bool:
    return privilege(role) >= ADMIN_PRIVILEGE


# ---------------------------------------------------------------------------
# Snapshots
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class OrgSnapshot:
    id: str
    name: str = ""
    subscription_tier: Optional[SubscriptionTier] = None


@dataclass(frozen=True)
class MemberContext:
    """The caller's membership in one organization."""

    id: str
    user_id: str
    role: Role
    organization: OrgSnapshot
    grants: frozenset[str] = field(default_factory=frozenset)
    disabled: bool = False

    @property
    def org_id(self) -> str:
        return self.organization.id


class Resource(Protocol):
    id: str


R = TypeVar("R", bound=Resource)


@dataclass(frozen=True)
class FormConfiguration:
    tier: SubscriptionTier
    show_type_field: bool


# ---------------------------------------------------------------------------
# Admission
# ---------------------------------------------------------------------------

def require_same_organization(member: Optional[MemberContext], requested_org_id: str) -> None:
    """Reject unless the caller's membership belongs to ``requested_org_id``."""
    if member is None or member.organization.id != requested_org_id:
        log.info(
            "authz.denied",
            check="same_org",
            member_id=member.id if member else None,
            requested_org_id=requested_org_id,
        )
        raise ForbiddenError("organization mismatch")


def require_admin(member: MemberContext) -> None:
    """Reject unless the caller is ADMIN or SUPERADMIN."""
    if not is_admin(member.role):
        log.info("authz.denied", check="admin", member_id=member.id, role=member.role.value)
        raise ForbiddenError("admin role required")


# ---------------------------------------------------------------------------
# Page scoping
# ---------------------------------------------------------------------------

def filter_visible_resources(member: MemberContext, resources: Sequence[R]) -> list[R]:
    """Pages the caller may see, in their original order."""
    if is_admin(member.role) or not member.grants:
        return list(resources)
    return [r for r in resources if r.id in member.grants]


def can_act_on_resource(member: MemberContext, resource_id: str) -> bool:
    """True if the caller may act on ``resource_id``; raises ForbiddenError otherwise."""
    if is_admin(member.role) or not member.grants or resource_id in member.grants:
        return True
    log.info("authz.denied", check="resource", member_id=member.id, resource_id=resource_id)
    raise ForbiddenError("resource not granted")


def normalize_grants(resource_ids: Iterable[str]) -> list[str]:
    """Collapse duplicate ids, keeping first-seen order."""
    return list(dict.fromkeys(resource_ids))


# ---------------------------------------------------------------------------
# Role transitions
# ---------------------------------------------------------------------------

def ensure_role_transition(current: Role, target: Role) -> None:
    """Allow USER <-> ADMIN only. SUPERADMIN is set at org creation and never moves."""
    if Role.SUPERADMIN in (Role(current), Role(target)):
        log.info("authz.denied", check="role_transition", current=current, target=target)
        raise ForbiddenError("superadmin role cannot change")


# ---------------------------------------------------------------------------
# Form configuration
# ---------------------------------------------------------------------------

def resolve_form_configuration(organization: OrgSnapshot) -> FormConfiguration:
    """Tier gating for the post form; an org without a subscription is STANDARD."""
    tier = organization.subscription_tier
    resolved = SubscriptionTier(tier) if tier else DEFAULT_TIER
    return FormConfiguration(tier=resolved, show_type_field=resolved != SubscriptionTier.STANDARD)
