"""
Membership service — resolving the caller's membership, team listing,
invites, role changes and per-page grants.
"""

from __future__ import annotations

from typing import Optional

import structlog
from sqlalchemy import delete, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from orgkeeper.core.authz import (
    MemberContext,
    OrgSnapshot,
    ensure_role_transition,
    normalize_grants,
)
from orgkeeper.core.errors import ForbiddenError, NotFoundError
from orgkeeper.models.integration import Integration
from orgkeeper.models.membership import Membership, PermissionGrant
from orgkeeper.models.organization import Organization
from orgkeeper.models.subscription import Subscription
from orgkeeper.models.user import User
from orgkeeper_shared.schemas.common import Role, SubscriptionTier

log = structlog.get_logger()


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------

async def fetch_membership(
    user_id: str, org_id: str, session: AsyncSession
) -> Optional[Membership]:
    result = await session.execute(
        select(Membership).where(
            Membership.user_id == user_id,
            Membership.organization_id == org_id,
        )
    )
    return result.scalar_one_or_none()


async def _get_org_member(
    org_id: str, member_id: str, session: AsyncSession
) -> Membership:
    """A membership by id, only if it belongs to ``org_id``."""
    result = await session.execute(
        select(Membership).where(
            Membership.id == member_id,
            Membership.organization_id == org_id,
        )
    )
    membership = result.scalar_one_or_none()
    if membership is None:
        raise NotFoundError("Member not found in this org")
    return membership


async def list_member_grants(membership_id: str, session: AsyncSession) -> list[str]:
    result = await session.execute(
        select(PermissionGrant.integration_id)
        .where(PermissionGrant.membership_id == membership_id)
        .order_by(PermissionGrant.integration_id)
    )
    return list(result.scalars().all())


async def get_member_context(
    user_id: str, org_id: str, session: AsyncSession
) -> Optional[MemberContext]:
    """Snapshot of one user's membership in one org, grants included."""
    result = await session.execute(
        select(Membership, Organization, Subscription)
        .join(Organization, Organization.id == Membership.organization_id)
        .outerjoin(Subscription, Subscription.organization_id == Organization.id)
        .where(
            Membership.user_id == user_id,
            Membership.organization_id == org_id,
        )
    )
    row = result.one_or_none()
    if row is None:
        return None

    membership, org, sub = row
    grants = await list_member_grants(membership.id, session)
    return MemberContext(
        id=membership.id,
        user_id=membership.user_id,
        role=Role(membership.role),
        disabled=membership.disabled,
        grants=frozenset(grants),
        organization=OrgSnapshot(
            id=org.id,
            name=org.name,
            subscription_tier=SubscriptionTier(sub.subscription_tier) if sub else None,
        ),
    )


async def resolve_current_org_id(
    user_id: str, preferred_org_id: Optional[str], session: AsyncSession
) -> Optional[str]:
    """The org a request acts in: the one the caller selected, else their oldest active membership."""
    if preferred_org_id:
        return preferred_org_id

    result = await session.execute(
        select(Membership.organization_id)
        .where(Membership.user_id == user_id, Membership.disabled == False)  # noqa: E712
        .order_by(Membership.created_at)
        .limit(1)
    )
    return result.scalar_one_or_none()


# ---------------------------------------------------------------------------
# Team
# ---------------------------------------------------------------------------

def _member_info(membership: Membership, user: User, grants: list[str]) -> dict:
    return {
        "id": membership.id,
        "role": membership.role,
        "disabled": membership.disabled,
        "user": {"id": user.id, "email": user.email, "name": user.name},
        "integration_ids": grants,
    }


async def get_team(org_id: str, session: AsyncSession) -> list[dict]:
    """All members of the org with their user info and page grants."""
    result = await session.execute(
        select(Membership, User)
        .join(User, User.id == Membership.user_id)
        .where(Membership.organization_id == org_id)
        .order_by(Membership.created_at)
    )
    rows = result.all()

    member_ids = [m.id for m, _ in rows]
    grants: dict[str, list[str]] = {mid: [] for mid in member_ids}
    if member_ids:
        grant_rows = await session.execute(
            select(PermissionGrant.membership_id, PermissionGrant.integration_id)
            .where(PermissionGrant.membership_id.in_(member_ids))
            .order_by(PermissionGrant.integration_id)
        )
        for membership_id, integration_id in grant_rows.all():
            grants[membership_id].append(integration_id)

    return [_member_info(m, u, grants[m.id]) for m, u in rows]


async def add_existing_user_by_email(
    org_id: str,
    email: str,
    role: Role,
    session: AsyncSession,
    *,
    billing_enabled: bool = False,
) -> dict:
    """Add a registered user to the org. Adding an existing member returns them unchanged."""
    result = await session.execute(select(User).where(User.email == email))
    user = result.scalar_one_or_none()
    if user is None:
        raise NotFoundError("User not found")

    if billing_enabled:
        sub_result = await session.execute(
            select(Subscription.subscription_tier).where(Subscription.organization_id == org_id)
        )
        tier = sub_result.scalar_one_or_none()
        if tier is None or SubscriptionTier(tier) == SubscriptionTier.STANDARD:
            raise ForbiddenError("team members require a paid tier")

    membership = await fetch_membership(user.id, org_id, session)
    if membership is None:
        membership = Membership(user_id=user.id, organization_id=org_id, role=Role(role))
        session.add(membership)
        await session.flush()
        log.info("member.added", org_id=org_id, member_id=membership.id, role=Role(role).value)

    grants = await list_member_grants(membership.id, session)
    return _member_info(membership, user, grants)


async def update_member_role(
    org_id: str, member_id: str, role: Role, session: AsyncSession
) -> dict:
    """Move a member between USER and ADMIN."""
    membership = await _get_org_member(org_id, member_id, session)
    ensure_role_transition(Role(membership.role), role)

    membership.role = Role(role)
    session.add(membership)
    await session.flush()

    log.info("member.role_updated", org_id=org_id, member_id=member_id, role=Role(role).value)
    return {"id": membership.id, "role": membership.role}


async def set_member_permissions(
    org_id: str,
    member_id: str,
    integration_ids: list[str],
    session: AsyncSession,
) -> list[str]:
    """Replace a member's page grants with ``integration_ids``.

    Delete and insert run in the caller's transaction: no other reader sees
    the member with an empty grant set (which would mean "all pages") in
    between. Duplicates collapse; calling twice with the same ids is a no-op.
    Returns the resulting grant set, sorted.
    """
    membership = await _get_org_member(org_id, member_id, session)
    ids = normalize_grants(integration_ids)

    if ids:
        known = await session.execute(
            select(Integration.id).where(
                Integration.organization_id == org_id,
                Integration.id.in_(ids),
                Integration.deleted_at.is_(None),
            )
        )
        unknown = set(ids) - set(known.scalars().all())
        if unknown:
            raise ForbiddenError(f"integrations outside org: {sorted(unknown)}")

    await session.execute(
        delete(PermissionGrant).where(PermissionGrant.membership_id == membership.id)
    )
    session.add_all(
        PermissionGrant(membership_id=membership.id, integration_id=i) for i in ids
    )
    await session.flush()

    granted = await list_member_grants(membership.id, session)
    log.info(
        "member.permissions_replaced",
        org_id=org_id,
        member_id=member_id,
        count=len(granted),
    )
    return granted


async def remove_member(org_id: str, member_id: str, session: AsyncSession) -> None:
    """Remove a member and their grants. The SUPERADMIN cannot be removed."""
    membership = await _get_org_member(org_id, member_id, session)
    if Role(membership.role) == Role.SUPERADMIN:
        raise ForbiddenError("superadmin cannot be removed")

    await session.execute(
        delete(PermissionGrant).where(PermissionGrant.membership_id == membership.id)
    )
    await session.delete(membership)
    await session.flush()
    log.info("member.removed", org_id=org_id, member_id=member_id)


async def set_non_superadmin_disabled(
    org_id: str, disabled: bool, session: AsyncSession
) -> int:
    """Disable or re-enable every member except the SUPERADMIN. Returns rows changed."""
    result = await session.execute(
        update(Membership)
        .where(
            Membership.organization_id == org_id,
            Membership.role != Role.SUPERADMIN,
            Membership.disabled != disabled,
        )
        .values(disabled=disabled)
    )
    log.info("members.disabled_toggled", org_id=org_id, disabled=disabled, count=result.rowcount)
    return result.rowcount
