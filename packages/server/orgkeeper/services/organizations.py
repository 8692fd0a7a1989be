"""
Organization service — org creation, joining, listing and API key lifecycle.

Functions flush but never commit; the request session commits the whole
unit of work (see ``core.database.get_session``).
"""

from __future__ import annotations

from typing import Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from orgkeeper.core import cipher
from orgkeeper.core.errors import NotFoundError
from orgkeeper.models.membership import Membership
from orgkeeper.models.organization import Organization
from orgkeeper.models.subscription import Subscription
from orgkeeper.models.user import User
from orgkeeper_shared.schemas.common import DEFAULT_TIER, Role

log = structlog.get_logger()


def _seal_new_api_key(secret: str, length: int) -> tuple[str, str]:
    """Returns (plaintext, ciphertext)."""
    plaintext = cipher.generate_api_key(length)
    return plaintext, cipher.encrypt(secret, plaintext)


async def create_org_for_user(
    user_id: str,
    name: str,
    secret: str,
    session: AsyncSession,
    *,
    api_key_length: int = 20,
) -> Organization:
    """Create an org on trial with a sealed API key; the creator becomes SUPERADMIN."""
    user = await session.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found")

    _, sealed = _seal_new_api_key(secret, api_key_length)
    org = Organization(
        name=name,
        api_key=sealed,
        allow_trial=True,
        is_trialing=True,
    )
    session.add(org)
    await session.flush()

    membership = Membership(
        user_id=user_id,
        organization_id=org.id,
        role=Role.SUPERADMIN,
    )
    session.add(membership)
    await session.flush()

    log.info("org.created", org_id=org.id, creator=user_id)
    return org


async def get_org_by_id(org_id: str, session: AsyncSession) -> Optional[Organization]:
    return await session.get(Organization, org_id)


async def get_org_by_api_key(
    plaintext: str, secret: str, session: AsyncSession
) -> Optional[Organization]:
    """Look an org up by its plaintext API key.

    Sealing is deterministic, so re-encrypting the presented key yields the
    stored ciphertext.
    """
    sealed = cipher.encrypt(secret, plaintext)
    result = await session.execute(
        select(Organization).where(Organization.api_key == sealed)
    )
    return result.scalars().first()


async def get_subscription(org_id: str, session: AsyncSession) -> Optional[Subscription]:
    result = await session.execute(
        select(Subscription).where(Subscription.organization_id == org_id)
    )
    return result.scalar_one_or_none()


async def get_org_summary(org_id: str, session: AsyncSession) -> dict:
    """Org details with its subscription, shaped for ``OrgResponse``."""
    org = await get_org_by_id(org_id, session)
    if org is None:
        raise NotFoundError("Organization not found")
    sub = await get_subscription(org_id, session)
    return {
        "id": org.id,
        "name": org.name,
        "allow_trial": org.allow_trial,
        "is_trialing": org.is_trialing,
        "tier": sub.subscription_tier if sub else DEFAULT_TIER,
        "total_channels": sub.total_channels if sub else None,
        "is_lifetime": sub.is_lifetime if sub else False,
        "created_at": org.created_at,
    }


async def list_user_orgs(user_id: str, session: AsyncSession) -> list[dict]:
    """List all orgs a user belongs to, with their role."""
    result = await session.execute(
        select(Organization, Membership, Subscription)
        .join(Membership, Membership.organization_id == Organization.id)
        .outerjoin(Subscription, Subscription.organization_id == Organization.id)
        .where(Membership.user_id == user_id)
        .order_by(Membership.created_at)
    )
    return [
        {
            "id": org.id,
            "name": org.name,
            "role": membership.role,
            "disabled": membership.disabled,
            "tier": sub.subscription_tier if sub else DEFAULT_TIER,
        }
        for org, membership, sub in result.all()
    ]


async def join_organization(
    user_id: str, org_id: str, session: AsyncSession
) -> Membership:
    """Join an org as USER. Joining twice returns the existing membership."""
    org = await get_org_by_id(org_id, session)
    if org is None:
        raise NotFoundError("Organization not found")

    result = await session.execute(
        select(Membership).where(
            Membership.user_id == user_id,
            Membership.organization_id == org_id,
        )
    )
    existing = result.scalar_one_or_none()
    if existing:
        return existing

    membership = Membership(user_id=user_id, organization_id=org_id, role=Role.USER)
    session.add(membership)
    await session.flush()

    log.info("org.joined", org_id=org_id, user_id=user_id, member_id=membership.id)
    return membership


async def rotate_api_key(
    org_id: str,
    secret: str,
    session: AsyncSession,
    *,
    api_key_length: int = 20,
) -> str:
    """Replace the org's API key. Returns the new plaintext key; only the ciphertext is stored."""
    org = await get_org_by_id(org_id, session)
    if org is None:
        raise NotFoundError("Organization not found")

    plaintext, sealed = _seal_new_api_key(secret, api_key_length)
    org.api_key = sealed
    session.add(org)
    await session.flush()

    log.info("api_key.rotated", org_id=org_id)
    return plaintext


def reveal_api_key(org: Organization, secret: str) -> str:
    """Decrypt the org's stored API key. Raises DecryptionError if it was sealed with another secret."""
    if not org.api_key:
        raise NotFoundError("Organization has no API key")
    return cipher.decrypt(secret, org.api_key)
