"""
Subscription service — manual tier adjustments by org admins.
"""

from __future__ import annotations

from typing import Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from orgkeeper.models.subscription import Subscription
from orgkeeper.services.members import set_non_superadmin_disabled
from orgkeeper_shared.schemas.common import TIER_DEFAULT_CHANNELS, SubscriptionTier

log = structlog.get_logger()


async def manual_update_subscription(
    org_id: str,
    tier: SubscriptionTier,
    total_channels: Optional[int],
    is_lifetime: Optional[bool],
    session: AsyncSession,
    *,
    billing_enabled: bool = False,
) -> Subscription:
    """Create or update the org's subscription.

    ``total_channels`` falls back to the tier's default quota and
    ``is_lifetime`` keeps its current value when omitted. With billing
    enabled, dropping to STANDARD disables every non-SUPERADMIN member and
    moving to a paid tier re-enables them.
    """
    tier = SubscriptionTier(tier)
    result = await session.execute(
        select(Subscription).where(Subscription.organization_id == org_id)
    )
    sub = result.scalar_one_or_none()
    if sub is None:
        sub = Subscription(organization_id=org_id)

    sub.subscription_tier = tier
    sub.total_channels = total_channels or TIER_DEFAULT_CHANNELS[tier]
    if is_lifetime is not None:
        sub.is_lifetime = is_lifetime
    session.add(sub)
    await session.flush()

    if billing_enabled:
        await set_non_superadmin_disabled(
            org_id, tier == SubscriptionTier.STANDARD, session
        )

    log.info(
        "subscription.updated",
        org_id=org_id,
        tier=tier.value,
        total_channels=sub.total_channels,
        is_lifetime=sub.is_lifetime,
    )
    return sub
