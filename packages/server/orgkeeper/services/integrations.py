"""
Integration service — the pages (connected channels) of an organization.
"""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from orgkeeper.models.integration import Integration


async def list_integrations(org_id: str, session: AsyncSession) -> list[Integration]:
    """All live integrations of the org, ordered by name."""
    result = await session.execute(
        select(Integration)
        .where(
            Integration.organization_id == org_id,
            Integration.deleted_at.is_(None),
        )
        .order_by(Integration.name, Integration.id)
    )
    return list(result.scalars().all())
