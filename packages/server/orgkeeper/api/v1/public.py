"""
Public API endpoints, authenticated with the organization API key.

GET /api/v1/public/organization — The org the presented key belongs to
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from orgkeeper.core.auth import get_org_from_api_key
from orgkeeper.core.database import get_session
from orgkeeper.models.organization import Organization
from orgkeeper.services import organizations as org_service
from orgkeeper_shared.schemas.organizations import PublicOrgResponse

router = APIRouter()


@router.get("/organization", response_model=PublicOrgResponse)
async def get_public_org(
    org: Organization = Depends(get_org_from_api_key),
    session: AsyncSession = Depends(get_session),
):
    summary = await org_service.get_org_summary(org.id, session)
    return PublicOrgResponse(id=summary["id"], name=summary["name"], tier=summary["tier"])
