"""
Organization API endpoints.

GET    /api/v1/organizations                                  — List the caller's orgs
POST   /api/v1/organizations                                  — Create an org (caller becomes SUPERADMIN)
POST   /api/v1/organizations/join                             — Join an org as USER
GET    /api/v1/organizations/{orgId}                          — Org details
GET    /api/v1/organizations/{orgId}/members                  — Team (Admin)
POST   /api/v1/organizations/{orgId}/members                  — Invite existing user (Admin)
PATCH  /api/v1/organizations/{orgId}/members/{memberId}       — Change role (Admin)
DELETE /api/v1/organizations/{orgId}/members/{memberId}       — Remove member (Admin)
PATCH  /api/v1/organizations/{orgId}/members/{memberId}/pages — Replace page grants (Admin)
GET    /api/v1/organizations/{orgId}/pages                    — Pages visible to the caller
GET    /api/v1/organizations/{orgId}/form-config              — Post form tier gating
POST   /api/v1/organizations/{orgId}/form-submit              — Submit a post to a page
PATCH  /api/v1/organizations/{orgId}/subscription             — Manual tier change (Admin)
GET    /api/v1/organizations/{orgId}/api-key                  — Reveal org API key (Admin)
POST   /api/v1/organizations/{orgId}/api-key/rotate           — Rotate org API key (Admin)
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from orgkeeper.core import authz
from orgkeeper.core.auth import (
    get_current_user_id,
    require_org_admin,
    require_org_member,
)
from orgkeeper.core.authz import MemberContext
from orgkeeper.core.config import get_settings
from orgkeeper.core.database import get_session
from orgkeeper.core.errors import NotFoundError
from orgkeeper.services import integrations as integration_service
from orgkeeper.services import members as member_service
from orgkeeper.services import organizations as org_service
from orgkeeper.services import subscriptions as subscription_service
from orgkeeper_shared.schemas.members import (
    MemberInviteRequest,
    MemberPagesResponse,
    MemberPagesUpdateRequest,
    MemberResponse,
    MemberRoleResponse,
    MemberRoleUpdateRequest,
    PageItem,
    PagesResponse,
    TeamResponse,
)
from orgkeeper_shared.schemas.organizations import (
    ApiKeyResponse,
    FormConfigResponse,
    ManualSubscriptionUpdateRequest,
    OrgCreateRequest,
    OrgJoinRequest,
    OrgJoinResponse,
    OrgListItem,
    OrgListResponse,
    OrgResponse,
    PostAcceptedResponse,
    PostRequest,
    SubscriptionUpdatedResponse,
)

settings = get_settings()

# ---------------------------------------------------------------------------
# Non-org-scoped routes (no orgId in path)
# ---------------------------------------------------------------------------
router_global = APIRouter()


@router_global.get("/organizations", response_model=OrgListResponse, tags=["Organizations"])
async def list_orgs(
    user_id: str = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_session),
):
    """List orgs the authenticated user belongs to."""
    items = await org_service.list_user_orgs(user_id, session)
    return OrgListResponse(data=[OrgListItem(**item) for item in items])


@router_global.post(
    "/organizations", response_model=OrgResponse, status_code=201, tags=["Organizations"]
)
async def create_org(
    body: OrgCreateRequest,
    user_id: str = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_session),
):
    """Create a new organization. The creator becomes its SUPERADMIN."""
    org = await org_service.create_org_for_user(
        user_id,
        body.name,
        settings.secret_key,
        session,
        api_key_length=settings.api_key_length,
    )
    return OrgResponse(**await org_service.get_org_summary(org.id, session))


@router_global.post("/organizations/join", response_model=OrgJoinResponse, tags=["Organizations"])
async def join_org(
    body: OrgJoinRequest,
    user_id: str = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_session),
):
    """Join an existing organization as USER."""
    await org_service.join_organization(user_id, body.organization_id, session)
    return OrgJoinResponse(joined=True)


# ---------------------------------------------------------------------------
# Org-scoped routes (orgId in path)
# ---------------------------------------------------------------------------
router_scoped = APIRouter()


@router_scoped.get("", response_model=OrgResponse, tags=["Organizations"])
async def get_org(
    member: MemberContext = Depends(require_org_member),
    session: AsyncSession = Depends(get_session),
):
    """Org details including its subscription."""
    return OrgResponse(**await org_service.get_org_summary(member.org_id, session))


@router_scoped.get("/members", response_model=TeamResponse, tags=["Members"])
async def list_members(
    member: MemberContext = Depends(require_org_admin),
    session: AsyncSession = Depends(get_session),
):
    """List all members with their page grants (Admin only)."""
    team = await member_service.get_team(member.org_id, session)
    return TeamResponse(users=[MemberResponse(**m) for m in team])


@router_scoped.post("/members", response_model=MemberResponse, status_code=201, tags=["Members"])
async def invite_member(
    body: MemberInviteRequest,
    member: MemberContext = Depends(require_org_admin),
    session: AsyncSession = Depends(get_session),
):
    """Add an already-registered user to the org (Admin only)."""
    added = await member_service.add_existing_user_by_email(
        member.org_id,
        body.email,
        body.role,
        session,
        billing_enabled=settings.billing_enabled,
    )
    return MemberResponse(**added)


@router_scoped.patch("/members/{memberId}", response_model=MemberRoleResponse, tags=["Members"])
async def update_member_role(
    memberId: str,
    body: MemberRoleUpdateRequest,
    member: MemberContext = Depends(require_org_admin),
    session: AsyncSession = Depends(get_session),
):
    """Switch a member between USER and ADMIN (Admin only)."""
    updated = await member_service.update_member_role(member.org_id, memberId, body.role, session)
    return MemberRoleResponse(**updated)


@router_scoped.delete("/members/{memberId}", status_code=204, tags=["Members"])
async def remove_member(
    memberId: str,
    member: MemberContext = Depends(require_org_admin),
    session: AsyncSession = Depends(get_session),
):
    """Remove a member from the org (Admin only)."""
    await member_service.remove_member(member.org_id, memberId, session)


@router_scoped.patch(
    "/members/{memberId}/pages", response_model=MemberPagesResponse, tags=["Members"]
)
async def update_member_pages(
    memberId: str,
    body: MemberPagesUpdateRequest,
    member: MemberContext = Depends(require_org_admin),
    session: AsyncSession = Depends(get_session),
):
    """Replace the pages a member may use (Admin only). An empty list clears all grants."""
    granted = await member_service.set_member_permissions(
        member.org_id, memberId, body.integration_ids, session
    )
    return MemberPagesResponse(member_id=memberId, integration_ids=granted)


@router_scoped.get("/pages", response_model=PagesResponse, tags=["Pages"])
async def list_pages(
    member: MemberContext = Depends(require_org_member),
    session: AsyncSession = Depends(get_session),
):
    """Pages the caller may see."""
    integrations = await integration_service.list_integrations(member.org_id, session)
    visible = authz.filter_visible_resources(member, integrations)
    return PagesResponse(
        pages=[
            PageItem(id=i.id, name=i.name, provider=i.provider_identifier)
            for i in visible
        ]
    )


@router_scoped.get("/form-config", response_model=FormConfigResponse, tags=["Posts"])
async def get_form_config(
    member: MemberContext = Depends(require_org_member),
):
    """Which optional post form fields the org's tier unlocks."""
    config = authz.resolve_form_configuration(member.organization)
    return FormConfigResponse(tier=config.tier, show_type_field=config.show_type_field)


@router_scoped.post("/form-submit", response_model=PostAcceptedResponse, tags=["Posts"])
async def submit_form(
    body: PostRequest,
    member: MemberContext = Depends(require_org_member),
):
    """Accept a post for a page the caller is allowed to use."""
    authz.can_act_on_resource(member, body.page_id)
    return PostAcceptedResponse(accepted=True, payload=body)


@router_scoped.patch(
    "/subscription", response_model=SubscriptionUpdatedResponse, tags=["Subscription"]
)
async def manual_subscription_update(
    body: ManualSubscriptionUpdateRequest,
    member: MemberContext = Depends(require_org_admin),
    session: AsyncSession = Depends(get_session),
):
    """Set the org's tier, channel quota and lifetime flag by hand (Admin only)."""
    await subscription_service.manual_update_subscription(
        member.org_id,
        body.tier,
        body.total_channels,
        body.is_lifetime,
        session,
        billing_enabled=settings.billing_enabled,
    )
    return SubscriptionUpdatedResponse(updated=True)


@router_scoped.get("/api-key", response_model=ApiKeyResponse, tags=["API Key"])
async def reveal_api_key(
    member: MemberContext = Depends(require_org_admin),
    session: AsyncSession = Depends(get_session),
):
    """Return the org's API key in plaintext (Admin only)."""
    org = await org_service.get_org_by_id(member.org_id, session)
    if org is None:
        raise NotFoundError("Organization not found")
    return ApiKeyResponse(api_key=org_service.reveal_api_key(org, settings.secret_key))


@router_scoped.post("/api-key/rotate", response_model=ApiKeyResponse, tags=["API Key"])
async def rotate_api_key(
    member: MemberContext = Depends(require_org_admin),
    session: AsyncSession = Depends(get_session),
):
    """Issue a new org API key; the old one stops working immediately (Admin only)."""
    new_key = await org_service.rotate_api_key(
        member.org_id,
        settings.secret_key,
        session,
        api_key_length=settings.api_key_length,
    )
    return ApiKeyResponse(api_key=new_key)
