"""
Organization-related Pydantic schemas shared between server and clients.

Covers: org create/join/list, the post form (configuration and submission),
manual subscription changes and organization API keys.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import Field

from .common import CamelModel, Role, SubscriptionTier


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------

class OrgCreateRequest(CamelModel):
    name: str = Field(..., min_length=2, max_length=128, description="Organization display name")


class OrgJoinRequest(CamelModel):
    organization_id: str = Field(..., min_length=1)


class PostRequest(CamelModel):
    """A post submitted through the organization form for one page."""

    video_url: str = Field(..., min_length=1)
    caption: Optional[str] = None
    page_id: str = Field(..., min_length=1, description="Integration the post targets")
    upload_date: Optional[datetime] = None
    thumbnail_timestamp: Optional[str] = Field(
        default=None,
        pattern=r"^([0-5]?[0-9]):([0-5][0-9])$",
        description="Thumbnail frame in mm:ss format",
    )
    type: Optional[str] = None


class ManualSubscriptionUpdateRequest(CamelModel):
    tier: SubscriptionTier
    total_channels: Optional[int] = Field(default=None, ge=1)
    is_lifetime: Optional[bool] = None


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------

class OrgResponse(CamelModel):
    id: str
    name: str
    allow_trial: bool
    is_trialing: bool
    tier: SubscriptionTier
    total_channels: Optional[int] = None
    is_lifetime: bool = False
    created_at: datetime


class OrgListItem(CamelModel):
    id: str
    name: str
    role: Role  # the requesting user's role in this org
    disabled: bool
    tier: SubscriptionTier


class OrgListResponse(CamelModel):
    data: list[OrgListItem]


class OrgJoinResponse(CamelModel):
    joined: bool = True


class FormConfigResponse(CamelModel):
    tier: SubscriptionTier
    show_type_field: bool


class PostAcceptedResponse(CamelModel):
    accepted: bool = True
    payload: PostRequest


class SubscriptionUpdatedResponse(CamelModel):
    updated: bool = True


class ApiKeyResponse(CamelModel):
    api_key: str  # plaintext, returned only to admins


class PublicOrgResponse(CamelModel):
    id: str
    name: str
    tier: SubscriptionTier
