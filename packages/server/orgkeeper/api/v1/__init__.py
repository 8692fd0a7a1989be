"""
API v1 Router

Org-scoped endpoints are prefixed with /organizations/{orgId}.
"""

from fastapi import APIRouter

from . import public
from .organizations import router_global as orgs_global_router
from .organizations import router_scoped as orgs_scoped_router

router = APIRouter()

# Organization routes (non-org-scoped: list, create, join)
router.include_router(orgs_global_router)

# Organization routes (org-scoped: members, pages, posts, subscription, api key)
router.include_router(orgs_scoped_router, prefix="/organizations/{orgId}")

# Public API (org API key auth)
router.include_router(public.router, prefix="/public", tags=["Public"])


@router.get("/", tags=["API"])
async def api_root():
    """API root — returns version and available endpoints."""
    return {
        "api": "v1",
        "version": "0.1.0",
        "endpoints": [
            "/organizations",
            "/organizations/join",
            "/organizations/{orgId}/members",
            "/organizations/{orgId}/pages",
            "/organizations/{orgId}/form-config",
            "/organizations/{orgId}/form-submit",
            "/organizations/{orgId}/subscription",
            "/organizations/{orgId}/api-key",
            "/public/organization",
        ],
    }
