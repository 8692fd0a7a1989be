"""
Request authentication and org-scoped authorization dependencies.

Supports:
- Human callers: session JWT (Bearer header or ``auth`` cookie)
- Public API callers: the organization API key in ``Authorization``
- Resolution of the caller's one membership for the current org
  (``X-Org-Id`` header or ``showorg`` cookie, else the oldest active one)
- Org-scoped member/admin guards built on ``core.authz``

Issuing sessions (login, registration) lives elsewhere; this module only
verifies them.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
import structlog
from fastapi import Depends, HTTPException, Request
from fastapi.security import APIKeyHeader
from sqlalchemy.ext.asyncio import AsyncSession

from orgkeeper.core import authz
from orgkeeper.core.authz import MemberContext
from orgkeeper.core.config import get_settings
from orgkeeper.core.database import get_session
from orgkeeper.models.organization import Organization
from orgkeeper.services import members as member_service
from orgkeeper.services import organizations as org_service

log = structlog.get_logger()
settings = get_settings()

api_key_header = APIKeyHeader(name="Authorization", auto_error=False)

SESSION_COOKIE = "auth"
ORG_HEADER = "X-Org-Id"
ORG_COOKIE = "showorg"


# ---------------------------------------------------------------------------
# JWT
# ---------------------------------------------------------------------------

def create_jwt(
    user_id: str,
    *,
    expires_delta: timedelta | None = None,
) -> tuple[str, str]:
    """Create a signed JWT. Returns (token, jti)."""
    jti = str(uuid.uuid4())
    now = datetime.now(timezone.utc)
    exp = now + (expires_delta or timedelta(minutes=settings.jwt_expire_minutes))
    payload = {
        "sub": str(user_id),
        "iat": now,
        "exp": exp,
        "jti": jti,
    }
    token = jwt.encode(payload, settings.secret_key, algorithm=settings.jwt_algorithm)
    return token, jti


def decode_jwt(token: str) -> dict:
    """Decode and verify a JWT. Raises jwt.PyJWTError on failure."""
    return jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])


# ---------------------------------------------------------------------------
# Authentication dependencies
# ---------------------------------------------------------------------------

async def get_current_user_id(
    request: Request,
    authorization: Optional[str] = Depends(api_key_header),
) -> str:
    """The authenticated user's id, from a Bearer JWT or the session cookie."""
    token: Optional[str] = None
    if authorization and authorization.startswith("Bearer "):
        token = authorization[7:].strip()
    else:
        token = request.cookies.get(SESSION_COOKIE)

    if not token:
        raise HTTPException(status_code=401, detail="Authentication required")

    try:
        payload = decode_jwt(token)
    except jwt.PyJWTError:
        raise HTTPException(status_code=401, detail="Invalid or expired session")

    user_id = payload.get("sub")
    if not user_id:
        raise HTTPException(status_code=401, detail="Invalid or expired session")
    return user_id


async def get_current_member(
    request: Request,
    user_id: str = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_session),
) -> Optional[MemberContext]:
    """The caller's membership in the current org, or None.

    Disabled memberships resolve to None. The org-scoped guards turn None
    into the same ForbiddenError as an org mismatch.
    """
    preferred = request.headers.get(ORG_HEADER) or request.cookies.get(ORG_COOKIE)
    org_id = await member_service.resolve_current_org_id(user_id, preferred, session)
    if org_id is None:
        return None

    member = await member_service.get_member_context(user_id, org_id, session)
    if member is None or member.disabled:
        return None
    return member


async def get_org_from_api_key(
    authorization: Optional[str] = Depends(api_key_header),
    session: AsyncSession = Depends(get_session),
) -> Organization:
    """Public API auth: ``Authorization: <org api key>``."""
    if not authorization:
        raise HTTPException(status_code=401, detail="Authorization header is missing")

    org = await org_service.get_org_by_api_key(authorization.strip(), settings.secret_key, session)
    if org is None:
        raise HTTPException(status_code=401, detail="Invalid API key")
    return org


# ---------------------------------------------------------------------------
# Authorization dependencies (org scope and role checks)
# ---------------------------------------------------------------------------

async def require_org_member(
    orgId: str,
    member: Optional[MemberContext] = Depends(get_current_member),
) -> MemberContext:
    """The path's org must be the caller's current org."""
    authz.require_same_organization(member, orgId)
    return member


async def require_org_admin(
    member: MemberContext = Depends(require_org_member),
) -> MemberContext:
    """Same org, and ADMIN or SUPERADMIN."""
    authz.require_admin(member)
    return member
