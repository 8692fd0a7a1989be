"""Membership management schemas: invites, role changes and page grants."""

from __future__ import annotations

from typing import Optional

from pydantic import EmailStr, Field, field_validator

from .common import ASSIGNABLE_ROLES, CamelModel, Role


def _assignable(role: Role) -> Role:
    if role not in ASSIGNABLE_ROLES:
        raise ValueError("role must be one of ADMIN, USER")
    return role


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------

class MemberInviteRequest(CamelModel):
    """Add an existing user (looked up by email) to the org."""
    email: EmailStr
    role: Role = Role.USER

    @field_validator("role")
    @classmethod
    def role_is_assignable(cls, v: Role) -> Role:
        return _assignable(v)


class MemberRoleUpdateRequest(CamelModel):
    role: Role

    @field_validator("role")
    @classmethod
    def role_is_assignable(cls, v: Role) -> Role:
        return _assignable(v)


class MemberPagesUpdateRequest(CamelModel):
    integration_ids: list[str] = Field(default_factory=list)

    @field_validator("integration_ids")
    @classmethod
    def ids_are_unique(cls, v: list[str]) -> list[str]:
        if len(set(v)) != len(v):
            raise ValueError("integrationIds must be unique")
        return v


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------

class MemberUser(CamelModel):
    id: str
    email: str
    name: Optional[str] = None


class MemberResponse(CamelModel):
    id: str
    role: Role
    disabled: bool = False
    user: MemberUser
    integration_ids: list[str] = Field(default_factory=list)


class TeamResponse(CamelModel):
    users: list[MemberResponse]


class MemberRoleResponse(CamelModel):
    id: str
    role: Role


class MemberPagesResponse(CamelModel):
    member_id: str
    integration_ids: list[str]


class PageItem(CamelModel):
    id: str
    name: str
    provider: str


class PagesResponse(CamelModel):
    pages: list[PageItem]
