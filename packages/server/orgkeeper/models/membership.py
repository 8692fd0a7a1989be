"""User-Organization membership and its per-page grants."""

from datetime import datetime, timezone

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from orgkeeper_shared.schemas.common import Role

from .base import IDMixin


class Membership(IDMixin, SQLModel, table=True):
    __tablename__ = "user_organizations"
    __table_args__ = (
        sa.UniqueConstraint("user_id", "organization_id", name="uq_user_organization"),
    )

    user_id: str = Field(foreign_key="users.id", nullable=False, index=True)
    organization_id: str = Field(foreign_key="organizations.id", nullable=False, index=True)
    role: Role = Field(
        default=Role.USER,
        sa_type=sa.Enum(Role, native_enum=False, length=16),
        nullable=False,
    )
    disabled: bool = Field(default=False, nullable=False)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        nullable=False,
        sa_column_kwargs={"server_default": sa.func.now()},
        sa_type=sa.DateTime(timezone=True),
    )


class PermissionGrant(SQLModel, table=True):
    """One page (integration) a USER-role member may see and post to."""

    __tablename__ = "user_organization_integrations"

    membership_id: str = Field(
        sa_column=sa.Column(
            sa.String(36),
            sa.ForeignKey("user_organizations.id", ondelete="CASCADE"),
            primary_key=True,
        ),
    )
    integration_id: str = Field(foreign_key="integrations.id", primary_key=True)
