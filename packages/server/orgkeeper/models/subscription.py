"""Subscription model (one per organization)."""

from datetime import datetime, timezone

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from orgkeeper_shared.schemas.common import SubscriptionTier

from .base import IDMixin


class Subscription(IDMixin, SQLModel, table=True):
    __tablename__ = "subscriptions"

    organization_id: str = Field(foreign_key="organizations.id", unique=True, nullable=False)
    subscription_tier: SubscriptionTier = Field(
        default=SubscriptionTier.STANDARD,
        sa_type=sa.Enum(SubscriptionTier, native_enum=False, length=16),
        nullable=False,
    )
    total_channels: int = Field(default=5, nullable=False)
    is_lifetime: bool = Field(default=False, nullable=False)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        nullable=False,
        sa_column_kwargs={"server_default": sa.func.now()},
        sa_type=sa.DateTime(timezone=True),
    )
