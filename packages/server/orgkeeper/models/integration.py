"""Integration model: a connected channel ("page") an org publishes through."""

from datetime import datetime
from typing import Optional

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import IDMixin, TimestampMixin


class Integration(IDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "integrations"

    organization_id: str = Field(foreign_key="organizations.id", nullable=False, index=True)
    name: str = Field(nullable=False)
    provider_identifier: str = Field(nullable=False)  # e.g. youtube, tiktok
    disabled: bool = Field(default=False, nullable=False)
    deleted_at: Optional[datetime] = Field(default=None, sa_type=sa.DateTime(timezone=True))
