"""Organization model."""

from typing import Optional

from sqlmodel import Field, SQLModel

from .base import IDMixin, TimestampMixin


class Organization(IDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "organizations"

    name: str = Field(nullable=False, index=True)
    api_key: Optional[str] = Field(default=None, index=True)  # hex ciphertext, see core.cipher
    allow_trial: bool = Field(default=False, nullable=False)
    is_trialing: bool = Field(default=False, nullable=False)
