from enum import Enum

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class Role(str, Enum):
    USER = "USER"
    ADMIN = "ADMIN"
    SUPERADMIN = "SUPERADMIN"


# Roles an admin may hand out. SUPERADMIN is only assigned when an org is created.
ASSIGNABLE_ROLES: frozenset["Role"] = frozenset({Role.ADMIN, Role.USER})


class SubscriptionTier(str, Enum):
    STANDARD = "STANDARD"
    PRO = "PRO"
    TEAM = "TEAM"
    ULTIMATE = "ULTIMATE"


DEFAULT_TIER = SubscriptionTier.STANDARD

# Channel quota applied when a manual tier change does not name one.
TIER_DEFAULT_CHANNELS: dict["SubscriptionTier", int] = {
    SubscriptionTier.STANDARD: 5,
    SubscriptionTier.PRO: 30,
    SubscriptionTier.TEAM: 100,
    SubscriptionTier.ULTIMATE: 500,
}


class CamelModel(BaseModel):
    """Base for wire models: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ErrorBody(BaseModel):
    code: str
    message: str
    status: int


class ErrorResponse(BaseModel):
    error: ErrorBody
