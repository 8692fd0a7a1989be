# SQLModel definitions, imported here so the metadata is populated for Alembic.
from .base import IDMixin, TimestampMixin  # noqa: F401
from .organization import Organization  # noqa: F401
from .subscription import Subscription  # noqa: F401
from .user import User  # noqa: F401
from .integration import Integration  # noqa: F401
from .membership import Membership, PermissionGrant  # noqa: F401
