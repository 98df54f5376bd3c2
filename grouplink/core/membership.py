"""
Membership requests, roles, and the validated batch of users.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .group import GroupRef
from .user import UserRef


class LinkType(str, Enum):
    """
    The kind of link between a user and a group. Values match the
    directory's navigation property names.
    """

    MEMBER = "members"
    OWNER = "owners"


class Role(str, Enum):
    MEMBER = "member"
    OWNER = "owner"

    @property
    def links(self) -> tuple[LinkType, ...]:
        """
        Links to grant, in order. An owner must also be a member, so the
        member link always comes first.
        """
        if self is Role.OWNER:
            return (LinkType.MEMBER, LinkType.OWNER)

        return (LinkType.MEMBER,)


class AcquisitionStrategy(str, Enum):
    BULK_FILE = "bulk_file"
    MANUAL = "manual"


class BulkFailurePolicy(str, Enum):
    """
    What to do when a line of a bulk source does not resolve.

    RESTART
        Throw away the current pass and read the whole source again.
    KEEP_PARTIAL
        Stop at the failing line and keep what resolved before it.
    """

    RESTART = "restart"
    KEEP_PARTIAL = "keep_partial"


class UserBatch(BaseModel):
    """
    Ordered list of resolved users. Duplicates are allowed; nothing other
    than a `UserRef` may be added.
    """

    users: list[UserRef] = Field(default_factory=list)

    def add(self, user: UserRef) -> None:
        if not isinstance(user, UserRef):
            raise TypeError(f"Only resolved users may be batched, got {user!r}")

        self.users.append(user)

    def __len__(self) -> int:
        return len(self.users)

    def __iter__(self):
        return iter(self.users)

    def __getitem__(self, index: int) -> UserRef:
        return self.users[index]


class MembershipRequest(BaseModel):
    """
    A role to grant to a fixed list of users. The users are copied out of
    the batch, so later changes to the batch do not affect the request.
    """

    model_config = ConfigDict(frozen=True)

    group: GroupRef
    users: tuple[UserRef, ...]
    role: Role

    @field_validator("users", mode="before")
    @classmethod
    def copy_batch(cls, value):
        if isinstance(value, UserBatch):
            return tuple(value.users)

        return value


class ApplySummary(BaseModel):
    attempted: int
    succeeded: int
    failed: list[str] = Field(default_factory=list)
