"""
Structured events emitted by the workflow for a presentation layer to render.
"""

from typing import Literal

from pydantic import BaseModel

from .group import GroupRef
from .membership import LinkType, Role
from .user import UserRef


class FoundGroup(BaseModel):
    kind: Literal["found_group"] = "found_group"
    group: GroupRef


class GroupLookupFailed(BaseModel):
    kind: Literal["group_lookup_failed"] = "group_lookup_failed"
    identifier: str
    reason: str
    candidates: list[GroupRef] = []


class UserAccepted(BaseModel):
    kind: Literal["user_accepted"] = "user_accepted"
    identifier: str
    user: UserRef
    batch_size: int


class UserNotFound(BaseModel):
    kind: Literal["user_not_found"] = "user_not_found"
    identifier: str
    reason: str


class BatchRestarted(BaseModel):
    kind: Literal["batch_restarted"] = "batch_restarted"
    identifier: str
    discarded: int


class BatchProgress(BaseModel):
    kind: Literal["batch_progress"] = "batch_progress"
    processed: int
    total: int
    user: UserRef


class GrantFailed(BaseModel):
    kind: Literal["grant_failed"] = "grant_failed"
    user: UserRef
    link: LinkType
    reason: str


class Summary(BaseModel):
    kind: Literal["summary"] = "summary"
    group: GroupRef
    role: Role
    attempted: int
    succeeded: int
    failed: list[str] = []


Event = (
    FoundGroup
    | GroupLookupFailed
    | UserAccepted
    | UserNotFound
    | BatchRestarted
    | BatchProgress
    | GrantFailed
    | Summary
)
