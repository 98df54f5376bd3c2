"""
Base for directory services.
"""

import abc
from typing import Literal

from structlog.typing import FilteringBoundLogger

from grouplink.core.group import GroupRef
from grouplink.core.membership import LinkType
from grouplink.core.user import UserRef


class DirectoryError(Exception):
    pass


class SessionRequired(DirectoryError):
    """
    The directory could not be reached, or rejected our credentials. Nothing
    else can succeed until a new session is established.
    """

    pass


class LookupFailure(DirectoryError):
    """
    A lookup failed for a reason other than authentication or connectivity
    (throttling, server errors, missing read permission). Only the entry being
    looked up is affected.
    """

    pass


class LinkFailure(DirectoryError):
    """
    A single grant of a link failed for a reason other than the user already
    holding it.
    """

    pass


class DirectoryService(abc.ABC):
    """
    The base class for directories. Downstream must implement:

    - check_session: make a cheap authenticated call, raising SessionRequired
                     if it fails.
    - find_groups: all groups matching a free-form identifier.
    - find_users: all user mailboxes matching a free-form identifier.
    - add_link: grant a member or owner link. Returns False, rather than
                failing, when the user already holds the link.
    """

    name: Literal["graph", "mock"]

    @abc.abstractmethod
    def check_session(self, log: FilteringBoundLogger) -> None:
        raise NotImplementedError

    @abc.abstractmethod
    def find_groups(self, identifier: str, log: FilteringBoundLogger) -> list[GroupRef]:
        raise NotImplementedError

    @abc.abstractmethod
    def find_users(self, identifier: str, log: FilteringBoundLogger) -> list[UserRef]:
        raise NotImplementedError

    @abc.abstractmethod
    def add_link(
        self,
        group: GroupRef,
        user: UserRef,
        link: LinkType,
        log: FilteringBoundLogger,
    ) -> bool:
        raise NotImplementedError
