"""
Service layer resolving free-form identifiers to directory objects.
"""

from structlog.typing import FilteringBoundLogger

from grouplink.core.group import GroupRef
from grouplink.core.user import UserRef

from .directory import DirectoryService, LookupFailure


class GroupNotFound(Exception):
    pass


class GroupAmbiguous(Exception):
    def __init__(self, message: str, candidates: list[GroupRef]):
        super().__init__(message)
        self.candidates = candidates


class UserNotFound(Exception):
    pass


def resolve_group(
    identifier: str,
    directory: DirectoryService,
    log: FilteringBoundLogger,
) -> GroupRef:
    """
    Resolve a group by name or address.

    Parameters
    ----------
    identifier: str
        Display name, primary address or alias of the group.
    directory: DirectoryService
        The directory to search.
    log: FilteringBoundLogger
        Logger instance.

    Raises
    ------
    GroupNotFound
        If nothing matches, or the lookup itself failed (e.g. throttling).
    GroupAmbiguous
        If more than one group matches.
    SessionRequired
        If the directory cannot be reached.
    """

    identifier = identifier.strip()
    log = log.bind(identifier=identifier)

    if not identifier:
        log.info("resolve.group_blank")
        raise GroupNotFound("No group identifier given")

    try:
        groups = directory.find_groups(identifier=identifier, log=log)
    except LookupFailure as e:
        log.warning("resolve.group_lookup_failed", error=str(e))
        raise GroupNotFound(f"Could not look up group {identifier}: {e}") from e

    if not groups:
        log.info("resolve.group_not_found")
        raise GroupNotFound(f"Group {identifier} not found")

    if len(groups) > 1:
        log.info("resolve.group_ambiguous", number_of_groups=len(groups))
        raise GroupAmbiguous(
            f"Group {identifier} matches {len(groups)} groups", candidates=groups
        )

    group = groups[0]
    log.info("resolve.group_found", group_id=group.group_id)

    return group


def resolve_user(
    identifier: str,
    directory: DirectoryService,
    log: FilteringBoundLogger,
) -> UserRef:
    """
    Resolve a user mailbox by name or address.

    Parameters
    ----------
    identifier: str
        Address, user principal name or display name of the user.
    directory: DirectoryService
        The directory to search.
    log: FilteringBoundLogger
        Logger instance.

    Raises
    ------
    UserNotFound
        If nothing matches, if a name matches several mailboxes, or if the
        lookup itself failed (e.g. throttling).
    SessionRequired
        If the directory cannot be reached.
    """

    identifier = identifier.strip()
    log = log.bind(identifier=identifier)

    if not identifier:
        log.info("resolve.user_blank")
        raise UserNotFound("No user identifier given")

    try:
        users = directory.find_users(identifier=identifier, log=log)
    except LookupFailure as e:
        log.warning("resolve.user_lookup_failed", error=str(e))
        raise UserNotFound(f"Could not look up user {identifier}: {e}") from e

    if not users:
        log.info("resolve.user_not_found")
        raise UserNotFound(f"User {identifier} not found")

    if len(users) > 1:
        log.info("resolve.user_ambiguous", number_of_users=len(users))
        raise UserNotFound(
            f"User {identifier} matches {len(users)} mailboxes, use an address"
        )

    user = users[0]
    log.debug("resolve.user_found", user_id=user.user_id)

    return user
