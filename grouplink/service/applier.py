"""
Service layer applying member and owner links to a group.
"""

from structlog.typing import FilteringBoundLogger

from grouplink.core import events
from grouplink.core.membership import ApplySummary, MembershipRequest

from .directory import DirectoryService, LinkFailure
from .reporting import ReportSink


def apply(
    request: MembershipRequest,
    directory: DirectoryService,
    sink: ReportSink,
    log: FilteringBoundLogger,
) -> ApplySummary:
    """
    Grant the requested role to every user in the batch, in order.

    A failure for one user is reported and the batch carries on. Users that
    already hold a link are not failures, so applying the same request twice
    gives the same result.

    Parameters
    ----------
    request: MembershipRequest
        Group, users and role to apply.
    directory: DirectoryService
        The directory to modify.
    sink: ReportSink
        Receives `BatchProgress` and `GrantFailed` events.
    log: FilteringBoundLogger
        Logger instance.

    Raises
    ------
    SessionRequired
        If the directory becomes unreachable; the remaining users are not
        attempted.
    """

    group = request.group
    total = len(request.users)

    log = log.bind(
        group_id=group.group_id, role=request.role.value, number_of_users=total
    )

    succeeded = 0
    failed: list[str] = []

    for index, user in enumerate(request.users, start=1):
        user_log = log.bind(user_id=user.user_id)

        for link in request.role.links:
            try:
                added = directory.add_link(
                    group=group, user=user, link=link, log=user_log
                )
            except LinkFailure as e:
                user_log.warning("apply.link_failed", link=link.value, error=str(e))
                sink.emit(events.GrantFailed(user=user, link=link, reason=str(e)))
                failed.append(user.user_principal_name)
                # An owner must be a member, so stop at the first failure.
                break

            if added:
                user_log.info("apply.link_added", link=link.value)
            else:
                user_log.info("apply.link_already_present", link=link.value)
        else:
            succeeded += 1

        sink.emit(events.BatchProgress(processed=index, total=total, user=user))

    summary = ApplySummary(attempted=total, succeeded=succeeded, failed=failed)

    log.info("apply.complete", succeeded=succeeded, failed=len(failed))

    return summary
