"""
Service layer collecting a batch of validated users.
"""

from typing import Callable, Iterable

from structlog.typing import FilteringBoundLogger

from grouplink.core import events
from grouplink.core.membership import BulkFailurePolicy, UserBatch

from . import resolver
from .directory import DirectoryService
from .reporting import ReportSink


def collect_bulk(
    read_lines: Callable[[], Iterable[str]],
    decide: Callable[[str], BulkFailurePolicy],
    directory: DirectoryService,
    sink: ReportSink,
    log: FilteringBoundLogger,
) -> UserBatch:
    """
    Resolve every non-blank line of a bulk source, in order.

    Parameters
    ----------
    read_lines: Callable[[], Iterable[str]]
        Returns the raw lines. Called once per pass, so that a corrected
        source is picked up after a restart.
    decide: Callable[[str], BulkFailurePolicy]
        Called with the offending identifier when a line does not resolve.
    directory: DirectoryService
        The directory to resolve against.
    sink: ReportSink
        Receives `UserAccepted`, `UserNotFound` and `BatchRestarted` events.
    log: FilteringBoundLogger
        Logger instance.

    Returns
    -------
    UserBatch
        Either a batch from a pass in which every line resolved, or, under
        `BulkFailurePolicy.KEEP_PARTIAL`, the users resolved before the first
        failure. Batches from restarted passes are never returned.
    """

    passes = 0

    while True:
        passes += 1
        pass_log = log.bind(bulk_pass=passes)
        batch = UserBatch()
        failed_identifier = None

        for line in read_lines():
            identifier = line.strip()

            if not identifier:
                continue

            try:
                user = resolver.resolve_user(
                    identifier=identifier, directory=directory, log=pass_log
                )
            except resolver.UserNotFound as e:
                pass_log.warning("collect.bulk_user_not_found", identifier=identifier)
                sink.emit(events.UserNotFound(identifier=identifier, reason=str(e)))
                failed_identifier = identifier
                break

            batch.add(user)
            sink.emit(
                events.UserAccepted(
                    identifier=identifier, user=user, batch_size=len(batch)
                )
            )

        if failed_identifier is None:
            pass_log.info("collect.bulk_complete", number_of_users=len(batch))
            return batch

        policy = decide(failed_identifier)

        if policy == BulkFailurePolicy.KEEP_PARTIAL:
            pass_log.info("collect.bulk_kept_partial", number_of_users=len(batch))
            return batch

        pass_log.info("collect.bulk_restarted", discarded=len(batch))
        sink.emit(
            events.BatchRestarted(identifier=failed_identifier, discarded=len(batch))
        )


def collect_manual(
    entries: Iterable[str],
    sentinel: str,
    directory: DirectoryService,
    sink: ReportSink,
    log: FilteringBoundLogger,
) -> UserBatch:
    """
    Resolve entries one at a time until the sentinel is given or the entries
    run out. Entries that do not resolve are reported and skipped.
    """

    sentinel = sentinel.strip().lower()
    batch = UserBatch()

    for entry in entries:
        identifier = entry.strip()

        if identifier.lower() == sentinel:
            break

        if not identifier:
            continue

        try:
            user = resolver.resolve_user(
                identifier=identifier, directory=directory, log=log
            )
        except resolver.UserNotFound as e:
            log.warning("collect.manual_user_not_found", identifier=identifier)
            sink.emit(events.UserNotFound(identifier=identifier, reason=str(e)))
            continue

        batch.add(user)
        sink.emit(
            events.UserAccepted(identifier=identifier, user=user, batch_size=len(batch))
        )

    log.info("collect.manual_complete", number_of_users=len(batch))

    return batch
