"""
The end-to-end workflow: resolve the group, collect users, choose a role and
apply it.
"""

import abc
from typing import Callable, Iterable, Iterator

from structlog.typing import FilteringBoundLogger

from grouplink.config.settings import Settings
from grouplink.core import events
from grouplink.core.membership import (
    AcquisitionStrategy,
    ApplySummary,
    BulkFailurePolicy,
    MembershipRequest,
    Role,
)
from grouplink.core.retry import retry_until

from . import applier, collector, resolver
from .directory import DirectoryService
from .reporting import ReportSink


class Operator(abc.ABC):
    """
    The person driving the workflow. Downstream must implement:

    - ask_group_identifier: the next group name or address to try.
    - choose_strategy: how users will be supplied.
    - bulk_lines: the raw lines of the bulk source; called again after a
                  restarted pass.
    - manual_entries: raw entries, one at a time.
    - choose_bulk_failure_policy: what to do when a bulk line fails.
    - choose_role: member or owner.
    """

    @abc.abstractmethod
    def ask_group_identifier(self) -> str:
        raise NotImplementedError

    @abc.abstractmethod
    def choose_strategy(self) -> AcquisitionStrategy:
        raise NotImplementedError

    @abc.abstractmethod
    def bulk_lines(self) -> Iterable[str]:
        raise NotImplementedError

    @abc.abstractmethod
    def manual_entries(self) -> Iterator[str]:
        raise NotImplementedError

    @abc.abstractmethod
    def choose_bulk_failure_policy(self, identifier: str) -> BulkFailurePolicy:
        raise NotImplementedError

    @abc.abstractmethod
    def choose_role(self) -> Role:
        raise NotImplementedError


def bulk_failure_decider(
    operator: Operator, settings: Settings
) -> Callable[[str], BulkFailurePolicy]:
    match settings.bulk_failure_policy:
        case "restart":
            return lambda identifier: BulkFailurePolicy.RESTART
        case "keep_partial":
            return lambda identifier: BulkFailurePolicy.KEEP_PARTIAL
        case "ask":
            return operator.choose_bulk_failure_policy
        case _:
            raise ValueError(
                f"Unknown bulk failure policy {settings.bulk_failure_policy}"
            )


def run(
    directory: DirectoryService,
    operator: Operator,
    sink: ReportSink,
    settings: Settings,
    log: FilteringBoundLogger,
) -> ApplySummary:
    """
    Run the workflow once. The directory must already have a working session.

    Raises
    ------
    SessionRequired
        If the directory becomes unreachable at any point.
    """

    def group_lookup_failed(identifier: str, error: Exception) -> None:
        log.warning("run.group_lookup_failed", identifier=identifier)
        sink.emit(
            events.GroupLookupFailed(
                identifier=identifier,
                reason=str(error),
                candidates=getattr(error, "candidates", []),
            )
        )

    group = retry_until(
        ask=operator.ask_group_identifier,
        attempt=lambda identifier: resolver.resolve_group(
            identifier=identifier, directory=directory, log=log
        ),
        recoverable=(resolver.GroupNotFound, resolver.GroupAmbiguous),
        on_failure=group_lookup_failed,
    )

    log = log.bind(group_id=group.group_id)
    sink.emit(events.FoundGroup(group=group))

    strategy = operator.choose_strategy()
    log = log.bind(strategy=strategy.value)

    match strategy:
        case AcquisitionStrategy.BULK_FILE:
            batch = collector.collect_bulk(
                read_lines=operator.bulk_lines,
                decide=bulk_failure_decider(operator=operator, settings=settings),
                directory=directory,
                sink=sink,
                log=log,
            )
        case AcquisitionStrategy.MANUAL:
            batch = collector.collect_manual(
                entries=operator.manual_entries(),
                sentinel=settings.manual_sentinel,
                directory=directory,
                sink=sink,
                log=log,
            )
        case _:
            raise ValueError(f"Unknown acquisition strategy {strategy}")

    role = operator.choose_role()

    request = MembershipRequest(group=group, users=batch, role=role)
    summary = applier.apply(request=request, directory=directory, sink=sink, log=log)

    sink.emit(
        events.Summary(
            group=group,
            role=role,
            attempted=summary.attempted,
            succeeded=summary.succeeded,
            failed=summary.failed,
        )
    )

    log.info("run.complete", attempted=summary.attempted)

    return summary
