"""
Tests applying memberships.
"""

import pytest

from grouplink.core.membership import LinkType, MembershipRequest, Role, UserBatch
from grouplink.service import applier
from grouplink.service.directory import SessionRequired


def make_request(directory, role, user_ids):
    batch = UserBatch()

    for user_id in user_ids:
        batch.add(directory.users[user_id])

    return MembershipRequest(
        group=directory.groups["group-sales"].ref, users=batch, role=role
    )


def test_member_issues_one_grant_per_user(directory, sink, logger):
    request = make_request(directory, Role.MEMBER, ["user-alice", "user-bob"])

    summary = applier.apply(request=request, directory=directory, sink=sink, log=logger)

    assert directory.calls == [
        (LinkType.MEMBER, "group-sales", "user-alice"),
        (LinkType.MEMBER, "group-sales", "user-bob"),
    ]
    assert summary.attempted == 2
    assert summary.succeeded == 2
    assert summary.failed == []
    assert [event.processed for event in sink.of_kind("batch_progress")] == [1, 2]


def test_owner_grants_member_before_owner(directory, sink, logger):
    request = make_request(directory, Role.OWNER, ["user-alice", "user-bob"])

    applier.apply(request=request, directory=directory, sink=sink, log=logger)

    assert directory.calls == [
        (LinkType.MEMBER, "group-sales", "user-alice"),
        (LinkType.OWNER, "group-sales", "user-alice"),
        (LinkType.MEMBER, "group-sales", "user-bob"),
        (LinkType.OWNER, "group-sales", "user-bob"),
    ]

    group = directory.groups["group-sales"]
    assert group.members == {"user-alice", "user-bob"}
    assert group.owners == {"user-alice", "user-bob"}


def test_apply_twice_is_idempotent(directory, sink, logger):
    request = make_request(directory, Role.OWNER, ["user-alice", "user-carol"])

    first = applier.apply(request=request, directory=directory, sink=sink, log=logger)
    state = (
        set(directory.groups["group-sales"].members),
        set(directory.groups["group-sales"].owners),
    )
    second = applier.apply(request=request, directory=directory, sink=sink, log=logger)

    assert first == second
    assert second.failed == []
    assert sink.of_kind("grant_failed") == []
    assert state == (
        directory.groups["group-sales"].members,
        directory.groups["group-sales"].owners,
    )


def test_per_user_failure_does_not_abort(directory, sink, logger):
    directory.failing_users.add("user-bob")
    request = make_request(
        directory, Role.OWNER, ["user-alice", "user-bob", "user-carol"]
    )

    summary = applier.apply(request=request, directory=directory, sink=sink, log=logger)

    assert summary.attempted == 3
    assert summary.succeeded == 2
    assert summary.failed == ["bob@example.com"]

    # The owner grant is skipped once the member grant has failed.
    assert (LinkType.OWNER, "group-sales", "user-bob") not in directory.calls
    assert directory.calls[-2:] == [
        (LinkType.MEMBER, "group-sales", "user-carol"),
        (LinkType.OWNER, "group-sales", "user-carol"),
    ]

    failures = sink.of_kind("grant_failed")
    assert len(failures) == 1
    assert failures[0].user.user_id == "user-bob"
    assert len(sink.of_kind("batch_progress")) == 3


def test_session_loss_halts_apply(directory, sink, logger):
    request = make_request(directory, Role.MEMBER, ["user-alice", "user-bob"])
    directory.connected = False

    with pytest.raises(SessionRequired):
        applier.apply(request=request, directory=directory, sink=sink, log=logger)

    assert sink.of_kind("batch_progress") == []


def test_empty_batch(directory, sink, logger):
    request = make_request(directory, Role.MEMBER, [])

    summary = applier.apply(request=request, directory=directory, sink=sink, log=logger)

    assert summary.attempted == 0
    assert directory.calls == []
