"""
Tests the core membership models and the retry combinator.
"""

import pytest

from grouplink.core.group import GroupRef
from grouplink.core.membership import LinkType, MembershipRequest, Role, UserBatch
from grouplink.core.retry import retry_until
from grouplink.core.user import UserRef


def test_role_links():
    assert Role.MEMBER.links == (LinkType.MEMBER,)
    assert Role.OWNER.links == (LinkType.MEMBER, LinkType.OWNER)


def test_batch_only_accepts_resolved_users():
    batch = UserBatch()
    user = UserRef(user_id="u-1", user_principal_name="alice@example.com")

    batch.add(user)
    batch.add(user)

    with pytest.raises(TypeError):
        batch.add("bob@example.com")

    assert len(batch) == 2
    assert list(batch) == [user, user]
    assert batch[0] is user


def test_refs_are_immutable():
    user = UserRef(user_id="u-1", user_principal_name="alice@example.com")

    with pytest.raises(Exception):
        user.user_id = "u-2"


def test_retry_until_reasks():
    answers = iter(["x", "y", "3"])
    failures = []

    result = retry_until(
        ask=lambda: next(answers),
        attempt=int,
        recoverable=(ValueError,),
        on_failure=lambda answer, error: failures.append(answer),
    )

    assert result == 3
    assert failures == ["x", "y"]


def test_retry_until_propagates_other_errors():
    def attempt(answer):
        raise KeyError(answer)

    with pytest.raises(KeyError):
        retry_until(
            ask=lambda: "a",
            attempt=attempt,
            recoverable=(ValueError,),
            on_failure=lambda answer, error: None,
        )


def test_request_holds_its_own_copy_of_the_batch():
    alice = UserRef(user_id="u-1", user_principal_name="alice@example.com")
    bob = UserRef(user_id="u-2", user_principal_name="bob@example.com")
    batch = UserBatch()
    batch.add(alice)

    request = MembershipRequest(
        group=GroupRef(group_id="g-1", display_name="Sales"),
        users=batch,
        role=Role.MEMBER,
    )
    batch.add(bob)

    assert request.users == (alice,)
