"""
Configuration variables and fixtures for the service layer tests.
"""

from typing import Iterable, Iterator

import pytest

from grouplink.core.membership import AcquisitionStrategy, BulkFailurePolicy, Role
from grouplink.service.mock import example_directory
from grouplink.service.orchestrator import Operator
from grouplink.service.reporting import RecordingSink


class ScriptedOperator(Operator):
    """
    Answers every question from a prepared script.
    """

    def __init__(
        self,
        group_identifiers: list[str],
        strategy: AcquisitionStrategy,
        role: Role,
        bulk_passes: list[list[str]] | None = None,
        manual: list[str] | None = None,
        bulk_failure_policy: BulkFailurePolicy = BulkFailurePolicy.RESTART,
    ):
        self.group_identifiers = list(group_identifiers)
        self.strategy = strategy
        self.role = role
        self.bulk_passes = list(bulk_passes or [])
        self.manual = list(manual or [])
        self.bulk_failure_policy = bulk_failure_policy

        self.group_questions = 0
        self.bulk_reads = 0
        self.failure_questions: list[str] = []

    def ask_group_identifier(self) -> str:
        self.group_questions += 1
        return self.group_identifiers.pop(0)

    def choose_strategy(self) -> AcquisitionStrategy:
        return self.strategy

    def bulk_lines(self) -> Iterable[str]:
        self.bulk_reads += 1
        return self.bulk_passes.pop(0)

    def manual_entries(self) -> Iterator[str]:
        return iter(self.manual)

    def choose_bulk_failure_policy(self, identifier: str) -> BulkFailurePolicy:
        self.failure_questions.append(identifier)
        return self.bulk_failure_policy

    def choose_role(self) -> Role:
        return self.role


@pytest.fixture
def directory():
    yield example_directory()


@pytest.fixture
def sink():
    yield RecordingSink()


@pytest.fixture
def scripted_operator():
    yield ScriptedOperator
