"""
Tests establishing a directory session.
"""

from datetime import timedelta

import pytest

from grouplink.config.settings import Settings
from grouplink.service.directory import SessionRequired
from grouplink.service.graph import GraphDirectory
from grouplink.service.mock import MockDirectory
from grouplink.service.session import build_directory, ensure_session


class FlakyDirectory(MockDirectory):
    def __init__(self, failures: int):
        super().__init__()
        self.failures = failures
        self.checks = 0

    def check_session(self, log) -> None:
        self.checks += 1

        if self.checks <= self.failures:
            raise SessionRequired("not yet")


def test_ensure_session_retries(settings, logger):
    settings.connect_retry_delay = timedelta(seconds=2)
    directory = FlakyDirectory(failures=2)
    sleeps = []

    result = ensure_session(
        settings=settings, log=logger, directory=directory, sleep=sleeps.append
    )

    assert result is directory
    assert directory.checks == 3
    assert sleeps == [2.0, 2.0]


def test_ensure_session_gives_up(settings, logger):
    directory = FlakyDirectory(failures=10)
    sleeps = []

    with pytest.raises(SessionRequired, match="after 3 attempts") as excinfo:
        ensure_session(
            settings=settings, log=logger, directory=directory, sleep=sleeps.append
        )

    assert str(excinfo.value.__cause__) == "not yet"

    assert directory.checks == 3
    assert len(sleeps) == 2


def test_ensure_session_mock(settings, logger):
    directory = ensure_session(settings=settings, log=logger)

    assert directory.name == "mock"
    assert "group-sales" in directory.groups


def test_graph_requires_credentials(logger):
    settings = Settings(_env_file=None, directory_type="graph", tenant_id=None)

    with pytest.raises(SessionRequired):
        build_directory(settings=settings, log=logger)


def test_graph_directory_built(logger):
    settings = Settings(
        _env_file=None,
        directory_type="graph",
        tenant_id="tenant",
        client_id="client",
        client_secret="secret",
    )

    directory = build_directory(settings=settings, log=logger)

    assert isinstance(directory, GraphDirectory)
    assert str(directory.client.base_url).startswith("https://graph.microsoft.com/v1.0")
