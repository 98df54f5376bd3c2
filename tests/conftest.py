"""
Core configuration
"""

import pytest
import structlog

from grouplink.config.settings import Settings


@pytest.fixture(scope="session")
def logger():
    yield structlog.get_logger()


@pytest.fixture
def settings():
    yield Settings(
        _env_file=None,
        directory_type="mock",
        connect_attempts=3,
        manual_sentinel="done",
        bulk_failure_policy="restart",
    )
