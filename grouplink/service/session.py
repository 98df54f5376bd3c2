"""
Establishing a working directory session before the workflow starts.
"""

import time
from typing import Callable

from structlog.typing import FilteringBoundLogger
from tenacity import (
    RetryError,
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_fixed,
)

from grouplink.config.settings import Settings
from grouplink.toolkit.client import create_client

from .directory import DirectoryService, SessionRequired
from .graph import GraphDirectory
from .mock import example_directory


def build_directory(settings: Settings, log: FilteringBoundLogger) -> DirectoryService:
    match settings.directory_type:
        case "mock":
            log.info("session.using_mock_directory")
            return example_directory()
        case "graph":
            if not settings.has_credentials:
                log.error("session.missing_credentials")
                raise SessionRequired(
                    "GROUPLINK_TENANT_ID, GROUPLINK_CLIENT_ID and "
                    "GROUPLINK_CLIENT_SECRET must all be set"
                )
            return GraphDirectory(client=create_client(settings=settings))
        case _:
            raise ValueError(f"Unknown directory type {settings.directory_type}")


def ensure_session(
    settings: Settings,
    log: FilteringBoundLogger,
    directory: DirectoryService | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> DirectoryService:
    """
    Build the configured directory (unless one is given) and make sure it
    answers an authenticated request, retrying up to
    `settings.connect_attempts` times.

    Raises
    ------
    SessionRequired
        If no attempt succeeds.
    """

    if directory is None:
        directory = build_directory(settings=settings, log=log)

    log = log.bind(directory=directory.name)
    attempts = max(settings.connect_attempts, 1)

    def connect_failed(retry_state) -> None:
        log.warning(
            "session.connect_failed",
            attempt=retry_state.attempt_number,
            error=str(retry_state.outcome.exception()),
        )

    retrying = Retrying(
        stop=stop_after_attempt(attempts),
        wait=wait_fixed(settings.connect_retry_delay.total_seconds()),
        retry=retry_if_exception_type(SessionRequired),
        before_sleep=connect_failed,
        sleep=sleep,
    )

    try:
        retrying(directory.check_session, log=log)
    except RetryError as e:
        error = e.last_attempt.exception()
        log.warning("session.gave_up", attempts=attempts, error=str(error))
        raise SessionRequired(
            f"Could not connect to the directory after {attempts} attempts: {error}"
        ) from error

    log.info("session.connected")
    return directory
