"""
A simple CLI for adding users to a group interactively.
"""

import logging
import sys

import structlog


def configure_logging(level: str):
    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(level.upper())
        )
    )


def run(settings) -> int:
    from grouplink.app.console import ConsoleOperator, ConsoleReporter
    from grouplink.service import orchestrator
    from grouplink.service.directory import DirectoryError
    from grouplink.service.session import ensure_session

    configure_logging(settings.log_level)
    log = structlog.get_logger()

    try:
        directory = ensure_session(settings=settings, log=log)
        orchestrator.run(
            directory=directory,
            operator=ConsoleOperator(sentinel=settings.manual_sentinel),
            sink=ConsoleReporter(),
            settings=settings,
            log=log,
        )
    except DirectoryError as e:
        log.error("cli.failed", error=str(e))
        print(f"ERROR: {e}")
        return 1
    except (KeyboardInterrupt, EOFError):
        print()
        return 130

    return 0


def main():
    try:
        command = sys.argv[1]
    except IndexError:
        command = None

    if command not in ["run", "demo"]:
        print(
            "Only supported commands are grouplink run (uses GROUPLINK_* settings) "
            "and grouplink demo (in-memory example directory)"
        )
        exit(1)

    from grouplink.config.settings import Settings

    if command == "demo":
        settings = Settings(directory_type="mock")
    else:
        settings = Settings()

    exit(run(settings=settings))
