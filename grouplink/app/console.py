"""
Terminal front end: prompts for the operator and rendering of workflow events.
"""

from pathlib import Path
from typing import Callable, Iterator

from grouplink.core import events
from grouplink.core.membership import AcquisitionStrategy, BulkFailurePolicy, Role
from grouplink.core.retry import retry_until
from grouplink.service.orchestrator import Operator
from grouplink.service.reporting import ReportSink

STRATEGY_MENU = {
    "1": (AcquisitionStrategy.BULK_FILE, "Import users from a text file (one per line)"),
    "2": (AcquisitionStrategy.MANUAL, "Enter users one at a time"),
}

ROLE_MENU = {
    "1": (Role.MEMBER, "Member"),
    "2": (Role.OWNER, "Owner (also added as member)"),
}


def read_user_file(path: str) -> list[str]:
    """
    Read a user list, one name or address per line.
    """
    return Path(path).expanduser().read_text(encoding="utf-8-sig").splitlines()


class ConsoleOperator(Operator):
    """
    Asks the operator questions on the terminal.
    """

    def __init__(
        self,
        sentinel: str = "done",
        input_fn: Callable[[str], str] = input,
        output: Callable[[str], None] = print,
    ):
        self.sentinel = sentinel
        self.input_fn = input_fn
        self.output = output
        self.last_path: str | None = None

    def menu(self, title: str, options: dict):
        self.output(title)

        for key, (_, label) in options.items():
            self.output(f"  {key}) {label}")

        def pick(answer: str):
            try:
                return options[answer.strip()][0]
            except KeyError:
                raise ValueError(f"{answer!r} is not one of {', '.join(options)}")

        return retry_until(
            ask=lambda: self.input_fn("Choice: "),
            attempt=pick,
            recoverable=(ValueError,),
            on_failure=lambda answer, error: self.output(str(error)),
        )

    def ask_group_identifier(self) -> str:
        return self.input_fn("Group name or address: ")

    def choose_strategy(self) -> AcquisitionStrategy:
        return self.menu("How would you like to supply users?", STRATEGY_MENU)

    def choose_role(self) -> Role:
        return self.menu("Which role should the users get?", ROLE_MENU)

    def ask_path(self) -> str:
        if self.last_path is None:
            return self.input_fn("Path to the user list: ")

        answer = self.input_fn(f"Path to the user list [{self.last_path}]: ")

        return answer.strip() or self.last_path

    def bulk_lines(self) -> list[str]:
        def read(path: str) -> list[str]:
            lines = read_user_file(path.strip())
            self.last_path = path.strip()
            return lines

        return retry_until(
            ask=self.ask_path,
            attempt=read,
            recoverable=(OSError,),
            on_failure=lambda path, error: self.output(f"Cannot read {path}: {error}"),
        )

    def manual_entries(self) -> Iterator[str]:
        prompt = f"User name or address ('{self.sentinel}' to finish): "

        while True:
            try:
                yield self.input_fn(prompt)
            except EOFError:
                return

    def choose_bulk_failure_policy(self, identifier: str) -> BulkFailurePolicy:
        answer = self.input_fn(
            f"Could not find {identifier}. Correct the file and start over? [Y/n] "
        )

        if answer.strip().lower() in ["n", "no"]:
            return BulkFailurePolicy.KEEP_PARTIAL

        return BulkFailurePolicy.RESTART


class ConsoleReporter(ReportSink):
    """
    Renders events as plain text lines.
    """

    def __init__(self, output: Callable[[str], None] = print):
        self.output = output

    def emit(self, event: events.Event) -> None:
        self.output(self.render(event))

    def render(self, event: events.Event) -> str:
        match event:
            case events.FoundGroup(group=group):
                return f"Found group {group.display_name} <{group.mail or group.group_id}>"
            case events.GroupLookupFailed(identifier=identifier, candidates=[]):
                return f"WARNING: group {identifier} was not found, try again"
            case events.GroupLookupFailed(identifier=identifier, candidates=candidates):
                names = ", ".join(str(group) for group in candidates)
                return f"WARNING: {identifier} matches several groups ({names}), be more specific"
            case events.UserAccepted(user=user, batch_size=size):
                return f"Added {user} to the list ({size} so far)"
            case events.UserNotFound(identifier=identifier, reason=reason):
                return f"WARNING: user {identifier} was not found ({reason})"
            case events.BatchRestarted(discarded=discarded):
                return f"Starting over, discarded {discarded} resolved users"
            case events.BatchProgress(processed=processed, total=total, user=user):
                return f"[{processed}/{total}] {user}"
            case events.GrantFailed(user=user, link=link, reason=reason):
                return f"ERROR: could not add {user} to {link.value}: {reason}"
            case events.Summary() as summary:
                lines = [
                    f"Added {summary.succeeded} of {summary.attempted} users to "
                    f"{summary.group} as {summary.role.value}"
                ]
                if summary.failed:
                    lines.append(f"Failed: {', '.join(summary.failed)}")
                return "\n".join(lines)
            case _:
                return str(event)
