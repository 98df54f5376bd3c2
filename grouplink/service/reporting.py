"""
Sinks for workflow events.
"""

import abc

from grouplink.core.events import Event


class ReportSink(abc.ABC):
    """
    Receives events from the workflow. Rendering is left to the implementation.
    """

    @abc.abstractmethod
    def emit(self, event: Event) -> None:
        raise NotImplementedError


class RecordingSink(ReportSink):
    """
    Keeps every event, in order.
    """

    events: list[Event]

    def __init__(self):
        self.events = []

    def emit(self, event: Event) -> None:
        self.events.append(event)

    def of_kind(self, kind: str) -> list[Event]:
        return [event for event in self.events if event.kind == kind]
