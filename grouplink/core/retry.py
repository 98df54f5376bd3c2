"""
Re-ask until an answer is accepted.
"""

from typing import Callable, TypeVar

T = TypeVar("T")


def retry_until(
    ask: Callable[[], str],
    attempt: Callable[[str], T],
    recoverable: tuple[type[Exception], ...],
    on_failure: Callable[[str, Exception], None],
) -> T:
    """
    Repeatedly ask for an answer and try it until `attempt` succeeds. There is
    no limit on the number of tries.

    Parameters
    ----------
    ask: Callable[[], str]
        Produces the next answer (e.g. prompts the operator).
    attempt: Callable[[str], T]
        Validates or resolves the answer. Raising one of `recoverable` means
        the answer was rejected.
    recoverable: tuple[type[Exception], ...]
        Exceptions that cause a re-ask. Anything else propagates.
    on_failure: Callable[[str, Exception], None]
        Called with the rejected answer and the exception before re-asking.
    """

    while True:
        answer = ask()

        try:
            return attempt(answer)
        except recoverable as e:
            on_failure(answer, e)
