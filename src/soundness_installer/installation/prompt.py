"""Yes/no confirmation with a bounded wait."""

import io
import select
import sys
from enum import Enum
from typing import Callable, Optional, TextIO

import click


class Answer(Enum):
    """Result of a bounded confirmation prompt."""

    YES = "yes"
    NO = "no"
    TIMED_OUT = "timed_out"

    @property
    def confirmed(self) -> bool:
        return self is Answer.YES


ConfirmFn = Callable[[str, float], Answer]

_YES = {"y", "yes"}


def parse_answer(line: str) -> Answer:
    return Answer.YES if line.strip().lower() in _YES else Answer.NO


def confirm_with_timeout(
    message: str, timeout: float, stream: Optional[TextIO] = None
) -> Answer:
    """Ask a y/n question and wait at most timeout seconds for a reply.

    Streams without a file descriptor are read without a time limit.
    """
    stream = stream if stream is not None else sys.stdin
    click.echo(f"{message} (y/n) [{int(timeout)}s]: ", nl=False)

    try:
        fd = stream.fileno()
    except (AttributeError, io.UnsupportedOperation, ValueError):
        fd = None

    if fd is not None:
        try:
            ready, _, _ = select.select([stream], [], [], timeout)
        except (OSError, ValueError):
            ready = [stream]
        if not ready:
            click.echo()
            return Answer.TIMED_OUT

    line = stream.readline()
    if not line:
        click.echo()
        return Answer.NO
    return parse_answer(line)
