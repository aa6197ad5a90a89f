"""The uniform shape every command plugs into."""

from __future__ import annotations

import abc
import enum
from typing import Protocol, Sequence, TextIO, runtime_checkable


class DeliverableResponse(enum.Enum):
    """Tells the invoking shell whether to keep going."""

    CONTINUE = "continue"
    FINISHED = "finished"
    FINISHED_WITH_ERROR = "finished_with_error"


class Deliverable(abc.ABC):
    """
    A named command bound to the input and output streams of one session.

    Subclasses implement ``run``. Observable effects are text written to
    ``writer`` and calls into backend collaborators.
    """

    def __init__(self, reader: TextIO, writer: TextIO):
        self.reader = reader
        self.writer = writer

    @abc.abstractmethod
    async def run(self, command: str, args: Sequence[str]) -> DeliverableResponse:
        """
        Execute the command. ``args`` excludes the command token itself.
        Missing arguments are reported to ``writer``, never raised.
        """

    def write_line(self, text: str = "") -> None:
        self.writer.write(f"{text}\n")
        self.writer.flush()


@runtime_checkable
class ProvidesDirections(Protocol):
    """Optional capability: a deliverable that can describe its own usage."""

    async def directions(self) -> bool: ...


def provides_directions(deliverable: Deliverable) -> bool:
    return isinstance(deliverable, ProvidesDirections)


__all__ = [
    "Deliverable",
    "DeliverableResponse",
    "ProvidesDirections",
    "provides_directions",
]
