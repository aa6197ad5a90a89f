"""Deliverables that drive the session itself rather than the backend."""

from __future__ import annotations

from typing import Sequence, TextIO

from deliverables.deliverable import Deliverable, DeliverableResponse, provides_directions
from deliverables.registry import DeliverableContext


class HelpDeliverable(Deliverable):
    """Lists the registered deliverables, or prints the directions of one."""

    def __init__(self, reader: TextIO, writer: TextIO, context: DeliverableContext):
        super().__init__(reader, writer)
        self.context = context

    async def run(self, command: str, args: Sequence[str]) -> DeliverableResponse:
        registry = self.context.registry
        if registry is None:
            self.write_line("No deliverables are registered")
            return DeliverableResponse.CONTINUE

        if not args:
            self.write_line("The following deliverables are available:")
            for entry in registry.entries():
                aliases = f" (aliases: {', '.join(entry.aliases)})" if entry.aliases else ""
                self.write_line(f"\t{entry.name}{aliases}")
            self.write_line()
            self.write_line("Use `help <deliverable>` to see its directions")
            return DeliverableResponse.CONTINUE

        name = args[0]
        deliverable = registry.create(name, self.context)
        if deliverable is None:
            self.write_line(f"The deliverable '{name}' is not found")
        elif provides_directions(deliverable):
            await deliverable.directions()
        else:
            self.write_line(f"The deliverable '{name}' doesn't provide any directions")
        return DeliverableResponse.CONTINUE

    async def directions(self) -> bool:
        self.write_line("help [<deliverable>]")
        self.write_line("\tLists the deliverables, or shows how to use one of them.")
        return True


class QuitDeliverable(Deliverable):
    async def run(self, command: str, args: Sequence[str]) -> DeliverableResponse:
        return DeliverableResponse.FINISHED
