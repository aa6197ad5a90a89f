"""Dispatches command lines to deliverables and honours their responses."""

from __future__ import annotations

import logging
import shlex
from typing import Iterable

from deliverables.deliverable import DeliverableResponse
from deliverables.registry import DeliverableContext, DeliverableRegistry

logger = logging.getLogger(__name__)


class DeliverableHost:

    def __init__(self, registry: DeliverableRegistry, context: DeliverableContext):
        self.registry = registry
        self.context = context
        if context.registry is None:
            context.registry = registry

    async def run_command(self, line: str) -> DeliverableResponse:
        try:
            tokens = shlex.split(line)
        except ValueError as e:
            self._write(f"Unable to read the command: {e}")
            return DeliverableResponse.CONTINUE
        if not tokens:
            return DeliverableResponse.CONTINUE
        return await self.deliver(tokens[0], tokens[1:])

    async def deliver(self, command: str, args: list[str]) -> DeliverableResponse:
        deliverable = self.registry.create(command, self.context)
        if deliverable is None:
            self._write(f"Unrecognized command '{command}'. Use `help` to see the available commands.")
            return DeliverableResponse.CONTINUE
        logger.info("Running deliverable '%s' with args %s", command, args)
        response = await deliverable.run(command, args)
        logger.info("Deliverable '%s' finished with %s", command, response.name)
        return response

    async def run_script(self, lines: Iterable[str]) -> DeliverableResponse:
        """Run each line in order, stopping at the first response that is not CONTINUE."""
        for line in lines:
            response = await self.run_command(line)
            if response is not DeliverableResponse.CONTINUE:
                return response
        return DeliverableResponse.FINISHED

    async def run_shell(self, prompt: str = "chauffeur> ") -> DeliverableResponse:
        """Read commands from the session reader until EOF or a terminal response."""
        while True:
            self.context.writer.write(prompt)
            self.context.writer.flush()
            line = self.context.reader.readline()
            if not line:
                self._write()
                return DeliverableResponse.FINISHED
            response = await self.run_command(line)
            if response is not DeliverableResponse.CONTINUE:
                return response

    def _write(self, text: str = "") -> None:
        self.context.writer.write(f"{text}\n")
        self.context.writer.flush()
