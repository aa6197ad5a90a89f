"""
registry.py
-----------
Static map from command names and aliases to deliverable factories.

Built once at process start; lookups are exact, case-sensitive string matches.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, TextIO

from connectors.backend_interface import PackagingService, SettingsProvider, UserService

if TYPE_CHECKING:
    from deliverables.deliverable import Deliverable


@dataclass
class DeliverableContext:
    """Everything a factory may need to build a deliverable for one session."""

    reader: TextIO
    writer: TextIO
    settings: SettingsProvider
    packaging_service: PackagingService
    user_service: UserService
    registry: DeliverableRegistry | None = None


DeliverableFactory = Callable[[DeliverableContext], "Deliverable"]


@dataclass
class RegistryEntry:
    name: str
    aliases: tuple[str, ...]
    factory: DeliverableFactory


class DeliverableRegistry:

    def __init__(self):
        self._entries: list[RegistryEntry] = []
        self._by_key: dict[str, RegistryEntry] = {}

    def register(self, name: str, factory: DeliverableFactory, aliases: tuple[str, ...] = ()) -> None:
        """Register ``factory`` under ``name`` and every alias. Keys must be unique."""
        entry = RegistryEntry(name, tuple(aliases), factory)
        keys = (name, *entry.aliases)
        for key in keys:
            if key in self._by_key or keys.count(key) > 1:
                raise ValueError(f"Deliverable name or alias already registered: {key!r}")
        self._entries.append(entry)
        for key in keys:
            self._by_key[key] = entry

    def resolve(self, key: str) -> RegistryEntry | None:
        return self._by_key.get(key)

    def create(self, key: str, context: DeliverableContext) -> Deliverable | None:
        entry = self.resolve(key)
        if entry is None:
            return None
        return entry.factory(context)

    def entries(self) -> list[RegistryEntry]:
        return list(self._entries)


def build_registry() -> DeliverableRegistry:
    """The registry of every built-in deliverable."""
    from deliverables.builtin_deliverables import HelpDeliverable, QuitDeliverable
    from deliverables.package_deliverable import PackageDeliverable
    from deliverables.user_deliverable import UserDeliverable

    registry = DeliverableRegistry()
    registry.register(
        "package",
        lambda ctx: PackageDeliverable(ctx.reader, ctx.writer, ctx.settings, ctx.packaging_service),
        aliases=("p", "pkg"),
    )
    registry.register(
        "user",
        lambda ctx: UserDeliverable(ctx.reader, ctx.writer, ctx.user_service),
        aliases=("u",),
    )
    registry.register(
        "help",
        lambda ctx: HelpDeliverable(ctx.reader, ctx.writer, ctx),
        aliases=("h", "?"),
    )
    registry.register(
        "quit",
        lambda ctx: QuitDeliverable(ctx.reader, ctx.writer),
        aliases=("q",),
    )
    return registry
