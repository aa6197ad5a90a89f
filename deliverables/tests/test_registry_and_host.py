import asyncio
import io

import pytest

from deliverables import (
    Deliverable,
    DeliverableContext,
    DeliverableHost,
    DeliverableRegistry,
    DeliverableResponse,
    PackageDeliverable,
    build_registry,
    provides_directions,
)
from deliverables.builtin_deliverables import QuitDeliverable
from deliverables.user_deliverable import UserDeliverable


class EchoDeliverable(Deliverable):
    """Writes its command and args back; no directions."""

    async def run(self, command, args):
        self.write_line(f"{command}:{','.join(args)}")
        return DeliverableResponse.CONTINUE


class FailingDeliverable(Deliverable):
    async def run(self, command, args):
        return DeliverableResponse.FINISHED_WITH_ERROR


class NoDirectory:
    def try_get_chauffeur_directory(self):
        return None


def make_context(reader_text=""):
    return DeliverableContext(
        reader=io.StringIO(reader_text),
        writer=io.StringIO(),
        settings=NoDirectory(),
        packaging_service=None,
        user_service=None,
    )


def make_host(reader_text=""):
    registry = build_registry()
    registry.register("echo", lambda ctx: EchoDeliverable(ctx.reader, ctx.writer), aliases=("e",))
    registry.register("fail", lambda ctx: FailingDeliverable(ctx.reader, ctx.writer))
    context = make_context(reader_text)
    return DeliverableHost(registry, context), context.writer


def test_package_is_registered_with_aliases():
    registry = build_registry()
    for key in ("package", "p", "pkg"):
        deliverable = registry.create(key, make_context())
        assert isinstance(deliverable, PackageDeliverable)
    assert registry.resolve("Package") is None


def test_builtin_entries_in_registration_order():
    registry = build_registry()
    assert [(e.name, e.aliases) for e in registry.entries()] == [
        ("package", ("p", "pkg")),
        ("user", ("u",)),
        ("help", ("h", "?")),
        ("quit", ("q",)),
    ]


def test_duplicate_keys_are_rejected():
    registry = DeliverableRegistry()
    registry.register("echo", lambda ctx: None, aliases=("e",))
    with pytest.raises(ValueError):
        registry.register("other", lambda ctx: None, aliases=("e",))
    with pytest.raises(ValueError):
        registry.register("twice", lambda ctx: None, aliases=("twice",))
    assert registry.resolve("other") is None


def test_directions_capability_query():
    context = make_context()
    assert provides_directions(PackageDeliverable(context.reader, context.writer, None, None))
    assert provides_directions(UserDeliverable(context.reader, context.writer, None))
    assert not provides_directions(QuitDeliverable(context.reader, context.writer))
    assert not provides_directions(EchoDeliverable(context.reader, context.writer))


def test_host_dispatches_by_alias_and_strips_command():
    host, writer = make_host()
    assert asyncio.run(host.run_command('e one "two words"')) == DeliverableResponse.CONTINUE
    assert writer.getvalue() == "e:one,two words\n"


def test_host_reports_unknown_commands():
    host, writer = make_host()
    assert asyncio.run(host.run_command("launch rockets")) == DeliverableResponse.CONTINUE
    assert "Unrecognized command 'launch'" in writer.getvalue()


def test_blank_line_is_a_no_op():
    host, writer = make_host()
    assert asyncio.run(host.run_command("   ")) == DeliverableResponse.CONTINUE
    assert writer.getvalue() == ""


def test_script_stops_at_first_terminal_response():
    host, writer = make_host()
    response = asyncio.run(host.run_script(["echo a", "fail", "echo b"]))
    assert response == DeliverableResponse.FINISHED_WITH_ERROR
    assert writer.getvalue() == "echo:a\n"


def test_script_finishes_when_exhausted():
    host, _ = make_host()
    assert asyncio.run(host.run_script(["echo a"])) == DeliverableResponse.FINISHED


def test_shell_reads_until_quit():
    host, writer = make_host("echo 1\nq\necho 2\n")
    assert asyncio.run(host.run_shell(prompt="> ")) == DeliverableResponse.FINISHED
    assert writer.getvalue() == "> echo:1\n> "


def test_shell_finishes_at_end_of_input():
    host, writer = make_host("echo 1\n")
    assert asyncio.run(host.run_shell(prompt="> ")) == DeliverableResponse.FINISHED
    assert writer.getvalue() == "> echo:1\n> \n"


def test_help_lists_deliverables():
    host, writer = make_host()
    asyncio.run(host.run_command("help"))
    output = writer.getvalue()
    assert "\tpackage (aliases: p, pkg)" in output
    assert "\tfail\n" in output


def test_help_shows_directions():
    host, writer = make_host()
    asyncio.run(host.run_command("help pkg"))
    assert "-f:<directory>" in writer.getvalue()


def test_help_without_directions():
    host, writer = make_host()
    asyncio.run(host.run_command("h echo"))
    assert writer.getvalue() == "The deliverable 'echo' doesn't provide any directions\n"


def test_help_unknown_deliverable():
    host, writer = make_host()
    asyncio.run(host.run_command("? nothing"))
    assert writer.getvalue() == "The deliverable 'nothing' is not found\n"


def test_package_without_configured_directory_continues():
    host, writer = make_host()
    assert asyncio.run(host.run_command("package blog")) == DeliverableResponse.CONTINUE
    assert writer.getvalue() == ""


def test_unbalanced_quotes_are_reported():
    host, writer = make_host()
    assert asyncio.run(host.run_command('echo "open')) == DeliverableResponse.CONTINUE
    assert writer.getvalue().startswith("Unable to read the command:")
